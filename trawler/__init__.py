"""Trawler: GitHub issue and pull request ingestion into a document index."""

from __future__ import annotations
