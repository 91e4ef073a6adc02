"""Live path: queued webhook deliveries to live documents.

The Dramatiq actor lives in :mod:`trawler.live.actor` and is imported by the
worker, not here, so importing this package leaves the broker untouched.
"""

from __future__ import annotations

from .consumer import LiveConsumer, LiveRuntime
from .errors import EnrichmentError
from .gate import PauseGate
from .handler import MessageHandler, PartialMessage, QueueMessage

__all__ = [
    "EnrichmentError",
    "LiveConsumer",
    "LiveRuntime",
    "MessageHandler",
    "PartialMessage",
    "PauseGate",
    "QueueMessage",
]
