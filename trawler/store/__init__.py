"""Transforming store: attribute rewrites and idempotent document writes."""

from __future__ import annotations

from .errors import MalformedBlobError, SinkError, StoreError, TransformationConfigError
from .service import TransformingStore
from .sink import DocumentSink, SQLAlchemyDocumentSink, document_key
from .storage import Destination, Document, init_document_storage
from .transformations import (
    CompiledTransformation,
    apply_transformations,
    compile_transformations,
    register,
    registered_rewrites,
)

__all__ = [
    "CompiledTransformation",
    "Destination",
    "Document",
    "DocumentSink",
    "MalformedBlobError",
    "SQLAlchemyDocumentSink",
    "SinkError",
    "StoreError",
    "TransformationConfigError",
    "TransformingStore",
    "apply_transformations",
    "compile_transformations",
    "document_key",
    "init_document_storage",
    "register",
    "registered_rewrites",
]
