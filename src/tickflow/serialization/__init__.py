"""Interchange format for compiled workflows."""

from tickflow.serialization.deserializer import WorkflowDeserializer
from tickflow.serialization.schema import WorkflowDocument, parse_document, parse_document_json
from tickflow.serialization.serializer import WorkflowSerializer

__all__ = [
    "WorkflowDeserializer",
    "WorkflowDocument",
    "WorkflowSerializer",
    "parse_document",
    "parse_document_json",
]
