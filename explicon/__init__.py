"""Explicon - configuration values with an explicit, inspectable source.

Each field declares exactly one source in the document (a literal value or
an environment variable reference) and is only turned into a concrete value
when the caller asks for it.
"""

import logging

from .core.document import document_provenance, dump_document, load_document
from .core.errors import (
    DeserializationError,
    ExpliconError,
    MissingEnvVar,
    NoSourceProvided,
    ParseFailure,
    ResolutionError,
    ValidationFailed,
)
from .core.value import EnvRef, LiteralValue, SourcedValue, Unset, sourced
from .core.types import MISSING, SourceKind, SourceRecord

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "SourcedValue",
    "LiteralValue",
    "EnvRef",
    "Unset",
    "sourced",
    "load_document",
    "dump_document",
    "document_provenance",
    "ExpliconError",
    "DeserializationError",
    "ResolutionError",
    "MissingEnvVar",
    "ParseFailure",
    "NoSourceProvided",
    "ValidationFailed",
    "SourceKind",
    "SourceRecord",
    "MISSING",
]
