from .converters import Converter, converter_for, register_converter
from .document import document_provenance, dump_document, load_document
from .errors import (
    DeserializationError,
    ExpliconError,
    MissingEnvVar,
    NoSourceProvided,
    ParseFailure,
    ResolutionError,
    ValidationFailed,
)
from .value import EnvRef, LiteralValue, SourcedValue, Unset, register_descriptor, sourced
from .types import MISSING, SourceKind, SourceRecord

__all__ = [
    "SourcedValue",
    "LiteralValue",
    "EnvRef",
    "Unset",
    "sourced",
    "register_descriptor",
    "Converter",
    "converter_for",
    "register_converter",
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
