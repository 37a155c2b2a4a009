"""JSON front end for sourced-value documents."""

from __future__ import annotations

import json
from typing import IO, Any, Type, TypeVar, Union

from ..core.document import dump_document, load_document
from ..core.errors import DeserializationError

D = TypeVar("D")


def load_json(cls: Type[D], text: Union[str, IO[str]]) -> D:
    """Parse JSON text or a text stream and bind it onto ``cls``."""
    try:
        data = json.loads(text) if isinstance(text, str) else json.load(text)
    except json.JSONDecodeError as e:
        raise DeserializationError(f"Invalid JSON document: {e}") from e
    return load_document(cls, data)


def dump_json(obj: Any, indent: int = 2) -> str:
    return json.dumps(dump_document(obj), indent=indent)
