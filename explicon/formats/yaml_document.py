"""YAML front end for sourced-value documents."""

from __future__ import annotations

from typing import IO, Any, Type, TypeVar, Union

import yaml

from ..core.document import dump_document, load_document
from ..core.errors import DeserializationError

D = TypeVar("D")


def load_yaml(cls: Type[D], text: Union[str, IO[str]]) -> D:
    """Parse YAML with ``yaml.safe_load`` and bind it onto ``cls``.

    An empty document is treated as an empty mapping.

    Raises:
        DeserializationError: If the YAML is malformed or does not fit
            ``cls``.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DeserializationError(f"Invalid YAML document: {e}") from e
    return load_document(cls, {} if data is None else data)


def dump_yaml(obj: Any) -> str:
    """Render the declared sources of ``obj`` as YAML."""
    return yaml.safe_dump(dump_document(obj), sort_keys=False)
