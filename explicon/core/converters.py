"""Per-type conversion of document literals and environment text."""

from __future__ import annotations

import dataclasses
import json
import types
from typing import Any, Dict, Generic, Mapping, Protocol, Type, TypeVar, Union, get_origin

T = TypeVar("T")

_CONTAINER_TYPES = (dict, list, tuple, set, frozenset)

# built from a document or JSON list
_SEQUENCE_TYPES = (tuple, set, frozenset)

_TRUE_TOKENS = frozenset({"true", "1", "yes", "on"})
_FALSE_TOKENS = frozenset({"false", "0", "no", "off"})


class Converter(Protocol[T]):
    """Capability a value type needs to be used inside a sourced value.

    Implementations signal rejection with ``ValueError`` or ``TypeError``.
    """

    type_name: str

    def from_literal(self, node: Any) -> T:
        """Convert a node given directly in the document."""
        ...

    def from_env(self, raw: str) -> T:
        """Parse the text of an environment variable."""
        ...

    def zero(self) -> T:
        """Return the neutral value used by ``resolve_or_default``."""
        ...


def type_name(tp: Any) -> str:
    """Human readable name of a (possibly generic) type."""
    if get_origin(tp) is not None:
        return str(tp).replace("typing.", "")
    return getattr(tp, "__name__", repr(tp))


class StrConverter:
    type_name = "str"

    def from_literal(self, node: Any) -> str:
        if not isinstance(node, str):
            raise TypeError(f"expected str, got {type(node).__name__}")
        return node

    def from_env(self, raw: str) -> str:
        return raw

    def zero(self) -> str:
        return ""


class IntConverter:
    type_name = "int"

    def from_literal(self, node: Any) -> int:
        # bool is an int subclass but never a valid integer literal
        if isinstance(node, bool) or not isinstance(node, int):
            raise TypeError(f"expected int, got {type(node).__name__}")
        return node

    def from_env(self, raw: str) -> int:
        return int(raw)

    def zero(self) -> int:
        return 0


class FloatConverter:
    type_name = "float"

    def from_literal(self, node: Any) -> float:
        if isinstance(node, bool) or not isinstance(node, (int, float)):
            raise TypeError(f"expected float, got {type(node).__name__}")
        return float(node)

    def from_env(self, raw: str) -> float:
        return float(raw)

    def zero(self) -> float:
        return 0.0


class BoolConverter:
    type_name = "bool"

    def from_literal(self, node: Any) -> bool:
        if not isinstance(node, bool):
            raise TypeError(f"expected bool, got {type(node).__name__}")
        return node

    def from_env(self, raw: str) -> bool:
        token = raw.strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
        raise ValueError(f"expected one of {sorted(_TRUE_TOKENS | _FALSE_TOKENS)}")

    def zero(self) -> bool:
        return False


class TypeConverter(Generic[T]):
    """Converter for arbitrary classes and generic container aliases.

    Literals already of the right class pass through. Otherwise a
    ``from_literal`` classmethod is used when present, mappings are splatted
    into dataclasses, lists become tuples or sets when asked for, and remaining scalars are handed to the constructor.
    Environment text goes through a ``from_env_string`` classmethod when
    present; containers are decoded as JSON.
    """

    def __init__(self, tp: Any):
        self.tp = tp
        self.origin: Type[Any] = get_origin(tp) or tp
        if not isinstance(self.origin, type) or self.origin in (Union, types.UnionType):
            raise TypeError(f"unsupported value type {tp!r}")
        self.type_name = type_name(tp)

    def from_literal(self, node: Any) -> T:
        origin = self.origin
        if isinstance(node, origin):
            return node
        hook = getattr(origin, "from_literal", None)
        if callable(hook):
            return hook(node)
        if dataclasses.is_dataclass(origin):
            if not isinstance(node, Mapping):
                raise TypeError(f"expected a mapping for {self.type_name}")
            return origin(**node)
        if issubclass(origin, _SEQUENCE_TYPES) and isinstance(node, list):
            return origin(node)
        if issubclass(origin, _CONTAINER_TYPES) or isinstance(node, (Mapping, list)):
            raise TypeError(f"expected {self.type_name}, got {type(node).__name__}")
        return origin(node)

    def from_env(self, raw: str) -> T:
        hook = getattr(self.origin, "from_env_string", None)
        if callable(hook):
            return hook(raw)
        if issubclass(self.origin, _CONTAINER_TYPES) or dataclasses.is_dataclass(self.origin):
            return self.from_literal(json.loads(raw))
        return self.origin(raw)

    def zero(self) -> T:
        return self.origin()


_REGISTRY: Dict[Any, Converter[Any]] = {
    str: StrConverter(),
    int: IntConverter(),
    float: FloatConverter(),
    bool: BoolConverter(),
}


def register_converter(tp: Any, converter: Converter[Any]) -> None:
    """Register the converter used for ``tp``, replacing any existing one."""
    _REGISTRY[tp] = converter


def converter_for(tp: Any) -> Converter[Any]:
    """Return the converter for ``tp``, building a generic one if needed."""
    converter = _REGISTRY.get(tp)
    if converter is None:
        converter = TypeConverter(tp)
    return converter
