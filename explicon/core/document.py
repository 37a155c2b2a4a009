"""Binding parsed configuration documents onto dataclasses of sourced values."""

from __future__ import annotations

import dataclasses
import logging
import types
from typing import (
    Any,
    Dict,
    Iterator,
    Mapping,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from .errors import DeserializationError
from .types import MISSING, SourceRecord
from .value import SourcedValue

logger = logging.getLogger(__name__)

D = TypeVar("D")

_NONE_TYPE = type(None)


def _sourced_spec(annotation: Any) -> Optional[Tuple[Any, bool]]:
    """Return ``(value_type, optional)`` for sourced annotations, else None."""
    optional = False
    if get_origin(annotation) in (Union, types.UnionType):
        args = [a for a in get_args(annotation) if a is not _NONE_TYPE]
        if len(args) != 1:
            return None
        optional = True
        annotation = args[0]
    if isinstance(annotation, type) and issubclass(annotation, SourcedValue):
        return str, optional
    origin = get_origin(annotation)
    if origin is None or not (isinstance(origin, type) and issubclass(origin, SourcedValue)):
        return None
    args = get_args(annotation)
    value_type = args[0] if args else str
    return value_type, optional


def _has_default(f: dataclasses.Field) -> bool:
    return (
        f.default is not dataclasses.MISSING
        or f.default_factory is not dataclasses.MISSING
    )


def _prefixed(name: str, exc: DeserializationError) -> DeserializationError:
    return DeserializationError(f"{name}: {exc}", node=exc.node, keys=exc.keys)


def load_document(cls: Type[D], document: Any, *, _path: str = "") -> D:
    """Build an instance of the dataclass ``cls`` from a parsed document.

    Fields annotated ``SourcedValue[T]`` are deserialized from their node.
    An absent field becomes ``Unset`` when it is ``Optional[...]`` or has a
    ``None`` default, and is an error otherwise. Sourced fields may not
    declare any other default: a value the document does not mention has
    no source. Fields whose type is another dataclass are loaded
    recursively from nested mappings; any other field receives its node
    unchanged.

    Args:
        cls: Dataclass describing the document.
        document: Already-parsed mapping (from JSON, YAML, TOML...).

    Returns:
        Instance of ``cls``.

    Raises:
        DeserializationError: On unknown or missing fields, or on any
            field whose node has an invalid shape.
        TypeError: If ``cls`` is not a dataclass, or a sourced field has a
            default other than ``None``.
    """
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls!r} is not a dataclass")
    where = _path or cls.__name__
    if not isinstance(document, Mapping):
        raise DeserializationError(
            f"{where}: expected a mapping, got {type(document).__name__}",
            node=document,
        )

    hints = get_type_hints(cls)
    fields = {f.name: f for f in dataclasses.fields(cls) if f.init}
    unknown = [k for k in document if k not in fields]
    if unknown:
        raise DeserializationError(
            f"{where}: unknown fields {sorted(str(k) for k in unknown)}",
            node=document,
            keys=unknown,
        )

    kwargs: Dict[str, Any] = {}
    for name, f in fields.items():
        annotation = hints.get(name)
        node = document.get(name, MISSING)
        path = f"{_path}.{name}" if _path else name
        spec = _sourced_spec(annotation)

        if spec is not None:
            value_type, optional = spec
            if _has_default(f) and f.default is not None:
                raise TypeError(
                    f"{cls.__name__}.{name}: sourced fields only accept None as a default"
                )
            if node is MISSING and not (optional or _has_default(f)):
                raise DeserializationError(f"{path}: missing field", node=document)
            try:
                kwargs[name] = SourcedValue.deserialize(node, value_type)
            except DeserializationError as exc:
                raise _prefixed(path, exc) from exc
            continue

        if node is MISSING:
            if not _has_default(f):
                raise DeserializationError(f"{path}: missing field", node=document)
            continue
        if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
            kwargs[name] = load_document(annotation, node, _path=path)
        else:
            kwargs[name] = node

    logger.debug("Loaded %s with %d fields", where, len(kwargs))
    return cls(**kwargs)


def _iter_sourced(obj: Any, parent: str = "") -> Iterator[Tuple[str, SourcedValue[Any]]]:
    for f in dataclasses.fields(obj):
        value = getattr(obj, f.name)
        key = f.name if not parent else f"{parent}.{f.name}"
        if isinstance(value, SourcedValue):
            yield key, value
        elif dataclasses.is_dataclass(value) and not isinstance(value, type):
            yield from _iter_sourced(value, key)


def document_provenance(obj: Any) -> Dict[str, SourceRecord]:
    """Map each sourced field (dot-notation for nested sections) to its source."""
    return {key: value.provenance() for key, value in _iter_sourced(obj)}


def dump_document(obj: Any) -> Dict[str, Any]:
    """Return the document form of ``obj``, leaving out unset fields."""
    out: Dict[str, Any] = {}
    for f in dataclasses.fields(obj):
        value = getattr(obj, f.name)
        if isinstance(value, SourcedValue):
            if value.is_set:
                out[f.name] = value.to_node()
        elif dataclasses.is_dataclass(value) and not isinstance(value, type):
            out[f.name] = dump_document(value)
        else:
            out[f.name] = value
    return out
