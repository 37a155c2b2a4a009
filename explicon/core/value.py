"""Configuration values that carry their declared source.

A :class:`SourcedValue` is built once from a document node and remembers
where its value is supposed to come from: the document itself
(:class:`LiteralValue`), an environment variable (:class:`EnvRef`), or
nowhere (:class:`Unset`). Nothing is looked up until one of the ``resolve``
methods is called, and every call reads the single declared source again.

Document shapes::

    port: 8080                 -> LiteralValue(8080)
    host: {env: SERVICE_HOST}  -> EnvRef("SERVICE_HOST")
    (field absent)             -> Unset()
"""

from __future__ import annotations

import copy
import dataclasses
import logging
import os
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Generic,
    Mapping,
    Optional,
    TypeVar,
)

from .converters import Converter, converter_for
from .errors import (
    DeserializationError,
    MissingEnvVar,
    NoSourceProvided,
    ParseFailure,
    ResolutionError,
    ValidationFailed,
)
from .types import MISSING, SourceKind, SourceRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

DescriptorFactory = Callable[[Any, Any], Optional["SourcedValue[Any]"]]

# descriptor key -> factory(argument, value_type); None means malformed argument
_DESCRIPTORS: Dict[str, DescriptorFactory] = {}


class SourcedValue(Generic[T]):
    """A configuration value together with the one source it comes from.

    Instances are immutable. Use :meth:`deserialize` to build one from a
    document node, then call :meth:`resolve` (or one of its variants) when
    the concrete value is needed.
    """

    kind: ClassVar[SourceKind]
    value_type: Any

    @classmethod
    def deserialize(cls, node: Any, value_type: Any) -> "SourcedValue[Any]":
        """Build a sourced value from a parsed document node.

        Args:
            node: The node for this field, or ``MISSING`` when the field
                is absent from the document.
            value_type: The type the resolved value must have.

        Returns:
            ``Unset`` for a missing node, the descriptor's variant for a
            recognized source descriptor, ``LiteralValue`` otherwise.

        Raises:
            DeserializationError: If the node is neither a descriptor nor
                a valid literal of ``value_type``.
            TypeError: If ``value_type`` is not a class or generic alias
                (``Optional[int]``, ``Literal[...]``), raised even for
                descriptors since it is a schema mistake, not a document one.
        """
        if node is MISSING:
            return Unset(value_type)
        converter = converter_for(value_type)
        described = _match_descriptor(node, value_type)
        if described is not None:
            logger.debug("Declared %s source for %s", described.provenance(), converter.type_name)
            return described
        try:
            value = converter.from_literal(node)
        except (TypeError, ValueError) as exc:
            raise _shape_error(node, converter, exc) from exc
        return LiteralValue(value, value_type)

    @property
    def is_set(self) -> bool:
        return self.kind is not SourceKind.UNSET

    def provenance(self) -> SourceRecord:
        """Describe the declared source without resolving it."""
        return SourceRecord(kind=self.kind)

    def to_node(self) -> Any:
        """Return the document form of the declaration."""
        raise NotImplementedError

    def resolve(self, environ: Optional[Mapping[str, str]] = None) -> T:
        """Produce the concrete value from the declared source.

        Args:
            environ: Environment to read from, ``os.environ`` by default.

        Raises:
            MissingEnvVar: The referenced variable is not set.
            ParseFailure: The variable's text is not a valid value.
            NoSourceProvided: The value is ``Unset``.
        """
        raise NotImplementedError

    def resolve_or(self, default: T, environ: Optional[Mapping[str, str]] = None) -> T:
        """Resolve, returning ``default`` when resolution fails for any reason."""
        try:
            return self.resolve(environ)
        except ResolutionError as exc:
            logger.debug("Falling back to default: %s", exc)
            return default

    def resolve_or_default(self, environ: Optional[Mapping[str, str]] = None) -> T:
        """Resolve, returning the zero value of the type on failure."""
        try:
            return self.resolve(environ)
        except ResolutionError as exc:
            logger.debug("Falling back to zero value: %s", exc)
            return converter_for(self.value_type).zero()

    def resolve_and_validate(
        self,
        validator: Callable[[T], bool],
        environ: Optional[Mapping[str, str]] = None,
    ) -> T:
        """Resolve and check the value against ``validator``.

        Raises:
            ValidationFailed: If ``validator`` returns a falsy result.
        """
        value = self.resolve(environ)
        if not validator(value):
            raise ValidationFailed(value)
        return value

    def with_resolved(self, environ: Optional[Mapping[str, str]] = None) -> "LiteralValue[T]":
        """Resolve once and return the result as a literal snapshot."""
        return LiteralValue(self.resolve(environ), self.value_type)


@dataclass(frozen=True)
class LiteralValue(SourcedValue[T]):
    """A value written directly in the document."""

    kind: ClassVar[SourceKind] = SourceKind.LITERAL

    value: T
    value_type: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.value_type is None:
            object.__setattr__(self, "value_type", type(self.value))

    def to_node(self) -> Any:
        if dataclasses.is_dataclass(self.value) and not isinstance(self.value, type):
            return dataclasses.asdict(self.value)
        return copy.deepcopy(self.value)

    def resolve(self, environ: Optional[Mapping[str, str]] = None) -> T:
        return copy.deepcopy(self.value)


@dataclass(frozen=True)
class EnvRef(SourcedValue[T]):
    """A value read from an environment variable when resolved."""

    kind: ClassVar[SourceKind] = SourceKind.ENV

    name: str
    value_type: Any = field(default=str, repr=False)

    def provenance(self) -> SourceRecord:
        return SourceRecord(kind=self.kind, env_var=self.name)

    def to_node(self) -> Any:
        return {"env": self.name}

    def resolve(self, environ: Optional[Mapping[str, str]] = None) -> T:
        env = os.environ if environ is None else environ
        raw = env.get(self.name)
        if raw is None:
            raise MissingEnvVar(self.name)
        converter = converter_for(self.value_type)
        logger.debug("Resolving %s from environment variable %s", converter.type_name, self.name)
        try:
            return converter.from_env(raw)
        except (TypeError, ValueError) as exc:
            raise ParseFailure(self.name, raw, converter.type_name, str(exc)) from exc


@dataclass(frozen=True)
class Unset(SourcedValue[T]):
    """No value and no source were declared."""

    kind: ClassVar[SourceKind] = SourceKind.UNSET

    value_type: Any = field(default=None, repr=False)

    def to_node(self) -> Any:
        return MISSING

    def resolve(self, environ: Optional[Mapping[str, str]] = None) -> T:
        raise NoSourceProvided()


def register_descriptor(key: str, factory: DescriptorFactory) -> None:
    """Register a source descriptor of the form ``{key: argument}``.

    ``factory(argument, value_type)`` returns the sourced value, or ``None``
    when the argument is malformed.
    """
    if key in _DESCRIPTORS:
        raise ValueError(f"Descriptor {key!r} is already registered")
    _DESCRIPTORS[key] = factory


def descriptor_keys() -> frozenset:
    return frozenset(_DESCRIPTORS)


def _env_descriptor(argument: Any, value_type: Any) -> Optional[SourcedValue[Any]]:
    if isinstance(argument, str) and argument:
        return EnvRef(argument, value_type)
    return None


register_descriptor("env", _env_descriptor)


def _match_descriptor(node: Any, value_type: Any) -> Optional[SourcedValue[Any]]:
    if not isinstance(node, Mapping) or len(node) != 1:
        return None
    ((key, argument),) = node.items()
    factory = _DESCRIPTORS.get(key)
    if factory is None:
        return None
    return factory(argument, value_type)


def _shape_error(node: Any, converter: Converter[Any], exc: Exception) -> DeserializationError:
    if isinstance(node, Mapping):
        keys = list(node.keys())
        if len(keys) == 1 and keys[0] in _DESCRIPTORS:
            return DeserializationError(
                f"Invalid {keys[0]!r} source descriptor: expected a non-empty string, "
                f"got {node[keys[0]]!r}",
                node=node,
                keys=keys,
            )
        shown = sorted(str(k) for k in keys)
        return DeserializationError(
            f"Unrecognized keys {shown} for a {converter.type_name} value; "
            f"known source descriptors are {sorted(_DESCRIPTORS)}",
            node=node,
            keys=keys,
        )
    return DeserializationError(
        f"Invalid literal for {converter.type_name}: {exc}",
        node=node,
    )


def sourced(node: Any, value_type: Any) -> SourcedValue[Any]:
    """Shorthand for :meth:`SourcedValue.deserialize`."""
    return SourcedValue.deserialize(node, value_type)
