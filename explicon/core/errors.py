"""Exception taxonomy for declared-source configuration values."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Tuple


class ExpliconError(Exception):
    """Base class for every error raised by explicon."""


class DeserializationError(ExpliconError, ValueError):
    """A configuration node has a shape that cannot become a sourced value.

    Raised while the document is being loaded, never during resolution.

    Attributes:
        node: The offending document node.
        keys: Sorted key set of the node when it was a mapping.
    """

    def __init__(
        self,
        message: str,
        node: Any = None,
        keys: Optional[Iterable[str]] = None,
    ):
        super().__init__(message)
        self.node = node
        self.keys: Optional[Tuple[str, ...]] = (
            tuple(sorted(str(k) for k in keys)) if keys is not None else None
        )


class ResolutionError(ExpliconError):
    """A declared source could not produce a value when resolved."""


class MissingEnvVar(ResolutionError):
    """The referenced environment variable is not set."""

    def __init__(self, var_name: str):
        super().__init__(f"Environment variable {var_name!r} is not set")
        self.var_name = var_name


class ParseFailure(ResolutionError):
    """The environment variable is set but its text is not a valid value.

    Attributes:
        var_name: Name of the environment variable.
        raw_value: The text found in the environment.
        target_type: Name of the type the text should have parsed into.
    """

    def __init__(self, var_name: str, raw_value: str, target_type: str, reason: str = ""):
        message = (
            f"Environment variable {var_name!r} holds {raw_value!r}, "
            f"which is not a valid {target_type}"
        )
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.var_name = var_name
        self.raw_value = raw_value
        self.target_type = target_type


class NoSourceProvided(ResolutionError):
    """The field declared no source at all."""

    def __init__(self):
        super().__init__("No source provided for this value")


class ValidationFailed(ResolutionError):
    """A resolved value was rejected by a caller-supplied predicate."""

    def __init__(self, value: Any):
        super().__init__(f"Validation failed for value {value!r}")
        self.value = value
