"""Type definitions for the explicon configuration system."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SourceKind(str, Enum):
    """Kind of source a configuration value was declared with."""

    LITERAL = "literal"
    ENV = "env"
    UNSET = "unset"


@dataclass(frozen=True)
class SourceRecord:
    """Record describing where a configuration value will come from.

    Built from the declaration alone, so inspecting it never touches the
    environment.

    Attributes:
        kind: Kind of the declared source.
        env_var: Name of the environment variable for ``ENV`` sources.
    """

    kind: SourceKind
    env_var: Optional[str] = None

    def __str__(self) -> str:
        if self.kind is SourceKind.ENV:
            return f"env:{self.env_var}"
        return self.kind.value


class _Missing:
    """Marker for a field that is absent from the document."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()
