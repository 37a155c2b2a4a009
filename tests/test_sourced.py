"""Unit tests for SourcedValue deserialization and resolution."""

from __future__ import annotations

import dataclasses

import pytest

from explicon.core import value as value_module
from explicon.core.errors import (
    DeserializationError,
    MissingEnvVar,
    NoSourceProvided,
    ParseFailure,
    ValidationFailed,
)
from explicon.core.value import (
    EnvRef,
    LiteralValue,
    SourcedValue,
    Unset,
    descriptor_keys,
    register_descriptor,
    sourced,
)
from explicon.core.types import MISSING, SourceKind, SourceRecord


class TestDeserialize:
    """Test suite for building sourced values from document nodes."""

    def test_int_literal(self):
        """Test a bare integer becomes a literal."""
        value = sourced(8080, int)
        assert isinstance(value, LiteralValue)
        assert value == LiteralValue(8080, int)
        assert value.kind is SourceKind.LITERAL

    def test_scalar_literals(self):
        """Test str, bool and float literals."""
        assert sourced("localhost", str) == LiteralValue("localhost", str)
        assert sourced(True, bool) == LiteralValue(True, bool)
        assert sourced(3, float).value == 3.0
        assert isinstance(sourced(3, float).value, float)

    def test_env_descriptor(self):
        """Test an env descriptor becomes an environment reference."""
        value = sourced({"env": "MY_ENV_VAR_FOR_HOST"}, str)
        assert isinstance(value, EnvRef)
        assert value.name == "MY_ENV_VAR_FOR_HOST"
        assert value.kind is SourceKind.ENV

    def test_env_descriptor_any_type(self):
        """Test the descriptor is recognized regardless of the value type."""
        assert sourced({"env": "PORT"}, int) == EnvRef("PORT", int)
        assert sourced({"env": "FLAG"}, bool) == EnvRef("FLAG", bool)

    def test_missing_node_is_unset(self):
        """Test an absent field becomes Unset."""
        value = sourced(MISSING, int)
        assert isinstance(value, Unset)
        assert value.kind is SourceKind.UNSET
        assert value.is_set is False

    def test_classmethod_matches_helper(self):
        """Test the classmethod and the module helper agree."""
        assert SourcedValue.deserialize(42, int) == sourced(42, int)

    def test_descriptor_wins_for_mapping_type(self):
        """Test a descriptor-shaped mapping is not taken as a dict literal."""
        value = sourced({"env": "SETTINGS"}, dict)
        assert value == EnvRef("SETTINGS", dict)

    def test_mapping_literal_for_mapping_type(self):
        """Test other mappings are literals when the type is a mapping."""
        value = sourced({"a": 1, "b": 2}, dict)
        assert isinstance(value, LiteralValue)
        assert value.value == {"a": 1, "b": 2}

    def test_malformed_env_argument_for_mapping_type(self):
        """Test a non-string env argument falls back to a dict literal."""
        value = sourced({"env": 5}, dict)
        assert isinstance(value, LiteralValue)
        assert value.value == {"env": 5}

    def test_unrecognized_keys(self):
        """Test unknown mapping shapes name the offending keys."""
        with pytest.raises(DeserializationError) as exc_info:
            sourced({"mode": "r", "file": "/etc/port"}, int)
        assert exc_info.value.keys == ("file", "mode")
        assert "file" in str(exc_info.value)
        assert "mode" in str(exc_info.value)

    def test_env_with_extra_keys(self):
        """Test an env key next to other keys is not a descriptor."""
        with pytest.raises(DeserializationError) as exc_info:
            sourced({"env": "PORT", "default": 80}, int)
        assert exc_info.value.keys == ("default", "env")

    @pytest.mark.parametrize("node", [{"env": ""}, {"env": 5}, {"env": None}])
    def test_malformed_env_descriptor(self, node):
        """Test env descriptors must name a variable."""
        with pytest.raises(DeserializationError, match="Invalid 'env' source descriptor"):
            sourced(node, int)

    @pytest.mark.parametrize("node", ["8080", True, 80.5, None, [80]])
    def test_invalid_int_literal(self, node):
        """Test nodes that are not integers are rejected."""
        with pytest.raises(DeserializationError, match="Invalid literal for int"):
            sourced(node, int)

    def test_error_is_value_error(self):
        """Test deserialization errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            sourced(None, str)

    def test_error_keeps_node(self):
        """Test the offending node is attached to the error."""
        with pytest.raises(DeserializationError) as exc_info:
            sourced("abc", int)
        assert exc_info.value.node == "abc"
        assert exc_info.value.keys is None


class TestResolve:
    """Test suite for resolving declared sources."""

    def test_literal(self):
        """Test a literal resolves without touching the environment."""
        assert LiteralValue(8080, int).resolve(environ={}) == 8080

    def test_literal_infers_type(self):
        """Test a literal built without a type uses its value's type."""
        assert LiteralValue(42).value_type is int

    def test_env_success(self, monkeypatch):
        """Test an environment variable is parsed into the value type."""
        monkeypatch.setenv("TEST_RESOLVE_ENV_SUCCESS", "123")
        assert EnvRef("TEST_RESOLVE_ENV_SUCCESS", int).resolve() == 123

    def test_env_string(self, monkeypatch):
        """Test string values are returned verbatim."""
        monkeypatch.setenv("TEST_ENV_STRING", "hello")
        assert EnvRef("TEST_ENV_STRING").resolve() == "hello"

    def test_env_bool(self, monkeypatch):
        """Test boolean environment values."""
        monkeypatch.setenv("TEST_ENV_BOOL", "true")
        assert EnvRef("TEST_ENV_BOOL", bool).resolve() is True

    def test_env_missing(self, monkeypatch):
        """Test an unset variable reports its name."""
        monkeypatch.delenv("MY_ENV_VAR_FOR_HOST", raising=False)
        value = sourced({"env": "MY_ENV_VAR_FOR_HOST"}, str)
        with pytest.raises(MissingEnvVar) as exc_info:
            value.resolve()
        assert exc_info.value.var_name == "MY_ENV_VAR_FOR_HOST"

    def test_env_parse_failure(self, monkeypatch):
        """Test unparsable environment text reports name, text and type."""
        monkeypatch.setenv("TIMEOUT_SECONDS", "abc")
        value = sourced({"env": "TIMEOUT_SECONDS"}, int)
        with pytest.raises(ParseFailure) as exc_info:
            value.resolve()
        assert exc_info.value.var_name == "TIMEOUT_SECONDS"
        assert exc_info.value.raw_value == "abc"
        assert exc_info.value.target_type == "int"

    def test_unset(self):
        """Test Unset has nothing to resolve."""
        with pytest.raises(NoSourceProvided):
            Unset(int).resolve()

    def test_no_caching(self, monkeypatch):
        """Test every resolution reads the environment again."""
        value = EnvRef("TEST_NO_CACHING", int)
        monkeypatch.setenv("TEST_NO_CACHING", "1")
        first = value.resolve()
        monkeypatch.setenv("TEST_NO_CACHING", "2")
        second = value.resolve()
        assert (first, second) == (1, 2)
        assert value == EnvRef("TEST_NO_CACHING", int)

    def test_injected_environ(self, monkeypatch):
        """Test an explicit mapping replaces the process environment."""
        monkeypatch.setenv("PORT", "1")
        assert EnvRef("PORT", int).resolve(environ={"PORT": "9000"}) == 9000
        with pytest.raises(MissingEnvVar):
            EnvRef("PORT", int).resolve(environ={})

    def test_literal_is_copied(self):
        """Test mutating a resolved literal does not change the declaration."""
        value = LiteralValue({"hosts": ["a"]}, dict)
        resolved = value.resolve()
        resolved["hosts"].append("b")
        assert value.resolve() == {"hosts": ["a"]}

    def test_frozen(self):
        """Test sourced values cannot be modified."""
        value = EnvRef("PORT", int)
        with pytest.raises(dataclasses.FrozenInstanceError):
            value.name = "OTHER"


class TestResolveVariants:
    """Test suite for the defaulting and validating resolvers."""

    def test_resolve_or_unset(self):
        """Test Unset falls back to the given default."""
        assert sourced(MISSING, int).resolve_or(3000) == 3000

    def test_resolve_or_missing_env(self):
        """Test a missing variable falls back to the default."""
        assert EnvRef("NOPE", int).resolve_or(7, environ={}) == 7

    def test_resolve_or_parse_failure(self):
        """Test a parse failure falls back to the default."""
        assert EnvRef("PORT", int).resolve_or(7, environ={"PORT": "x"}) == 7

    def test_resolve_or_success(self):
        """Test the default is ignored when resolution succeeds."""
        assert LiteralValue(8080, int).resolve_or(3000) == 8080

    def test_resolve_or_default(self):
        """Test the zero value of the type is used on failure."""
        assert EnvRef("NOPE", int).resolve_or_default(environ={}) == 0
        assert EnvRef("N", int).resolve_or_default(environ={"N": "abc"}) == 0
        assert Unset(str).resolve_or_default() == ""
        assert Unset(bool).resolve_or_default() is False

    def test_resolve_or_default_success(self):
        """Test the resolved value wins when available."""
        assert EnvRef("N", int).resolve_or_default(environ={"N": "5"}) == 5

    def test_resolve_and_validate(self):
        """Test a value accepted by the validator is returned."""
        assert LiteralValue(5, int).resolve_and_validate(lambda v: v == 5) == 5

    def test_resolve_and_validate_rejects(self):
        """Test a rejected value raises ValidationFailed."""
        with pytest.raises(ValidationFailed) as exc_info:
            LiteralValue(5, int).resolve_and_validate(lambda v: v == 10)
        assert exc_info.value.value == 5

    def test_resolve_and_validate_env(self):
        """Test validation runs on environment values too."""
        value = EnvRef("N", int)
        with pytest.raises(ValidationFailed):
            value.resolve_and_validate(lambda v: v == 5, environ={"N": "10"})
        with pytest.raises(MissingEnvVar):
            value.resolve_and_validate(lambda v: True, environ={})

    def test_with_resolved(self):
        """Test a resolved snapshot is a literal."""
        snapshot = EnvRef("N", int).with_resolved(environ={"N": "7"})
        assert snapshot == LiteralValue(7, int)
        assert snapshot.resolve(environ={}) == 7


class TestInspection:
    """Test suite for provenance and document forms."""

    def test_provenance(self):
        """Test each variant describes its source."""
        assert LiteralValue(1, int).provenance() == SourceRecord(SourceKind.LITERAL)
        assert EnvRef("HOST").provenance() == SourceRecord(SourceKind.ENV, "HOST")
        assert Unset(int).provenance() == SourceRecord(SourceKind.UNSET)

    def test_provenance_str(self):
        """Test provenance renders compactly."""
        assert str(EnvRef("HOST").provenance()) == "env:HOST"
        assert str(LiteralValue(1).provenance()) == "literal"
        assert str(Unset().provenance()) == "unset"

    def test_to_node(self):
        """Test the document form of each variant."""
        assert LiteralValue(8080, int).to_node() == 8080
        assert EnvRef("HOST").to_node() == {"env": "HOST"}
        assert Unset(int).to_node() is MISSING

    def test_to_node_deserializes_back(self):
        """Test a document form deserializes to an equal declaration."""
        for value in (LiteralValue(8080, int), EnvRef("PORT", int)):
            assert sourced(value.to_node(), int) == value


class TestDescriptorRegistry:
    """Test suite for registering additional source descriptors."""

    def test_env_registered(self):
        """Test the env descriptor is built in."""
        assert "env" in descriptor_keys()

    def test_duplicate_rejected(self):
        """Test a descriptor key cannot be registered twice."""
        with pytest.raises(ValueError, match="already registered"):
            register_descriptor("env", lambda argument, value_type: None)

    def test_additional_descriptor(self, monkeypatch):
        """Test a new descriptor is dispatched without affecting env."""
        def upper_env(argument, value_type):
            if isinstance(argument, str):
                return EnvRef(argument.upper(), value_type)
            return None

        monkeypatch.setitem(value_module._DESCRIPTORS, "upper_env", upper_env)
        assert sourced({"upper_env": "port"}, int) == EnvRef("PORT", int)
        assert sourced({"env": "port"}, int) == EnvRef("port", int)
        with pytest.raises(DeserializationError, match="Invalid 'upper_env'"):
            sourced({"upper_env": 1}, int)
