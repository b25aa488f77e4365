"""Tests for the type system."""

import pytest

from typed_fragments.types import (
    EnumTypeDefinition,
    Field,
    InterfaceTypeDefinition,
    ObjectTypeDefinition,
    ScalarTypeDefinition,
    TypeReference,
    TypeRegistry,
    UnionTypeDefinition,
)


class TestTypeReference:
    """Tests for TypeReference."""

    def test_named(self):
        """Test named references."""
        ref = TypeReference.named("User", nullable=False)

        assert ref.name == "User"
        assert not ref.is_nullable
        assert not ref.is_list
        assert ref.base_name == "User"
        assert str(ref) == "User!"

    def test_list(self):
        """Test list references and base name unwrapping."""
        ref = TypeReference.list_of(
            TypeReference.list_of(TypeReference.named("Int", nullable=False)), nullable=False
        )

        assert ref.is_list
        assert ref.base_name == "Int"
        assert str(ref) == "[[Int!]]!"

    def test_with_nullable(self):
        """Test copying with different nullability."""
        ref = TypeReference.named("ID", nullable=False)

        assert ref.with_nullable(True) == TypeReference.named("ID")
        assert ref == TypeReference.named("ID", nullable=False)

    def test_invalid(self):
        """Test that malformed references are rejected."""
        with pytest.raises(ValueError):
            TypeReference(is_list=True)
        with pytest.raises(ValueError):
            TypeReference(name="")

    def test_hashable(self):
        """Test references can be used as keys."""
        assert len({TypeReference.named("A"), TypeReference.named("A")}) == 1


class TestTypeRegistry:
    """Tests for TypeRegistry."""

    def test_builtins(self):
        """Test that built-in scalars are pre-registered."""
        registry = TypeRegistry()

        for name in ("String", "Int", "Float", "Boolean", "ID"):
            td = registry.get(name)
            assert isinstance(td, ScalarTypeDefinition)
            assert td.builtin
            assert td.is_scalar
        assert len(registry) == 5

    def test_register_and_get(self):
        """Test registering and looking up definitions."""
        registry = TypeRegistry()
        user = ObjectTypeDefinition(name="User")
        registry.register(user)

        assert registry.get("User") is user
        assert registry.get_or_raise("User") is user
        assert registry.get("Missing") is None
        assert "User" in registry
        assert registry.list_types()[-1] == "User"

    def test_get_or_raise_missing(self):
        """Test error on a missing type."""
        with pytest.raises(KeyError):
            TypeRegistry().get_or_raise("Missing")

    def test_duplicate(self):
        """Test that duplicate names are rejected."""
        registry = TypeRegistry()
        registry.register(ObjectTypeDefinition(name="User"))

        with pytest.raises(ValueError, match="already defined"):
            registry.register(EnumTypeDefinition(name="User"))

    def test_builtin_scalar_redeclared(self):
        """Test that redeclaring a built-in scalar keeps the built-in."""
        registry = TypeRegistry()
        registry.register(ScalarTypeDefinition(name="Int"))

        assert registry.get("Int").builtin

    def test_builtin_replaced_by_other_kind(self):
        """Test that a built-in name cannot become an object type."""
        with pytest.raises(ValueError):
            TypeRegistry().register(ObjectTypeDefinition(name="String"))

    def test_find_implementing_types(self):
        """Test implementations are listed in definition order."""
        registry = TypeRegistry()
        registry.register(InterfaceTypeDefinition(name="Node"))
        registry.register(ObjectTypeDefinition(name="B", interfaces=["Node"]))
        registry.register(ObjectTypeDefinition(name="A", interfaces=["Node"]))
        registry.register(ObjectTypeDefinition(name="C"))

        assert registry.find_implementing_types("Node") == ["B", "A"]

    def test_kind_predicates(self):
        """Test kind predicates on definitions."""
        assert InterfaceTypeDefinition(name="I").is_abstract
        assert UnionTypeDefinition(name="U").is_abstract
        assert not ObjectTypeDefinition(name="O").is_abstract
        assert EnumTypeDefinition(name="E").is_enum


class TestField:
    """Tests for fragment field nodes."""

    def test_plain_field(self):
        """Test a scalar field."""
        f = Field(name="id")

        assert not f.is_object
        assert not f.is_fragment_spread
        assert not f.is_type_conditional

    def test_object_field(self):
        """Test a field with a sub-selection."""
        assert Field(name="posts", selection=[Field(name="title")]).is_object

    def test_spread(self):
        """Test a pure fragment spread entry."""
        f = Field(fragment_spreads=["UserParts"])

        assert f.is_fragment_spread
        assert not f.is_object

    def test_type_conditional(self):
        """Test a type-conditional entry."""
        f = Field(type_condition="Article", selection=[Field(name="body")])

        assert f.is_type_conditional
        assert not f.is_fragment_spread
        assert not f.is_object
