"""Unit tests for inclusion resolution."""

import pytest

from pms_rbac.core.permissions.catalog import (
    DEFAULT_CATALOG,
    PermissionCatalog,
    PermissionDefinition,
    PermissionKey,
    PermissionLevel,
)
from pms_rbac.core.permissions.resolver import (
    InclusionResolver,
    includes_key,
    resolve_includes,
)


pytestmark = pytest.mark.unit


def _catalog(edges: dict[str, tuple[str, ...]]) -> PermissionCatalog:
    return PermissionCatalog(
        PermissionDefinition(
            key=PermissionKey(key),
            name=key,
            description=key,
            category="test",
            level=PermissionLevel.BUTTON,
            includes=includes,
        )
        for key, includes in edges.items()
    )


class TestResolveIncludes:
    """Tests for the transitive closure."""

    @pytest.fixture
    def resolver(self) -> InclusionResolver:
        return InclusionResolver(DEFAULT_CATALOG)

    def test_unknown_key_is_empty(self, resolver: InclusionResolver):
        assert resolver.resolve_includes("no:such:key") == frozenset()

    def test_leaf_key_is_empty(self, resolver: InclusionResolver):
        assert resolver.resolve_includes("user:delete") == frozenset()

    def test_single_level(self, resolver: InclusionResolver):
        assert resolver.resolve_includes("user:view") == {"user:read"}

    def test_module_expands_to_pages_and_data(self, resolver: InclusionResolver):
        closure = resolver.resolve_includes("user")

        assert "user:view" in closure
        assert "user:read" in closure
        assert "user:assign_role" in closure
        assert "user" not in closure

    def test_three_levels(self, resolver: InclusionResolver):
        closure = resolver.resolve_includes("system:admin")

        assert {"user", "user:view", "user:read"} <= closure
        assert {"role:assign_permission", "permission:read"} <= closure
        assert "project:view" not in closure

    def test_budget_chain(self, resolver: InclusionResolver):
        closure = resolver.resolve_includes("project")

        assert "project:budget:view" in closure
        assert "project:budget:read" in closure

    def test_result_is_deduplicated(self):
        resolver = InclusionResolver(
            _catalog({"top": ("left", "right"), "left": ("leaf",), "right": ("leaf",), "leaf": ()})
        )

        closure = resolver.resolve_includes("top")

        assert closure == {"left", "right", "leaf"}
        assert isinstance(closure, frozenset)

    def test_cycle_terminates(self):
        resolver = InclusionResolver(
            _catalog({"a": ("b",), "b": ("c",), "c": ("a",)})
        )

        assert resolver.resolve_includes("a") == {"a", "b", "c"}
        assert resolver.resolve_includes("b") == {"a", "b", "c"}

    def test_closures_are_memoized(self, resolver: InclusionResolver):
        first = resolver.resolve_includes("business:admin")

        assert resolver.resolve_includes("business:admin") is first


class TestIncludesKey:
    """Tests for includes_key."""

    @pytest.mark.parametrize("key", ["dashboard", "project:budget:view", "not:in:catalog"])
    def test_reflexive(self, key: str):
        assert includes_key(key, key) is True

    def test_transitive(self):
        assert includes_key("system:admin", "user")
        assert includes_key("user", "user:view")
        assert includes_key("user:view", "user:read")
        assert includes_key("system:admin", "user:read")

    def test_project_budget_transitive(self):
        assert includes_key("project", "project:budget:view")
        assert includes_key("project:budget:view", "project:budget:read")
        assert includes_key("project", "project:budget:read")

    def test_not_symmetric(self):
        assert includes_key("user:read", "user:view") is False
        assert includes_key("user", "system:admin") is False

    def test_readonly_grants_views_only(self):
        assert includes_key("readonly", "project:view")
        assert includes_key("readonly", "project:read")
        assert includes_key("readonly", "project:create") is False

    def test_module_function_matches_default_resolver(self):
        assert resolve_includes("dashboard") == {"dashboard:view"}
