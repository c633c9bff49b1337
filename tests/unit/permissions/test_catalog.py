"""Unit tests for the permission catalog."""

import pytest

from pms_rbac.core.errors import CatalogValidationError
from pms_rbac.core.permissions.catalog import (
    DEFAULT_CATALOG,
    PermissionCatalog,
    PermissionDefinition,
    PermissionKey,
    PermissionLevel,
)


pytestmark = pytest.mark.unit


def _definition(key: str, parent: str | None = None, includes: tuple[str, ...] = ()):
    return PermissionDefinition(
        key=PermissionKey(key),
        name=key,
        description=key,
        category="test",
        level=PermissionLevel.MODULE,
        parent=parent,
        includes=includes,
    )


class TestDefaultCatalog:
    """Tests for the application's catalog contents."""

    def test_keys_are_unique(self):
        keys = DEFAULT_CATALOG.keys()
        assert len(keys) == len(set(keys))

    def test_every_reference_resolves(self):
        for definition in DEFAULT_CATALOG:
            if definition.parent is not None:
                assert definition.parent in DEFAULT_CATALOG
            for included in definition.includes:
                assert included in DEFAULT_CATALOG
                assert included != definition.key

    def test_get_definition(self):
        definition = DEFAULT_CATALOG.get_definition("project:budget:view")

        assert definition is not None
        assert definition.level is PermissionLevel.PAGE
        assert definition.parent == "project:view"
        assert definition.includes == ("project:budget:read",)

    def test_get_definition_unknown_key_returns_none(self):
        assert DEFAULT_CATALOG.get_definition("does:not:exist") is None

    def test_composite_keys(self):
        system_admin = DEFAULT_CATALOG.get_definition("system:admin")
        business_admin = DEFAULT_CATALOG.get_definition("business:admin")
        readonly = DEFAULT_CATALOG.get_definition("readonly")

        assert system_admin.includes == ("user", "role", "permission")
        assert business_admin.includes == ("company", "project")
        assert "project:contract:view" in readonly.includes
        assert "user:create" not in readonly.includes

    def test_project_module_includes_sub_pages_directly(self):
        project = DEFAULT_CATALOG.get_definition("project")

        assert project.includes[:4] == (
            "project:view",
            "project:create",
            "project:edit",
            "project:delete",
        )
        assert "project:payment:delete" in project.includes
        assert "project:read" not in project.includes

    def test_get_children_includes_the_node_itself(self):
        children = DEFAULT_CATALOG.get_children("user")

        assert [d.key for d in children] == ["user", "user:view"]

    def test_get_children_of_page(self):
        keys = [d.key for d in DEFAULT_CATALOG.get_children("user:view")]

        assert keys[0] == "user:view"
        assert "user:read" in keys
        assert "user:change_status" in keys
        assert "user" not in keys

    def test_get_children_unknown_key(self):
        assert DEFAULT_CATALOG.get_children("nothing") == []

    def test_get_by_category(self):
        keys = {d.key for d in DEFAULT_CATALOG.get_by_category("基础模块")}

        assert keys == {"dashboard", "dashboard:view"}
        assert DEFAULT_CATALOG.get_by_category("unknown") == []

    def test_module_keys(self):
        assert DEFAULT_CATALOG.module_keys() == [
            "dashboard",
            "user",
            "role",
            "permission",
            "company",
            "project",
            "system:admin",
            "business:admin",
            "readonly",
        ]

    def test_page_keys(self):
        pages = DEFAULT_CATALOG.page_keys()

        assert "dashboard:view" in pages
        assert "project:budget:view" in pages
        assert "project:budget:read" not in pages

    def test_get_keys_at_level_accepts_strings(self):
        assert DEFAULT_CATALOG.get_keys_at_level("data") == DEFAULT_CATALOG.get_keys_at_level(
            PermissionLevel.DATA
        )
        assert DEFAULT_CATALOG.get_keys_at_level("widget") == []

    def test_definitions_are_immutable(self):
        definition = DEFAULT_CATALOG.get_definition("dashboard")

        with pytest.raises(Exception):
            definition.includes = ()


class TestCatalogValidation:
    """Tests for load-time validation."""

    def test_valid_catalog(self):
        catalog = PermissionCatalog(
            [_definition("a", includes=("b",)), _definition("b", parent="a")]
        )

        assert len(catalog) == 2
        assert "a" in catalog

    def test_duplicate_key_rejected(self):
        with pytest.raises(CatalogValidationError) as exc_info:
            PermissionCatalog([_definition("a"), _definition("a")])

        assert exc_info.value.details["errors"][0]["message"] == "duplicate key"

    def test_unknown_parent_rejected(self):
        with pytest.raises(CatalogValidationError):
            PermissionCatalog([_definition("a:view", parent="a")])

    def test_unknown_include_rejected(self):
        with pytest.raises(CatalogValidationError) as exc_info:
            PermissionCatalog([_definition("a", includes=("missing",))])

        assert "missing" in exc_info.value.details["errors"][0]["message"]

    def test_self_include_rejected(self):
        with pytest.raises(CatalogValidationError):
            PermissionCatalog([_definition("a", includes=("a",))])

    def test_indirect_cycle_allowed(self):
        catalog = PermissionCatalog(
            [_definition("a", includes=("b",)), _definition("b", includes=("a",))]
        )

        assert catalog.keys() == ["a", "b"]

    def test_error_lists_every_problem(self):
        with pytest.raises(CatalogValidationError) as exc_info:
            PermissionCatalog(
                [
                    _definition("a", parent="x", includes=("y",)),
                    _definition("a"),
                ]
            )

        assert len(exc_info.value.details["errors"]) == 3
