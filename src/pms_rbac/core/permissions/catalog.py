"""Static permission catalog.

The catalog is the table of every permission key the application knows
about, arranged as module > page > button/data, plus "includes" edges
that let a coarse key grant finer ones (``system:admin`` includes
``user``, which includes ``user:view``, which includes ``user:read``).

It is built once at import time, validated on construction, and never
mutated afterwards.
"""

from collections.abc import Iterable, Iterator
from enum import Enum
from types import MappingProxyType
from typing import NewType

from pydantic import BaseModel, ConfigDict, Field

from pms_rbac.core.errors import CatalogValidationError


PermissionKey = NewType("PermissionKey", str)


class PermissionLevel(str, Enum):
    """Where a key sits in the hierarchy. Descriptive only."""

    MODULE = "module"
    PAGE = "page"
    BUTTON = "button"
    DATA = "data"


class PermissionDefinition(BaseModel):
    """A single catalog entry.

    Attributes:
        key: Globally unique, colon-delimited key (e.g. "project:budget:view")
        name: Display label
        description: Human-readable description
        category: Grouping label, not used in decisions
        level: Position in the hierarchy, not used in decisions
        parent: Key of the logically enclosing entry
        includes: Keys granted by holding this one, in declaration order
    """

    model_config = ConfigDict(frozen=True)

    key: PermissionKey
    name: str
    description: str
    category: str
    level: PermissionLevel
    parent: PermissionKey | None = None
    includes: tuple[PermissionKey, ...] = Field(default_factory=tuple)


class PermissionCatalog:
    """Read-only index over a set of permission definitions.

    Lookups on unknown keys return None or an empty list; they never raise.

    Raises:
        CatalogValidationError: On construction, if keys are duplicated or a
            parent/includes reference points at a missing key.
    """

    def __init__(self, definitions: Iterable[PermissionDefinition]) -> None:
        ordered = tuple(definitions)
        _validate_definitions(ordered)
        self._definitions = ordered
        self._by_key: MappingProxyType[str, PermissionDefinition] = MappingProxyType(
            {definition.key: definition for definition in ordered}
        )

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __iter__(self) -> Iterator[PermissionDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def keys(self) -> list[PermissionKey]:
        """All keys in declaration order."""
        return [definition.key for definition in self._definitions]

    def get_definition(self, key: str) -> PermissionDefinition | None:
        """Look up a definition by key.

        Args:
            key: The permission key

        Returns:
            The definition, or None for unknown keys
        """
        return self._by_key.get(key)

    def get_children(self, parent_key: str) -> list[PermissionDefinition]:
        """Get the entries grouped under a key.

        The entry whose own key equals ``parent_key`` is part of the result,
        so a module query returns the module itself followed by its pages.

        Args:
            parent_key: The enclosing key

        Returns:
            Matching definitions in declaration order
        """
        return [
            definition
            for definition in self._definitions
            if definition.parent == parent_key or definition.key == parent_key
        ]

    def get_by_category(self, category: str) -> list[PermissionDefinition]:
        """Get every entry carrying the given category label."""
        return [d for d in self._definitions if d.category == category]

    def get_keys_at_level(self, level: PermissionLevel | str) -> list[PermissionKey]:
        """Get the keys of every entry at the given level.

        Args:
            level: A PermissionLevel or its string value

        Returns:
            Keys in declaration order, empty for an unknown level
        """
        try:
            wanted = PermissionLevel(level)
        except ValueError:
            return []
        return [d.key for d in self._definitions if d.level is wanted]

    def module_keys(self) -> list[PermissionKey]:
        return self.get_keys_at_level(PermissionLevel.MODULE)

    def page_keys(self) -> list[PermissionKey]:
        return self.get_keys_at_level(PermissionLevel.PAGE)


def _validate_definitions(definitions: tuple[PermissionDefinition, ...]) -> None:
    """Check key uniqueness and that every reference resolves."""
    errors: list[dict[str, str]] = []
    seen: set[str] = set()

    for definition in definitions:
        if definition.key in seen:
            errors.append({"key": definition.key, "message": "duplicate key"})
        seen.add(definition.key)

    for definition in definitions:
        if definition.parent is not None and definition.parent not in seen:
            errors.append(
                {
                    "key": definition.key,
                    "message": f"parent '{definition.parent}' is not defined",
                }
            )
        for included in definition.includes:
            if included == definition.key:
                errors.append({"key": definition.key, "message": "includes itself"})
            elif included not in seen:
                errors.append(
                    {
                        "key": definition.key,
                        "message": f"includes undefined key '{included}'",
                    }
                )

    if errors:
        raise CatalogValidationError(
            f"Permission catalog has {len(errors)} invalid entries",
            errors=errors,
        )


def _entry(
    key: str,
    name: str,
    description: str,
    category: str,
    level: PermissionLevel,
    parent: str | None = None,
    includes: Iterable[str] = (),
) -> PermissionDefinition:
    return PermissionDefinition(
        key=PermissionKey(key),
        name=name,
        description=description,
        category=category,
        level=level,
        parent=PermissionKey(parent) if parent else None,
        includes=tuple(PermissionKey(k) for k in includes),
    )


def _crud_module(
    module: str,
    label: str,
    category: str,
    buttons: list[tuple[str, str, str]],
    read_description: str,
) -> list[PermissionDefinition]:
    """Build a module, its view page, its read data key and its buttons."""
    view = f"{module}:view"
    read = f"{module}:read"
    return [
        _entry(
            module,
            f"{label}管理",
            f"{label}管理模块",
            category,
            PermissionLevel.MODULE,
            includes=[view, *(f"{module}:{action}" for action, _, _ in buttons)],
        ),
        _entry(
            view,
            f"查看{label}",
            f"访问{label}管理页面，查看{label}列表和详情",
            category,
            PermissionLevel.PAGE,
            parent=module,
            includes=[read],
        ),
        _entry(
            read,
            f"读取{label}数据",
            read_description,
            category,
            PermissionLevel.DATA,
            parent=view,
        ),
        *(
            _entry(
                f"{module}:{action}",
                name,
                description,
                category,
                PermissionLevel.BUTTON,
                parent=view,
            )
            for action, name, description in buttons
        ),
    ]


def _project_section(
    section: str,
    label: str,
    read_label: str,
    buttons: list[tuple[str, str, str]],
) -> list[PermissionDefinition]:
    """Build a project sub-page (budget, payment, contract) and its children."""
    view = f"project:{section}:view"
    read = f"project:{section}:read"
    return [
        _entry(
            view,
            f"查看项目{label}",
            f"查看项目{label}信息",
            BUSINESS,
            PermissionLevel.PAGE,
            parent="project:view",
            includes=[read],
        ),
        _entry(
            read,
            f"读取{read_label}数据",
            f"查看{read_label}详细数据",
            BUSINESS,
            PermissionLevel.DATA,
            parent=view,
        ),
        *(
            _entry(
                f"project:{section}:{action}",
                name,
                description,
                BUSINESS,
                PermissionLevel.BUTTON,
                parent=view,
            )
            for action, name, description in buttons
        ),
    ]


BASIC = "基础模块"
SYSTEM = "系统管理"
BUSINESS = "业务管理"
BASIC_PERMISSIONS = "基础权限"

_PROJECT_SECTIONS = ("budget", "payment", "contract")

PERMISSION_DEFINITIONS: tuple[PermissionDefinition, ...] = (
    # Dashboard
    _entry(
        "dashboard",
        "仪表板",
        "系统仪表板模块",
        BASIC,
        PermissionLevel.MODULE,
        includes=["dashboard:view"],
    ),
    _entry(
        "dashboard:view",
        "查看仪表板",
        "访问和查看系统仪表板",
        BASIC,
        PermissionLevel.PAGE,
        parent="dashboard",
    ),
    # User management
    *_crud_module(
        "user",
        "用户",
        SYSTEM,
        [
            ("create", "新增用户", "创建新用户账号"),
            ("edit", "编辑用户", "修改用户信息"),
            ("delete", "删除用户", "删除用户账号"),
            ("reset_password", "重置密码", "重置用户密码"),
            ("assign_role", "分配角色", "为用户分配角色"),
            ("change_status", "修改状态", "启用/停用用户账号"),
        ],
        read_description="查看用户基本信息和列表数据",
    ),
    # Role management
    *_crud_module(
        "role",
        "角色",
        SYSTEM,
        [
            ("create", "新增角色", "创建新角色"),
            ("edit", "编辑角色", "修改角色信息和权限"),
            ("delete", "删除角色", "删除角色"),
            ("assign_permission", "分配权限", "为角色分配权限"),
        ],
        read_description="查看角色信息和权限配置",
    ),
    # Permission management
    *_crud_module(
        "permission",
        "权限",
        SYSTEM,
        [
            ("create", "新增权限", "创建新权限"),
            ("edit", "编辑权限", "修改权限信息"),
            ("delete", "删除权限", "删除权限"),
        ],
        read_description="查看权限信息",
    ),
    # Company management
    *_crud_module(
        "company",
        "公司",
        BUSINESS,
        [
            ("create", "新增公司", "创建新公司"),
            ("edit", "编辑公司", "修改公司信息"),
            ("delete", "删除公司", "删除公司"),
        ],
        read_description="查看公司信息",
    ),
    # Project management; the module also includes every sub-page directly
    _entry(
        "project",
        "项目管理",
        "项目管理模块",
        BUSINESS,
        PermissionLevel.MODULE,
        includes=[
            "project:view",
            "project:create",
            "project:edit",
            "project:delete",
            *(
                f"project:{section}:{action}"
                for section in _PROJECT_SECTIONS
                for action in ("view", "create", "edit", "delete")
            ),
        ],
    ),
    *_crud_module(
        "project",
        "项目",
        BUSINESS,
        [
            ("create", "新增项目", "创建新项目"),
            ("edit", "编辑项目", "修改项目信息"),
            ("delete", "删除项目", "删除项目"),
        ],
        read_description="查看项目基本信息",
    )[1:],
    *_project_section(
        "budget",
        "预算",
        "预算",
        [
            ("create", "新增预算项", "创建新的预算项"),
            ("edit", "编辑预算项", "修改预算项信息"),
            ("delete", "删除预算项", "删除预算项"),
        ],
    ),
    *_project_section(
        "payment",
        "收付款",
        "收付款",
        [
            ("create", "新增收付款记录", "创建新的收付款记录"),
            ("edit", "编辑收付款记录", "修改收付款记录"),
            ("delete", "删除收付款记录", "删除收付款记录"),
        ],
    ),
    *_project_section(
        "contract",
        "合同",
        "合同",
        [
            ("create", "新增合同", "创建新的合同"),
            ("edit", "编辑合同", "修改合同信息"),
            ("delete", "删除合同", "删除合同"),
        ],
    ),
    # Composite permissions
    _entry(
        "system:admin",
        "系统管理员",
        "系统管理员权限，包含用户、角色、权限管理",
        SYSTEM,
        PermissionLevel.MODULE,
        includes=["user", "role", "permission"],
    ),
    _entry(
        "business:admin",
        "业务管理员",
        "业务管理员权限，包含公司、项目管理",
        BUSINESS,
        PermissionLevel.MODULE,
        includes=["company", "project"],
    ),
    _entry(
        "readonly",
        "只读权限",
        "所有模块的只读权限",
        BASIC_PERMISSIONS,
        PermissionLevel.MODULE,
        includes=[
            "dashboard:view",
            "user:view",
            "role:view",
            "permission:view",
            "company:view",
            "project:view",
            *(f"project:{section}:view" for section in _PROJECT_SECTIONS),
        ],
    ),
)

DEFAULT_CATALOG = PermissionCatalog(PERMISSION_DEFINITIONS)
