"""Startup validation of persisted permissions against the catalog.

Persisted permission names and catalog keys are matched by string
equality. A persisted name missing from the catalog never takes part in
inclusion resolution, which usually means a typo or a stale row; this
module reports such names when the application starts.
"""

from collections.abc import Iterable

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pms_rbac.core.errors import CatalogValidationError
from pms_rbac.core.permissions.catalog import DEFAULT_CATALOG, PermissionCatalog
from pms_rbac.core.permissions.models import Permission


logger = structlog.get_logger()


def find_unknown_permissions(
    names: Iterable[str],
    catalog: PermissionCatalog = DEFAULT_CATALOG,
) -> list[str]:
    """Get the names that have no catalog entry, sorted and deduplicated."""
    return sorted({name for name in names if name not in catalog})


async def verify_assigned_permissions(
    session: AsyncSession,
    catalog: PermissionCatalog = DEFAULT_CATALOG,
    strict: bool = True,
) -> list[str]:
    """Check every persisted permission name against the catalog.

    Args:
        session: Database session
        catalog: Catalog the names should resolve in
        strict: Raise instead of only logging when names are unknown

    Returns:
        The unknown names (empty when everything matches)

    Raises:
        CatalogValidationError: If ``strict`` and any name is unknown
    """
    result = await session.execute(select(Permission.name))
    unknown = find_unknown_permissions(result.scalars().all(), catalog)

    for name in unknown:
        logger.warning("permission_not_in_catalog", permission=name)

    if unknown and strict:
        raise CatalogValidationError(
            f"{len(unknown)} persisted permissions have no catalog entry",
            errors=[
                {"permission": name, "message": "no catalog entry"} for name in unknown
            ],
        )

    logger.info("permission_catalog_verified", unknown=len(unknown), strict=strict)
    return unknown
