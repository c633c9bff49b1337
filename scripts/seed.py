#!/usr/bin/env python
"""
Seed the database with the default permissions, roles and users.
"""

import argparse
import asyncio
import sys

from pms_rbac.config import settings
from pms_rbac.core.database import Base, get_db, get_engine
from pms_rbac.core.errors import CatalogValidationError
from pms_rbac.core.logging import configure_logging
from pms_rbac.core.permissions.validation import verify_assigned_permissions
from pms_rbac.core.seeding import seed_rbac


async def seed(create_tables: bool) -> int:
    """Create tables if asked, seed, then verify persisted names.

    Returns:
        Process exit code
    """
    if create_tables:
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    # Seeded rows are committed before the catalog check runs
    async for session in get_db():
        created = await seed_rbac(session)
        print(
            f"Created {created['permissions']} permissions, "
            f"{created['roles']} roles, {created['users']} users"
        )

    exit_code = 0
    async for session in get_db():
        try:
            await verify_assigned_permissions(session, strict=settings.strict_catalog)
        except CatalogValidationError as exc:
            print(f"Catalog check failed: {exc.message}")
            for error in exc.details.get("errors", []):
                print(f"  - {error['permission']}")
            exit_code = 1

    await get_engine().dispose()
    return exit_code


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed default RBAC data")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before seeding",
    )
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(seed(args.create_tables)))
