"""Inclusion resolution over the permission catalog.

Computes which keys a given key grants through the catalog's "includes"
edges, transitively.
"""

import structlog

from pms_rbac.core.permissions.catalog import (
    DEFAULT_CATALOG,
    PermissionCatalog,
    PermissionKey,
)


logger = structlog.get_logger()


class InclusionResolver:
    """Transitive closure of the includes relation for one catalog.

    Closures are memoized; the catalog is immutable so they never go stale.
    Traversal keeps a visited set, so a cyclic includes graph terminates
    instead of recursing forever.
    """

    def __init__(self, catalog: PermissionCatalog = DEFAULT_CATALOG) -> None:
        self.catalog = catalog
        self._closures: dict[str, frozenset[PermissionKey]] = {}

    def resolve_includes(self, key: str) -> frozenset[PermissionKey]:
        """Get every key granted by ``key``, excluding ``key`` itself.

        Args:
            key: The starting permission key

        Returns:
            Deduplicated set of granted keys; empty for unknown keys or keys
            without includes
        """
        cached = self._closures.get(key)
        if cached is not None:
            return cached

        closure = self._walk(key)
        self._closures[key] = closure
        return closure

    def includes_key(self, parent_key: str, child_key: str) -> bool:
        """Check whether holding ``parent_key`` grants ``child_key``.

        Reflexive: every key includes itself, even one missing from the catalog.
        """
        if parent_key == child_key:
            return True
        return child_key in self.resolve_includes(parent_key)

    def _walk(self, start: str) -> frozenset[PermissionKey]:
        granted: set[PermissionKey] = set()
        visited: set[str] = {start}
        stack: list[str] = [start]

        while stack:
            current = stack.pop()
            definition = self.catalog.get_definition(current)
            if definition is None:
                continue
            for included in definition.includes:
                granted.add(included)
                if included in visited:
                    if included == start:
                        logger.warning("permission_include_cycle", key=start)
                    continue
                visited.add(included)
                stack.append(included)

        return frozenset(granted)


default_resolver = InclusionResolver()


def resolve_includes(key: str) -> frozenset[PermissionKey]:
    """Resolve ``key`` against the default catalog."""
    return default_resolver.resolve_includes(key)


def includes_key(parent_key: str, child_key: str) -> bool:
    """Check inclusion against the default catalog."""
    return default_resolver.includes_key(parent_key, child_key)
