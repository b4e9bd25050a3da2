from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from .cache import PermissionCache
from .permission import Permission, limited_permission
from .permission_resolver import PermissionResolver


LOGGER = logging.getLogger(__name__)


class GroupLookupError(Exception):
    """Raised when a user's group memberships cannot be fetched."""


class GroupSource(Protocol):
    """Supplies the group display names a user belongs to.

    Implementations should raise ``GroupLookupError`` when the lookup fails.
    Any other exception is still treated as a failed lookup by
    ``permission_for_user``.
    """

    def groups_for(self, username: str) -> List[str]:
        ...


class InMemoryGroupDirectory:
    """Group memberships held in memory, keyed by username."""

    def __init__(self, memberships: Mapping[str, Iterable[str]]) -> None:
        self._memberships: Dict[str, List[str]] = {
            username: list(groups) for username, groups in memberships.items()
        }

    def groups_for(self, username: str) -> List[str]:
        if username not in self._memberships:
            raise GroupLookupError(f"No group memberships found for user '{username}'.")
        return list(self._memberships[username])


def permission_for_user(
    source: GroupSource,
    resolver: PermissionResolver,
    username: str,
    cache: Optional[PermissionCache] = None,
) -> Tuple[Permission, bool]:
    """Fetch a user's groups and resolve them, failing closed to ``limited``.

    Returns the permission and whether it came from ``cache``. Lookup failures
    are never cached.
    """
    try:
        groups = source.groups_for(username)
    except GroupLookupError as exc:
        LOGGER.warning("group_lookup_failed user=%s error=%s", username, exc)
        return limited_permission(), False
    except Exception as exc:
        LOGGER.exception("group_source_error user=%s error=%s", username, exc)
        return limited_permission(), False

    cached = cache.get(username, groups) if cache else None
    if cached is not None:
        return cached, True
    permission = resolver.resolve(groups)
    if cache:
        cache.set(username, groups, permission)
    return permission, False
