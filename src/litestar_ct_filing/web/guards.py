"""Permission guard for CT filing endpoints.

Route handlers declare the permission they need in ``opt["permission"]``; the
guard asks the configured :class:`~litestar_ct_filing.core.protocols.PermissionChecker`
before the handler runs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from litestar.exceptions import PermissionDeniedException

if TYPE_CHECKING:
    from litestar.connection import ASGIConnection
    from litestar.handlers.base import BaseRouteHandler
    from litestar.types import Guard

    from litestar_ct_filing.core.protocols import PermissionChecker

__all__ = ["EDIT_PERMISSION", "VIEW_PERMISSION", "permission_guard"]

VIEW_PERMISSION = "ct-filing:view"
"""Permission required to read CT filing data."""

EDIT_PERMISSION = "ct-filing:edit"
"""Permission required to change CT filing data."""


def permission_guard(checker: PermissionChecker) -> Guard:
    """Build a guard that enforces each handler's ``opt["permission"]``.

    Handlers without a permission in ``opt`` are not restricted.

    Args:
        checker: Callable answering whether a connection may perform an action.

    Returns:
        A Litestar guard.

    Example:
        >>> def has_permission(connection, action):
        ...     return action in connection.user.permissions
        >>> guard = permission_guard(has_permission)
    """

    def guard(connection: ASGIConnection[Any, Any, Any, Any], route_handler: BaseRouteHandler) -> None:
        action = route_handler.opt.get("permission")
        if action and not checker(connection, action):
            raise PermissionDeniedException(detail=f"Missing permission '{action}'")

    return guard
