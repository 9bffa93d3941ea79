"""Core protocols for litestar-ct-filing.

These are the narrow interfaces the engine consumes from its collaborators.
Using Protocol keeps the collaborators swappable: any callable or object with a
matching shape will do.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from litestar.connection import ASGIConnection


__all__ = ["FilingExporter", "PermissionChecker"]


@runtime_checkable
class FilingExporter(Protocol):
    """Produces a document (PDF, spreadsheet, ...) from a submitted filing.

    Example:
        >>> class PdfExporter:
        ...     def export(self, payload: dict[str, Any]) -> bytes:
        ...         return render_pdf(payload)
    """

    def export(self, payload: dict[str, Any]) -> bytes:
        """Render the filing payload to a binary artifact.

        Args:
            payload: Filing metadata plus the data of every submitted step.

        Returns:
            The rendered artifact.
        """
        ...


class PermissionChecker(Protocol):
    """Answers whether the caller behind a connection may perform an action.

    The engine itself never checks permissions; the web layer consults this
    before invoking operations.
    """

    def __call__(self, connection: ASGIConnection[Any, Any, Any, Any], action: str) -> bool:
        """Check a permission.

        Args:
            connection: The incoming request or websocket connection.
            action: Permission name, e.g. ``"ct-filing:edit"``.

        Returns:
            True if the action is allowed.
        """
        ...
