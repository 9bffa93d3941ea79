"""Version and name of the installed litestar-ct-filing distribution."""

from __future__ import annotations

import importlib.metadata

__all__ = ("__project__", "__version__")

__version__ = importlib.metadata.version("litestar-ct-filing")
"""Version of the project."""
__project__ = importlib.metadata.metadata("litestar-ct-filing")["Name"]
"""Name of the project."""
