"""Live update server for Code Warden.

The hub and event types are dependency-free and used by the scan pipeline
directly.  Only the Starlette application and ``code-warden serve`` need
the optional ``[serve]`` extra::

    pip install code-warden[serve]
"""

from __future__ import annotations

import importlib

SERVE_MODULES = ("starlette", "uvicorn")


def _check_deps() -> None:
    """Raise ImportError naming every missing ``[serve]`` module."""
    missing = []
    for module in SERVE_MODULES:
        try:
            importlib.import_module(module)
        except ImportError:
            missing.append(module)

    if missing:
        raise ImportError(
            f"code-warden serve needs {', '.join(missing)}. "
            "Install with: pip install code-warden[serve]"
        )
