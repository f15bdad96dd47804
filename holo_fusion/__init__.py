"""Top-level package for holo-fusion."""

from __future__ import annotations

import asyncio
from importlib import metadata
from typing import Optional, Sequence

from .app.master import main

try:
    __version__ = metadata.version("holo-fusion")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


def run(argv: Optional[Sequence[str]] = None) -> None:
    """Run the async entry point and exit with its status."""
    raise SystemExit(asyncio.run(main(list(argv) if argv is not None else None)))


__all__ = ["__version__", "main", "run"]
