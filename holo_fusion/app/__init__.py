"""Application entry point."""

from .master import FusionApplication, main, parse_args

__all__ = ["FusionApplication", "main", "parse_args"]
