"""notetags: application-wide @tag cache for note editors."""

from notetags.version import __version__

__all__ = ["__version__"]
