"""Settings and logging shared by every stage."""

from droidpack.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
