"""Version history of saved automations."""

from .manager import VersionManager

__all__ = ["VersionManager"]
