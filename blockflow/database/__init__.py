"""Persistence of saved automations."""

from .manager import DatabaseManager

__all__ = ["DatabaseManager"]
