"""
Version history for blockflow automations.

This module reads the numbered versions the database keeps for every saved
automation and restores older ones. Restoring never rewrites history: the old
content is saved again as the newest version.
"""

import logging
from typing import Any, Dict, List, Optional

from ..database import DatabaseManager
from ..models import AutomationRecord


class VersionManager:
    """
    Browses and restores the saved versions of automations.
    """

    def __init__(self, database: DatabaseManager):
        """
        Initialize the version manager.

        Args:
            database: A connected, initialized DatabaseManager
        """
        self.db = database

    def get_version_history(self, automation_id: str, limit: int = 10) -> List[dict]:
        """
        Get the version history of an automation.

        Args:
            automation_id: The automation
            limit: Maximum number of versions to return

        Returns:
            List of version information dictionaries, newest first
        """
        versions = self.db.get_versions(automation_id, limit=limit)
        if not versions:
            logging.info(f"No saved versions for automation {automation_id}")
            return []

        current = versions[0].version
        return [
            {
                'version': version.version,
                'short_hash': version.content_hash[:8],
                'description': version.description or "",
                'date': version.saved_at.isoformat() if version.saved_at else None,
                'blocks': version.block_count,
                'is_current': version.version == current
            }
            for version in versions
        ]

    def restore_version(self, automation_id: str, version: int,
                        description: Optional[str] = None) -> Optional[AutomationRecord]:
        """
        Make an older version current again.

        Args:
            automation_id: The automation
            version: The version to restore
            description: Note for the new version (defaults to "Restored version N")

        Returns:
            The new current version, or None if the version does not exist
        """
        record = self.db.load_automation(automation_id, version)
        if not record:
            logging.error(f"Version {version} of automation {automation_id} not found")
            return None

        restored = self.db.save_automation(
            record.name,
            record.blocks,
            automation_id=automation_id,
            description=description or f"Restored version {version}"
        )
        logging.info(f"Restored version {version} of {automation_id} as version {restored.version}")
        return restored

    def get_status(self, automation_id: str) -> Dict[str, Any]:
        """
        Get the current state of an automation's history.

        Returns:
            Dictionary with status information
        """
        versions = self.db.get_versions(automation_id)
        if not versions:
            return {"error": f"Automation {automation_id} not found"}

        current = self.db.load_automation(automation_id)
        return {
            'name': current.name if current else None,
            'current_version': versions[0].version,
            'total_versions': len(versions),
            'last_saved': versions[0].saved_at.isoformat() if versions[0].saved_at else None,
            'blocks': versions[0].block_count
        }
