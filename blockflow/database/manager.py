"""
Database manager for blockflow.

This module persists saved automations using DuckDB. Every save of an
automation whose content changed creates a new numbered version; the newest
version is the automation's current state.
"""

import duckdb
import hashlib
import json
import logging
import uuid
from typing import Dict, List, Optional, Sequence
from datetime import datetime

from ..models import AutomationRecord, AutomationVersion, Block


class DatabaseManager:
    """
    Manages the DuckDB database holding saved automations and their history.
    """

    def __init__(self, db_path: str = "blockflow.db"):
        """
        Initialize the database manager.

        Args:
            db_path: Path to the DuckDB database file (":memory:" for a throwaway one)
        """
        self.db_path = db_path
        self.connection = None

    def connect(self):
        """Establish connection to the database."""
        self.connection = duckdb.connect(self.db_path)

    def disconnect(self):
        """Close the database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()

    def _require_connection(self):
        if not self.connection:
            raise RuntimeError("Database connection not established")
        return self.connection

    def initialize_database(self):
        """
        Create all necessary tables if they don't exist.
        """
        connection = self._require_connection()

        connection.execute("""
            CREATE TABLE IF NOT EXISTS automation_versions (
                automation_id VARCHAR NOT NULL,
                version INTEGER NOT NULL,
                name VARCHAR NOT NULL,
                content_hash VARCHAR NOT NULL,
                blocks_json TEXT NOT NULL,
                block_count INTEGER NOT NULL,
                description TEXT,
                saved_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (automation_id, version)
            )
        """)

    def serialize_blocks(self, blocks: Sequence[Block]) -> str:
        """
        Serialize a block list to canonical JSON.

        Args:
            blocks: The blocks to serialize

        Returns:
            JSON with sorted keys, stable for hashing
        """
        data = [block.model_dump(mode="json") for block in blocks]
        return json.dumps(data, sort_keys=True, ensure_ascii=True)

    def calculate_content_hash(self, blocks: Sequence[Block]) -> str:
        """
        Calculate SHA-256 hash of a block list's canonical JSON representation.

        Args:
            blocks: The blocks to hash

        Returns:
            The SHA-256 hash as a hex string
        """
        json_str = self.serialize_blocks(blocks)
        return hashlib.sha256(json_str.encode('utf-8')).hexdigest()

    def save_automation(self, name: str, blocks: Sequence[Block],
                        automation_id: Optional[str] = None,
                        description: Optional[str] = None) -> AutomationRecord:
        """
        Save an automation, creating a new version when its content changed.

        Args:
            name: Display name of the automation
            blocks: The validated block list
            automation_id: Existing automation to add a version to; a new id is
                generated when omitted
            description: Optional note for the version history

        Returns:
            The stored (or unchanged current) version
        """
        connection = self._require_connection()

        automation_id = automation_id or str(uuid.uuid4())
        blocks_json = self.serialize_blocks(blocks)
        content_hash = self.calculate_content_hash(blocks)

        latest = connection.execute("""
            SELECT version, name, content_hash
            FROM automation_versions
            WHERE automation_id = ?
            ORDER BY version DESC
            LIMIT 1
        """, [automation_id]).fetchone()

        if latest and latest[1] == name and latest[2] == content_hash:
            logging.info(f"No changes detected for automation {automation_id}")
            return self.load_automation(automation_id, latest[0])  # type: ignore[return-value]

        version = latest[0] + 1 if latest else 1
        saved_at = datetime.now()

        connection.execute("""
            INSERT INTO automation_versions
                (automation_id, version, name, content_hash, blocks_json, block_count, description, saved_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, [
            automation_id,
            version,
            name,
            content_hash,
            blocks_json,
            len(blocks),
            description,
            saved_at
        ])

        logging.info(f"Saved automation '{name}' ({automation_id}) as version {version}")

        return AutomationRecord(
            automation_id=automation_id,
            name=name,
            version=version,
            blocks=[block.model_copy(deep=True) for block in blocks],
            description=description,
            saved_at=saved_at
        )

    def load_automation(self, automation_id: str,
                        version: Optional[int] = None) -> Optional[AutomationRecord]:
        """
        Retrieve a stored automation.

        Args:
            automation_id: The automation to load
            version: A specific version; the newest one when omitted

        Returns:
            The automation version if found, None otherwise
        """
        connection = self._require_connection()

        if version is None:
            result = connection.execute("""
                SELECT automation_id, version, name, blocks_json, description, saved_at
                FROM automation_versions
                WHERE automation_id = ?
                ORDER BY version DESC
                LIMIT 1
            """, [automation_id]).fetchone()
        else:
            result = connection.execute("""
                SELECT automation_id, version, name, blocks_json, description, saved_at
                FROM automation_versions
                WHERE automation_id = ? AND version = ?
            """, [automation_id, version]).fetchone()

        if result:
            return self._row_to_record(result)
        return None

    def list_automations(self) -> List[AutomationRecord]:
        """
        List the current version of every stored automation.

        Returns:
            Automations ordered by name
        """
        connection = self._require_connection()

        results = connection.execute("""
            SELECT v.automation_id, v.version, v.name, v.blocks_json, v.description, v.saved_at
            FROM automation_versions v
            WHERE v.version = (
                SELECT MAX(version) FROM automation_versions
                WHERE automation_id = v.automation_id
            )
            ORDER BY v.name, v.automation_id
        """).fetchall()

        return [self._row_to_record(row) for row in results]

    def get_versions(self, automation_id: str, limit: Optional[int] = None) -> List[AutomationVersion]:
        """
        Get the version history of an automation, newest first.

        Args:
            automation_id: The automation
            limit: Maximum number of versions to return

        Returns:
            Version summaries
        """
        connection = self._require_connection()

        query = """
            SELECT automation_id, version, content_hash, block_count, description, saved_at
            FROM automation_versions
            WHERE automation_id = ?
            ORDER BY version DESC
        """
        if limit is not None:
            query += f" LIMIT {int(limit)}"

        results = connection.execute(query, [automation_id]).fetchall()

        return [
            AutomationVersion(
                automation_id=row[0],
                version=row[1],
                content_hash=row[2],
                block_count=row[3],
                description=row[4],
                saved_at=row[5]
            )
            for row in results
        ]

    def delete_automation(self, automation_id: str) -> bool:
        """
        Delete an automation and its whole history.

        Returns:
            True if anything was deleted
        """
        connection = self._require_connection()

        existing = connection.execute("""
            SELECT COUNT(*) FROM automation_versions WHERE automation_id = ?
        """, [automation_id]).fetchone()

        if not existing or existing[0] == 0:
            return False

        connection.execute("""
            DELETE FROM automation_versions WHERE automation_id = ?
        """, [automation_id])
        logging.info(f"Deleted automation {automation_id} ({existing[0]} versions)")
        return True

    def get_database_stats(self) -> Dict[str, int]:
        """
        Get simple statistics about the stored automations.

        Returns:
            Dictionary with automation and version counts
        """
        connection = self._require_connection()

        row = connection.execute("""
            SELECT COUNT(DISTINCT automation_id), COUNT(*) FROM automation_versions
        """).fetchone()

        return {
            "automations": row[0] if row else 0,
            "versions": row[1] if row else 0
        }

    def _row_to_record(self, row) -> AutomationRecord:
        blocks = [Block.model_validate(item) for item in json.loads(row[3])]
        return AutomationRecord(
            automation_id=row[0],
            version=row[1],
            name=row[2],
            blocks=blocks,
            description=row[4],
            saved_at=row[5]
        )
