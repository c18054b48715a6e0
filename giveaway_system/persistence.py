"""
Giveaway Persistence
Wholesale snapshots of the active giveaway set, to a JSON file or a SQL table
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from .errors import PersistenceError
from .models import Drawing

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Interface for durable giveaway snapshots"""

    def load(self) -> List[Drawing]:
        raise NotImplementedError

    def save(self, drawings: List[Drawing]) -> None:
        raise NotImplementedError


def drawings_from_records(records) -> List[Drawing]:
    try:
        return [Drawing.from_record(record) for record in records]
    except (KeyError, TypeError, ValueError) as e:
        raise PersistenceError(f"Malformed giveaway record in snapshot: {e}") from e


class JsonFileSnapshotStore(SnapshotStore):
    """Stores the snapshot as one JSON document, replaced atomically on save"""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> List[Drawing]:
        if not self.path.exists():
            logger.info(f"No giveaway state at {self.path}, starting empty")
            return []

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to read {self.path}: {e}") from e

        if not raw.strip():
            return []

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Giveaway state {self.path} is not valid JSON: {e}") from e

        if not isinstance(document, dict) or not isinstance(document.get("giveaways", []), list):
            raise PersistenceError(f"Giveaway state {self.path} has an unexpected layout")

        drawings = drawings_from_records(document.get("giveaways", []))
        logger.info(f"Loaded {len(drawings)} active giveaways from {self.path}")
        return drawings

    def save(self, drawings: List[Drawing]) -> None:
        document = {"giveaways": [drawing.to_record() for drawing in drawings]}
        directory = self.path.parent
        tmp_path = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(document, tmp, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError(f"Failed to write {self.path}: {e}") from e

        logger.debug(f"Saved {len(drawings)} giveaways to {self.path}")


class DatabaseSnapshotStore(SnapshotStore):
    """Stores the snapshot in a SQL table that is rewritten on every save"""

    def __init__(self, database_or_engine):
        if isinstance(database_or_engine, str):
            database_url = database_or_engine
            # Heroku style URLs
            if database_url.startswith("postgres://"):
                database_url = database_url.replace("postgres://", "postgresql://", 1)
            try:
                self.engine = create_engine(database_url, pool_pre_ping=True)
            except (SQLAlchemyError, ImportError) as e:
                raise PersistenceError(f"Failed to create database engine: {e}") from e
        else:
            self.engine = database_or_engine
        self._init_database()

    def _init_database(self):
        """Create giveaway_snapshot table if it doesn't exist"""
        try:
            with self.engine.begin() as conn:
                conn.execute(text("""
                    CREATE TABLE IF NOT EXISTS giveaway_snapshot (
                        id BIGINT PRIMARY KEY,
                        position INTEGER NOT NULL,
                        title TEXT NOT NULL,
                        announcement_ref BIGINT NOT NULL,
                        channel_ref BIGINT NOT NULL,
                        community_ref BIGINT NOT NULL,
                        symbol TEXT NOT NULL,
                        deadline TEXT,
                        winner_count INTEGER NOT NULL,
                        participants TEXT NOT NULL
                    )
                """))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to initialize giveaway_snapshot table: {e}") from e

    def load(self) -> List[Drawing]:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text("""
                    SELECT id, title, announcement_ref, channel_ref, community_ref,
                           symbol, deadline, winner_count, participants
                    FROM giveaway_snapshot
                    ORDER BY position
                """)).fetchall()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read giveaway_snapshot: {e}") from e

        records = []
        for row in rows:
            record = dict(row._mapping)
            try:
                record["participants"] = json.loads(record["participants"] or "[]")
            except json.JSONDecodeError as e:
                raise PersistenceError(f"Corrupt participants for giveaway {record['id']}: {e}") from e
            records.append(record)

        drawings = drawings_from_records(records)
        logger.info(f"Loaded {len(drawings)} active giveaways from database")
        return drawings

    def save(self, drawings: List[Drawing]) -> None:
        rows = []
        for position, drawing in enumerate(drawings):
            record = drawing.to_record()
            record["position"] = position
            record["participants"] = json.dumps(record["participants"])
            rows.append(record)

        try:
            with self.engine.begin() as conn:
                conn.execute(text("DELETE FROM giveaway_snapshot"))
                if rows:
                    conn.execute(text("""
                        INSERT INTO giveaway_snapshot
                            (id, position, title, announcement_ref, channel_ref, community_ref,
                             symbol, deadline, winner_count, participants)
                        VALUES
                            (:id, :position, :title, :announcement_ref, :channel_ref, :community_ref,
                             :symbol, :deadline, :winner_count, :participants)
                    """), rows)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to write giveaway_snapshot: {e}") from e

        logger.debug(f"Saved {len(drawings)} giveaways to database")


def create_snapshot_store(state_file, database_url=None) -> SnapshotStore:
    """Pick the SQL backend when a database URL is configured, else the JSON file"""
    if database_url:
        logger.info(f"📊 Using database snapshot store: {database_url.split('@')[-1]}")
        return DatabaseSnapshotStore(database_url)
    logger.info(f"📁 Using file snapshot store: {state_file}")
    return JsonFileSnapshotStore(state_file)
