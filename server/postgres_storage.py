"""PostgreSQL storage implementation."""

import json
import logging
import os

import psycopg2
from psycopg2.extras import RealDictCursor

from core.interfaces import Storage, SLOTS

logger = logging.getLogger(__name__)


class PostgresStorage(Storage):
    """PostgreSQL-based slot storage: one JSONB row per slot."""

    def __init__(self, config_file: str = None, db_url: str = None):
        self.config_file = config_file or os.path.expanduser('~/.config/nihongo/config.json')
        self.db_url = db_url or os.environ.get(
            'DATABASE_URL',
            'postgresql://localhost:5432/nihongo'
        )
        self._conn = None
        self._initialized = False

    @property
    def conn(self):
        """Lazy connection initialization."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.db_url)
            if not self._initialized:
                self._init_db()
                self._initialized = True
        return self._conn

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._conn.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS learner_slots (
                    slot VARCHAR(64) PRIMARY KEY,
                    value JSONB NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
        self._conn.commit()

    def close(self):
        """Close the database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()

    def load_config(self) -> dict:
        if not os.path.exists(self.config_file):
            raise FileNotFoundError(
                f"Config file not found at {self.config_file}\n"
                f'Please create it with: {{"gemini_api_key": "YOUR_API_KEY_HERE"}}'
            )
        with open(self.config_file, 'r') as f:
            return json.load(f)

    def load(self, slot: str):
        if slot not in SLOTS:
            raise ValueError(f"Unknown storage slot: {slot}")
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    "SELECT value FROM learner_slots WHERE slot = %s",
                    (slot,)
                )
                row = cur.fetchone()
                if row:
                    return row['value']
                return None
        except Exception as e:
            logger.error(f"Error loading {slot}: {e}")
            return None

    def save(self, slot: str, value) -> None:
        if slot not in SLOTS:
            raise ValueError(f"Unknown storage slot: {slot}")
        try:
            with self.conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO learner_slots (slot, value, updated_at)
                    VALUES (%s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (slot)
                    DO UPDATE SET value = EXCLUDED.value, updated_at = CURRENT_TIMESTAMP
                """, (slot, json.dumps(value)))
            self.conn.commit()
        except Exception as e:
            logger.error(f"Error saving {slot}: {e}")
            self.conn.rollback()
            raise
