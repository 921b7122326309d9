"""
Schema and migration management for SQLite database.
"""

import logging
import sqlite3

logger = logging.getLogger("wager_bot.schema")


class SchemaManager:
    """
    Owns schema creation and migrations.

    Call initialize() to ensure schema is present and migrations are applied.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    def initialize(self) -> None:
        """Create base schema and apply migrations."""
        logger.info(f"Initializing database schema: {self.db_path}")
        with self._connect() as conn:
            cursor = conn.cursor()
            self._create_base_schema(cursor)
            self._create_schema_migrations_table(cursor)
            self._run_migrations(cursor)
            conn.commit()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=5000")
        return conn

    def _create_base_schema(self, cursor) -> None:
        # Users and their aggregate stats
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                user_id INTEGER PRIMARY KEY,
                display_name TEXT,
                total_wagers INTEGER NOT NULL DEFAULT 0,
                wins INTEGER NOT NULL DEFAULT 0,
                losses INTEGER NOT NULL DEFAULT 0,
                total_staked REAL NOT NULL DEFAULT 0,
                total_returned REAL NOT NULL DEFAULT 0,
                total_lost REAL NOT NULL DEFAULT 0,
                net_profit REAL NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

        # Wagers with both sides inline; stakes are persisted at creation.
        # home_team/away_team/player_name/details are category-specific embed fields.
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS wagers (
                wager_id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL DEFAULT 0,
                creator_id INTEGER NOT NULL,
                category TEXT NOT NULL,
                description TEXT NOT NULL,
                base_amount REAL NOT NULL,
                home_team TEXT,
                away_team TEXT,
                player_name TEXT,
                details TEXT,
                side_a_description TEXT NOT NULL,
                side_a_odds REAL NOT NULL DEFAULT 2.0,
                side_a_stake REAL NOT NULL,
                side_a_to_win REAL NOT NULL,
                side_a_user_id INTEGER,
                side_b_description TEXT NOT NULL,
                side_b_odds REAL NOT NULL DEFAULT 2.0,
                side_b_stake REAL NOT NULL,
                side_b_to_win REAL NOT NULL,
                side_b_user_id INTEGER,
                status TEXT NOT NULL DEFAULT 'pending',
                winning_side TEXT,
                channel_id INTEGER,
                message_id INTEGER,
                created_at INTEGER NOT NULL,
                activated_at INTEGER,
                resolved_at INTEGER,
                cancelled_at INTEGER,
                FOREIGN KEY (creator_id) REFERENCES users(user_id),
                FOREIGN KEY (side_a_user_id) REFERENCES users(user_id),
                FOREIGN KEY (side_b_user_id) REFERENCES users(user_id)
            )
            """
        )

        # Pending resolve/cancel proposals on active wagers. A request is live
        # until expires_at; expired rows are ignored by queries and purged lazily.
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS consensus_requests (
                request_id INTEGER PRIMARY KEY AUTOINCREMENT,
                wager_id INTEGER NOT NULL,
                kind TEXT NOT NULL,
                proposer_id INTEGER NOT NULL,
                proposed_winner TEXT,
                side_a_confirmed INTEGER NOT NULL DEFAULT 0,
                side_b_confirmed INTEGER NOT NULL DEFAULT 0,
                channel_id INTEGER,
                message_id INTEGER,
                created_at INTEGER NOT NULL,
                expires_at INTEGER NOT NULL,
                FOREIGN KEY (wager_id) REFERENCES wagers(wager_id)
            )
            """
        )

        # One outstanding vote per participant per wager
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS consensus_votes (
                wager_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                choice TEXT NOT NULL,
                cast_at INTEGER NOT NULL,
                PRIMARY KEY (wager_id, user_id),
                FOREIGN KEY (wager_id) REFERENCES wagers(wager_id)
            )
            """
        )

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_wagers_status ON wagers(guild_id, status)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_wagers_creator ON wagers(creator_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_wagers_side_a ON wagers(side_a_user_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_wagers_side_b ON wagers(side_b_user_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_wagers_message ON wagers(message_id)")
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_consensus_requests_wager "
            "ON consensus_requests(wager_id, expires_at)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_consensus_requests_message "
            "ON consensus_requests(message_id)"
        )
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_users_net_profit ON users(net_profit)")

    # --- Migrations ---

    def _create_schema_migrations_table(self, cursor) -> None:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                name TEXT PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

    def _run_migrations(self, cursor) -> None:
        applied = {row["name"] for row in cursor.execute("SELECT name FROM schema_migrations")}
        for name, action in self._get_migrations():
            if name in applied:
                continue
            logger.info(f"Applying migration: {name}")
            action(cursor)
            cursor.execute(
                "INSERT INTO schema_migrations (name) VALUES (?)",
                (name,),
            )

    def _get_migrations(self):
        """
        Ordered (name, action) pairs applied once each on top of the base schema.

        The base schema is current; append changes to existing databases here.
        """
        return []
