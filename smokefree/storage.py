"""
SQLite-based storage for the smoking-cessation tracker.

Holds daily logs, user profiles, challenges, leaderboard rows, achievement
unlocks and in-app notifications. Every unlock goes through
insert_unlock_if_absent(), which performs the existence check and the insert
inside one immediate transaction.
"""

import json
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

# Seconds a writer waits on a locked database before giving up
BUSY_TIMEOUT = 10.0

PROFILE_FIELDS = (
    "display_name",
    "username",
    "email",
    "photo_url",
    "quit_date",
    "target_quit_date",
    "date_mode",
    "cigarettes_per_day_before",
    "cost_per_pack",
    "cigarettes_per_pack",
    "current_streak_days",
    "streak_start_date",
    "last_slip_date",
    "total_points",
    "ai_messages_count",
    "audio_sessions_count",
)

COUNTER_FIELDS = ("ai_messages_count", "audio_sessions_count")

# Public leaderboard metric name -> column
LEADERBOARD_COLUMNS = {
    "points": "points",
    "streak": "streak_days",
    "saved": "saved_amount",
}


class StorageError(Exception):
    """Raised when the database cannot be read or written."""

    pass


class PermissionDeniedError(StorageError):
    """Raised when the caller may no longer read or write this user's data."""

    pass


class ChallengeNotFoundError(StorageError):
    """Raised when a challenge id does not exist."""

    pass


class ChallengeOwnershipError(StorageError):
    """Raised when a challenge belongs to a different user."""

    pass


def _get_default_db_path() -> Path:
    """Get the default database path."""
    env_path = os.environ.get("SMOKEFREE_DB_PATH")
    if env_path:
        return Path(env_path)
    return Path.home() / ".smokefree" / "tracker.db"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _log_from_row(row: sqlite3.Row) -> dict:
    entry = dict(row)
    # Legacy rows may carry NULL here; leave it as None rather than guessing
    if entry.get("smoke_free") is not None:
        entry["smoke_free"] = bool(entry["smoke_free"])
    entry["triggers_faced"] = json.loads(entry.get("triggers_faced") or "[]")
    return entry


def _notification_from_row(row: sqlite3.Row) -> dict:
    notification = dict(row)
    notification["read"] = bool(notification["read"])
    notification["data"] = json.loads(notification.get("data") or "{}")
    return notification


class TrackerStorage:
    """SQLite-based storage for tracker data."""

    def __init__(self, db_path: str | Path | None = None):
        """
        Initialize the tracker storage.

        Args:
            db_path: Path to the SQLite database file.
                     Defaults to ~/.smokefree/tracker.db
        """
        if db_path is None:
            db_path = _get_default_db_path()
        self.db_path = Path(db_path)
        self._init_db()

    @contextmanager
    def _connect(self, autocommit: bool = False):
        """
        Open a connection, commit on success and translate sqlite errors.

        With autocommit=True the caller issues BEGIN/COMMIT itself.
        """
        try:
            conn = sqlite3.connect(
                self.db_path,
                timeout=BUSY_TIMEOUT,
                isolation_level=None if autocommit else "",
            )
        except sqlite3.OperationalError as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e

        conn.row_factory = sqlite3.Row
        try:
            yield conn
            if not autocommit:
                conn.commit()
        except sqlite3.OperationalError as e:
            if conn.in_transaction:
                conn.rollback()
            if "readonly" in str(e):
                raise PermissionDeniedError(str(e)) from e
            raise StorageError(str(e)) from e
        except BaseException:
            if conn.in_transaction:
                conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Create tables and indexes if they don't exist."""
        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS daily_logs (
                    user_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    cigarettes_smoked INTEGER NOT NULL DEFAULT 0,
                    smoke_free INTEGER,
                    cravings_count INTEGER NOT NULL DEFAULT 0,
                    mood_rating INTEGER,
                    stress_level INTEGER,
                    notes TEXT NOT NULL DEFAULT '',
                    triggers_faced TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (user_id, date)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    user_id TEXT PRIMARY KEY,
                    display_name TEXT,
                    username TEXT,
                    email TEXT,
                    photo_url TEXT,
                    quit_date TEXT,
                    target_quit_date TEXT,
                    date_mode TEXT NOT NULL DEFAULT 'quit',
                    cigarettes_per_day_before REAL,
                    cost_per_pack REAL,
                    cigarettes_per_pack REAL,
                    current_streak_days INTEGER NOT NULL DEFAULT 0,
                    streak_start_date TEXT,
                    last_slip_date TEXT,
                    total_points INTEGER NOT NULL DEFAULT 0,
                    ai_messages_count INTEGER NOT NULL DEFAULT 0,
                    audio_sessions_count INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT,
                    updated_at TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS challenges (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    points INTEGER NOT NULL DEFAULT 0,
                    completed INTEGER NOT NULL DEFAULT 0,
                    awarded INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    completed_at TEXT
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_challenges_user
                ON challenges(user_id, completed)
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS leaderboard (
                    user_id TEXT PRIMARY KEY,
                    name TEXT NOT NULL DEFAULT 'User',
                    avatar TEXT,
                    points INTEGER NOT NULL DEFAULT 0,
                    streak_days INTEGER NOT NULL DEFAULT 0,
                    saved_amount INTEGER NOT NULL DEFAULT 0,
                    life_years REAL NOT NULL DEFAULT 0,
                    updated_at TEXT
                )
            """)
            for column in LEADERBOARD_COLUMNS.values():
                conn.execute(
                    f"CREATE INDEX IF NOT EXISTS idx_leaderboard_{column} "
                    f"ON leaderboard({column} DESC)"
                )
            conn.execute("""
                CREATE TABLE IF NOT EXISTS achievement_unlocks (
                    user_id TEXT NOT NULL,
                    achievement_id TEXT NOT NULL,
                    unlocked_at TEXT NOT NULL,
                    seen INTEGER NOT NULL DEFAULT 0,
                    seen_at TEXT,
                    PRIMARY KEY (user_id, achievement_id)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS notifications (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    body TEXT NOT NULL DEFAULT '',
                    type TEXT NOT NULL DEFAULT 'generic',
                    data TEXT NOT NULL DEFAULT '{}',
                    read INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_notifications_user
                ON notifications(user_id, read)
            """)

    # ---- Daily logs ---------------------------------------------------------

    def get_daily_log(self, user_id: str, date: str) -> dict | None:
        """
        Get the daily log entry for a single date.

        Args:
            user_id: Owner of the log
            date: Date in YYYY-MM-DD format

        Returns:
            Log entry dictionary or None if nothing was logged that day
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM daily_logs WHERE user_id = ? AND date = ?",
                (user_id, date),
            ).fetchone()
        return _log_from_row(row) if row else None

    def upsert_daily_log(self, user_id: str, date: str, entry: dict) -> dict:
        """
        Insert or replace the log entry for a date, keeping its created_at.

        The entry is expected to be normalized already (see daily_log.normalize_daily_log).

        Returns:
            The stored entry
        """
        now = _now()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO daily_logs (
                    user_id, date, cigarettes_smoked, smoke_free, cravings_count,
                    mood_rating, stress_level, notes, triggers_faced,
                    created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, date) DO UPDATE SET
                    cigarettes_smoked = excluded.cigarettes_smoked,
                    smoke_free = excluded.smoke_free,
                    cravings_count = excluded.cravings_count,
                    mood_rating = excluded.mood_rating,
                    stress_level = excluded.stress_level,
                    notes = excluded.notes,
                    triggers_faced = excluded.triggers_faced,
                    updated_at = excluded.updated_at
                """,
                (
                    user_id,
                    date,
                    entry["cigarettes_smoked"],
                    int(entry["smoke_free"]),
                    entry.get("cravings_count", 0),
                    entry.get("mood_rating"),
                    entry.get("stress_level"),
                    entry.get("notes", ""),
                    json.dumps(entry.get("triggers_faced", [])),
                    now,
                    now,
                ),
            )
        return self.get_daily_log(user_id, date)

    def list_daily_logs(
        self,
        user_id: str,
        from_date: str | None = None,
        to_date: str | None = None,
    ) -> list[dict]:
        """
        List log entries in a date range (both bounds inclusive), oldest first.
        """
        query = "SELECT * FROM daily_logs WHERE user_id = ?"
        params: list = [user_id]
        if from_date:
            query += " AND date >= ?"
            params.append(from_date)
        if to_date:
            query += " AND date <= ?"
            params.append(to_date)
        query += " ORDER BY date"

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_log_from_row(row) for row in rows]

    def list_recent_daily_logs(self, user_id: str, count: int = 3) -> list[dict]:
        """List the most recent log entries, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM daily_logs WHERE user_id = ? ORDER BY date DESC LIMIT ?",
                (user_id, count),
            ).fetchall()
        return [_log_from_row(row) for row in rows]

    def count_daily_logs(self, user_id: str) -> int:
        """Count all log entries ever made by a user."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM daily_logs WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        return row[0]

    def find_latest_slip_date(
        self, user_id: str, from_date: str, to_date: str
    ) -> str | None:
        """
        Find the most recent slip date within [from_date, to_date].

        A slip is a row flagged smoke_free = 0 or a row with cigarettes_smoked > 0.
        Both are queried separately and merged, so a legacy row with only one
        of the two fields correct is still detected.

        Returns:
            Date in YYYY-MM-DD format or None if there was no slip
        """
        with self._connect() as conn:
            flagged = conn.execute(
                """
                SELECT date FROM daily_logs
                WHERE user_id = ? AND smoke_free = 0 AND date >= ? AND date <= ?
                ORDER BY date DESC LIMIT 1
                """,
                (user_id, from_date, to_date),
            ).fetchone()
            smoked = conn.execute(
                """
                SELECT date FROM daily_logs
                WHERE user_id = ? AND cigarettes_smoked > 0 AND date >= ? AND date <= ?
                ORDER BY date DESC LIMIT 1
                """,
                (user_id, from_date, to_date),
            ).fetchone()

        candidates = [row["date"] for row in (flagged, smoked) if row is not None]
        return max(candidates) if candidates else None

    # ---- Profiles -----------------------------------------------------------

    def get_profile(self, user_id: str) -> dict | None:
        """Get a user's profile or None if it doesn't exist."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM profiles WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        return dict(row) if row else None

    def update_profile(self, user_id: str, data: dict) -> dict:
        """
        Merge fields into a user's profile, creating it if needed.

        Args:
            user_id: Profile owner
            data: Mapping of profile field -> value. Unknown fields are rejected.

        Returns:
            The updated profile

        Raises:
            ValueError: If data contains a field that isn't a profile field
        """
        unknown = sorted(set(data) - set(PROFILE_FIELDS))
        if unknown:
            raise ValueError(f"Unknown profile fields: {', '.join(unknown)}")

        now = _now()
        columns = list(data)
        column_sql = "".join(f", {c}" for c in columns)
        placeholder_sql = "".join(", ?" for _ in columns)
        update_sql = "".join(f"{c} = excluded.{c}, " for c in columns)

        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO profiles (user_id{column_sql}, created_at, updated_at)
                VALUES (?{placeholder_sql}, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    {update_sql}updated_at = excluded.updated_at
                """,
                (user_id, *[data[c] for c in columns], now, now),
            )
        return self.get_profile(user_id)

    def increment_profile_counter(self, user_id: str, field: str, delta: int = 1) -> int:
        """
        Atomically add delta to a usage counter on the profile.

        Returns:
            The counter's new value
        """
        if field not in COUNTER_FIELDS:
            raise ValueError(f"Not a counter field: {field}")

        now = _now()
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO profiles (user_id, {field}, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    {field} = COALESCE(profiles.{field}, 0) + excluded.{field},
                    updated_at = excluded.updated_at
                """,
                (user_id, delta, now, now),
            )
            row = conn.execute(
                f"SELECT {field} FROM profiles WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        return row[0]

    # ---- Challenges ---------------------------------------------------------

    def add_challenge(self, user_id: str, title: str, points: int = 0) -> dict:
        """Create an open challenge for a user."""
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO challenges (user_id, title, points, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, title, points, _now()),
            )
            challenge_id = cursor.lastrowid
        return self.get_challenge(challenge_id)

    def get_challenge(self, challenge_id: int) -> dict | None:
        """Get a challenge by id."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM challenges WHERE id = ?",
                (challenge_id,),
            ).fetchone()
        if row is None:
            return None
        challenge = dict(row)
        challenge["completed"] = bool(challenge["completed"])
        challenge["awarded"] = bool(challenge["awarded"])
        return challenge

    def complete_challenge(
        self, user_id: str, challenge_id: int, points: int | None = None
    ) -> int:
        """
        Mark a challenge completed and award its points exactly once.

        The challenge's stored points win over the points argument. Completing an
        already completed challenge changes nothing.

        Returns:
            The user's total points after the call

        Raises:
            ChallengeNotFoundError: If the challenge doesn't exist
            ChallengeOwnershipError: If the challenge belongs to another user
        """
        now = _now()
        with self._connect(autocommit=True) as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT * FROM challenges WHERE id = ?",
                (challenge_id,),
            ).fetchone()
            if row is None:
                conn.rollback()
                raise ChallengeNotFoundError(f"Challenge {challenge_id} not found")
            if row["user_id"] != user_id:
                conn.rollback()
                raise ChallengeOwnershipError(
                    f"Challenge {challenge_id} does not belong to {user_id}"
                )

            if not (row["completed"] or row["awarded"]):
                awarded = row["points"] or points or 0
                conn.execute(
                    """
                    UPDATE challenges
                    SET completed = 1, awarded = 1, completed_at = ?
                    WHERE id = ?
                    """,
                    (now, challenge_id),
                )
                conn.execute(
                    """
                    INSERT INTO profiles (user_id, total_points, created_at, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        total_points = COALESCE(profiles.total_points, 0) + excluded.total_points,
                        updated_at = excluded.updated_at
                    """,
                    (user_id, awarded, now, now),
                )
                conn.execute(
                    """
                    INSERT INTO leaderboard (user_id, points, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        points = leaderboard.points + excluded.points,
                        updated_at = excluded.updated_at
                    """,
                    (user_id, awarded, now),
                )

            total = conn.execute(
                "SELECT total_points FROM profiles WHERE user_id = ?",
                (user_id,),
            ).fetchone()
            conn.execute("COMMIT")
        return total[0] if total else 0

    def count_completed_challenges(self, user_id: str) -> int:
        """Count the challenges a user has completed."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM challenges WHERE user_id = ? AND completed = 1",
                (user_id,),
            ).fetchone()
        return row[0]

    # ---- Leaderboard --------------------------------------------------------

    def upsert_leaderboard_row(self, user_id: str, row: dict) -> None:
        """
        Insert or replace a user's denormalized leaderboard row.

        Args:
            user_id: Row owner
            row: Dictionary with name, avatar, points, streak_days, saved_amount, life_years
        """
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO leaderboard (
                    user_id, name, avatar, points, streak_days, saved_amount,
                    life_years, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    name = excluded.name,
                    avatar = excluded.avatar,
                    points = excluded.points,
                    streak_days = excluded.streak_days,
                    saved_amount = excluded.saved_amount,
                    life_years = excluded.life_years,
                    updated_at = excluded.updated_at
                """,
                (
                    user_id,
                    row.get("name", "User"),
                    row.get("avatar"),
                    row.get("points", 0),
                    row.get("streak_days", 0),
                    row.get("saved_amount", 0),
                    row.get("life_years", 0.0),
                    _now(),
                ),
            )

    def get_leaderboard_row(self, user_id: str) -> dict | None:
        """Get a single user's leaderboard row."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM leaderboard WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        return dict(row) if row else None

    def get_top_leaderboard_rows(self, field: str, limit: int) -> list[dict]:
        """
        Get the top rows ordered descending by a leaderboard metric.

        Args:
            field: One of "points", "streak", "saved"
            limit: Number of rows to read

        Returns:
            List of leaderboard row dictionaries, best first
        """
        column = LEADERBOARD_COLUMNS.get(field)
        if column is None:
            raise ValueError(f"Unknown leaderboard field: {field}")

        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM leaderboard ORDER BY {column} DESC, user_id LIMIT ?",
                (limit,),
            ).fetchall()
        return [dict(row) for row in rows]

    # ---- Achievement unlocks ------------------------------------------------

    def get_unlock(self, user_id: str, achievement_id: str) -> dict | None:
        """Get the unlock record for an achievement, or None while it is locked."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT achievement_id AS id, unlocked_at, seen, seen_at
                FROM achievement_unlocks
                WHERE user_id = ? AND achievement_id = ?
                """,
                (user_id, achievement_id),
            ).fetchone()
        if row is None:
            return None
        record = dict(row)
        record["seen"] = bool(record["seen"])
        return record

    def insert_unlock_if_absent(self, user_id: str, achievement_id: str) -> bool:
        """
        Create the unlock record unless one already exists.

        The existence check and the insert run in one BEGIN IMMEDIATE
        transaction; the primary key makes a second insert a no-op as well.

        Returns:
            True if this call created the record, False if it already existed
        """
        with self._connect(autocommit=True) as conn:
            conn.execute("BEGIN IMMEDIATE")
            existing = conn.execute(
                """
                SELECT 1 FROM achievement_unlocks
                WHERE user_id = ? AND achievement_id = ?
                """,
                (user_id, achievement_id),
            ).fetchone()
            if existing is not None:
                conn.execute("ROLLBACK")
                return False

            cursor = conn.execute(
                """
                INSERT INTO achievement_unlocks (user_id, achievement_id, unlocked_at, seen)
                VALUES (?, ?, ?, 0)
                ON CONFLICT(user_id, achievement_id) DO NOTHING
                """,
                (user_id, achievement_id, _now()),
            )
            conn.execute("COMMIT")
        return cursor.rowcount == 1

    def get_unlocked_achievements(self, user_id: str, limit: int | None = None) -> list[dict]:
        """
        List unlock records, most recent first.

        Returns:
            List of dicts with id, unlocked_at, seen, seen_at
        """
        query = """
            SELECT achievement_id AS id, unlocked_at, seen, seen_at
            FROM achievement_unlocks
            WHERE user_id = ?
            ORDER BY unlocked_at DESC
        """
        params: list = [user_id]
        if limit:
            query += " LIMIT ?"
            params.append(limit)

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()

        records = []
        for row in rows:
            record = dict(row)
            record["seen"] = bool(record["seen"])
            records.append(record)
        return records

    def mark_unlock_seen(self, user_id: str, achievement_id: str) -> bool:
        """
        Flag an unlocked achievement as seen.

        Never creates a record, so a locked achievement stays locked.

        Returns:
            True if an unlock record was updated
        """
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE achievement_unlocks
                SET seen = 1, seen_at = ?
                WHERE user_id = ? AND achievement_id = ?
                """,
                (_now(), user_id, achievement_id),
            )
        return cursor.rowcount > 0

    # ---- Notifications ------------------------------------------------------

    def create_notification(
        self,
        user_id: str,
        title: str,
        body: str = "",
        type: str = "generic",
        data: dict | None = None,
    ) -> int:
        """
        Store an unread in-app notification.

        Returns:
            The new notification id
        """
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO notifications (user_id, title, body, type, data, read, created_at)
                VALUES (?, ?, ?, ?, ?, 0, ?)
                """,
                (
                    user_id,
                    str(title or "Notification"),
                    str(body or ""),
                    str(type or "generic"),
                    json.dumps(data or {}),
                    _now(),
                ),
            )
        return cursor.lastrowid

    def list_notifications(self, user_id: str, limit: int = 100) -> list[dict]:
        """List a user's notifications, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM notifications
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
        return [_notification_from_row(row) for row in rows]

    def count_unread_notifications(self, user_id: str) -> int:
        """Count unread notifications."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM notifications WHERE user_id = ? AND read = 0",
                (user_id,),
            ).fetchone()
        return row[0]

    def mark_notification_read(self, user_id: str, notification_id: int) -> bool:
        """Mark one notification read. Returns False if it doesn't exist."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE notifications SET read = 1 WHERE user_id = ? AND id = ?",
                (user_id, notification_id),
            )
        return cursor.rowcount > 0

    def mark_all_notifications_read(self, user_id: str) -> int:
        """Mark every unread notification read. Returns how many changed."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE notifications SET read = 1 WHERE user_id = ? AND read = 0",
                (user_id,),
            )
        return cursor.rowcount
