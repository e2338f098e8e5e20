"""
Database module for SQLite operations.
Manages lead notes, admin users, the audit log and sync history.
"""
import aiosqlite
from typing import Optional, List, Dict
from loguru import logger

from config import DATABASE_PATH, ROLE_ADMIN
from utils.time_utils import now_utc, format_datetime


async def init_database():
    """Initialize database with required tables."""
    async with aiosqlite.connect(DATABASE_PATH) as db:
        # Free-text notes attached to a lead
        await db.execute("""
            CREATE TABLE IF NOT EXISTS notes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                lead_id TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_notes_lead_id ON notes (lead_id)"
        )

        # Admin users table (for web panel authentication)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS admin_users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                full_name TEXT,
                role TEXT NOT NULL DEFAULT 'admin',
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                last_login TEXT
            )
        """)

        # System logs table (for tracking all actions)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS system_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                user_id TEXT,
                user_name TEXT,
                action_type TEXT NOT NULL,
                lead_id TEXT,
                old_value TEXT,
                new_value TEXT,
                details TEXT
            )
        """)

        # Google Sheet sync status table
        await db.execute("""
            CREATE TABLE IF NOT EXISTS sync_status (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                sync_time TEXT NOT NULL,
                status TEXT NOT NULL,
                rows_count INTEGER,
                error_message TEXT
            )
        """)

        await db.commit()
        logger.info("Database initialized successfully")


# Notes functions
async def list_notes(lead_id: str) -> List[Dict]:
    """Notes of a lead, newest first."""
    async with aiosqlite.connect(DATABASE_PATH) as db:
        db.row_factory = aiosqlite.Row
        async with db.execute(
            "SELECT * FROM notes WHERE lead_id = ? ORDER BY created_at DESC, id DESC",
            (lead_id,),
        ) as cursor:
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]


async def get_note(note_id: int) -> Optional[Dict]:
    async with aiosqlite.connect(DATABASE_PATH) as db:
        db.row_factory = aiosqlite.Row
        async with db.execute("SELECT * FROM notes WHERE id = ?", (note_id,)) as cursor:
            row = await cursor.fetchone()
            return dict(row) if row else None


async def create_note(lead_id: str, content: str) -> Dict:
    """Create a note and return the stored row."""
    timestamp = format_datetime(now_utc())
    async with aiosqlite.connect(DATABASE_PATH) as db:
        cursor = await db.execute(
            """
            INSERT INTO notes (lead_id, content, created_at, updated_at)
            VALUES (?, ?, ?, ?)
            """,
            (lead_id, content, timestamp, timestamp),
        )
        await db.commit()
        note_id = cursor.lastrowid

    logger.info(f"Note {note_id} created for lead {lead_id}")
    return {
        "id": note_id,
        "lead_id": lead_id,
        "content": content,
        "created_at": timestamp,
        "updated_at": timestamp,
    }


async def update_note(note_id: int, content: str) -> bool:
    """Replace the content of a note. Returns True if the note existed."""
    async with aiosqlite.connect(DATABASE_PATH) as db:
        cursor = await db.execute(
            "UPDATE notes SET content = ?, updated_at = ? WHERE id = ?",
            (content, format_datetime(now_utc()), note_id),
        )
        await db.commit()
        return cursor.rowcount > 0


async def delete_note(note_id: int) -> bool:
    """Delete a note. Returns True if the note existed."""
    async with aiosqlite.connect(DATABASE_PATH) as db:
        cursor = await db.execute("DELETE FROM notes WHERE id = ?", (note_id,))
        await db.commit()
        return cursor.rowcount > 0


# Admin user functions
async def create_admin_user(
    email: str,
    password_hash: str,
    full_name: Optional[str] = None,
    role: str = ROLE_ADMIN,
) -> bool:
    """Create an admin user. Returns False if the email is taken."""
    timestamp = format_datetime(now_utc())
    async with aiosqlite.connect(DATABASE_PATH) as db:
        try:
            await db.execute(
                """
                INSERT INTO admin_users (email, password_hash, full_name, role, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (email.lower(), password_hash, full_name, role, timestamp, timestamp),
            )
            await db.commit()
            logger.info(f"Admin user {email} created with role {role}")
            return True
        except aiosqlite.IntegrityError:
            return False


async def get_admin_user(email: str) -> Optional[Dict]:
    """Get an active admin user by email."""
    async with aiosqlite.connect(DATABASE_PATH) as db:
        db.row_factory = aiosqlite.Row
        async with db.execute(
            "SELECT * FROM admin_users WHERE email = ? AND is_active = 1", (email.lower(),)
        ) as cursor:
            row = await cursor.fetchone()
            return dict(row) if row else None


async def update_admin_last_login(email: str):
    """Update last login time for admin user."""
    async with aiosqlite.connect(DATABASE_PATH) as db:
        await db.execute(
            "UPDATE admin_users SET last_login = ? WHERE email = ?",
            (format_datetime(now_utc()), email.lower())
        )
        await db.commit()


# System logging functions
async def log_action(
    user_id: Optional[str],
    user_name: Optional[str],
    action_type: str,
    lead_id: Optional[str] = None,
    old_value: Optional[str] = None,
    new_value: Optional[str] = None,
    details: Optional[str] = None
):
    """Log a system action."""
    async with aiosqlite.connect(DATABASE_PATH) as db:
        await db.execute("""
            INSERT INTO system_logs
            (timestamp, user_id, user_name, action_type, lead_id, old_value, new_value, details)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            format_datetime(now_utc()),
            user_id,
            user_name,
            action_type,
            lead_id,
            old_value,
            new_value,
            details
        ))
        await db.commit()


async def get_system_logs(
    limit: int = 100,
    offset: int = 0,
    action_type: Optional[str] = None,
    lead_id: Optional[str] = None
) -> List[Dict]:
    """Get system logs with optional filters."""
    async with aiosqlite.connect(DATABASE_PATH) as db:
        db.row_factory = aiosqlite.Row

        query = "SELECT * FROM system_logs WHERE 1=1"
        params = []

        if action_type:
            query += " AND action_type = ?"
            params.append(action_type)

        if lead_id:
            query += " AND lead_id = ?"
            params.append(lead_id)

        query += " ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        async with db.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]


# Sync status functions
async def save_sync_status(
    status: str,
    rows_count: Optional[int] = None,
    error_message: Optional[str] = None
):
    """Save Google Sheet sync status."""
    async with aiosqlite.connect(DATABASE_PATH) as db:
        await db.execute("""
            INSERT INTO sync_status (sync_time, status, rows_count, error_message)
            VALUES (?, ?, ?, ?)
        """, (format_datetime(now_utc()), status, rows_count, error_message))
        await db.commit()


async def get_latest_sync_status() -> Optional[Dict]:
    """Get the latest sync status."""
    async with aiosqlite.connect(DATABASE_PATH) as db:
        db.row_factory = aiosqlite.Row
        async with db.execute(
            "SELECT * FROM sync_status ORDER BY sync_time DESC, id DESC LIMIT 1"
        ) as cursor:
            row = await cursor.fetchone()
            return dict(row) if row else None
