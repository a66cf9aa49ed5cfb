import json
import os
import sqlite3
import logging
from contextlib import contextmanager
from datetime import datetime, timezone

from .errors import StoreError

logger = logging.getLogger(__name__)


SCHEMA = [
    '''
    CREATE TABLE IF NOT EXISTS settings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        key TEXT NOT NULL UNIQUE,
        value TEXT NOT NULL,
        type TEXT NOT NULL,
        description TEXT DEFAULT '',
        category TEXT NOT NULL DEFAULT 'general',
        is_public BOOLEAN DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    ''',
    'CREATE INDEX IF NOT EXISTS idx_settings_category ON settings(category)',
    'CREATE INDEX IF NOT EXISTS idx_settings_public ON settings(is_public)',
    '''
    CREATE TABLE IF NOT EXISTS subscribers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        email TEXT UNIQUE NOT NULL,
        first_name TEXT,
        last_name TEXT,
        interests TEXT DEFAULT '["general"]',
        is_active BOOLEAN DEFAULT 1,
        is_verified BOOLEAN DEFAULT 0,
        verification_token TEXT,
        unsubscribe_token TEXT UNIQUE NOT NULL,
        source TEXT DEFAULT 'website',
        ip_address TEXT,
        user_agent TEXT,
        subscribed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        unsubscribed_at TIMESTAMP,
        last_email_sent TIMESTAMP,
        emails_sent INTEGER DEFAULT 0,
        emails_opened INTEGER DEFAULT 0,
        emails_clicked INTEGER DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    ''',
    'CREATE INDEX IF NOT EXISTS idx_subscribers_active ON subscribers(is_active, is_verified)',
    'CREATE INDEX IF NOT EXISTS idx_subscribers_verification ON subscribers(verification_token)',
    'CREATE INDEX IF NOT EXISTS idx_subscribers_subscribed ON subscribers(subscribed_at DESC)',
    '''
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        email TEXT UNIQUE NOT NULL,
        password_hash TEXT,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        role TEXT DEFAULT 'user',
        avatar TEXT,
        is_active BOOLEAN DEFAULT 1,
        email_verified BOOLEAN DEFAULT 0,
        last_login TIMESTAMP,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    ''',
    'CREATE INDEX IF NOT EXISTS idx_users_role ON users(role)',
    '''
    CREATE TABLE IF NOT EXISTS newsletters (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        slug TEXT NOT NULL UNIQUE,
        content TEXT NOT NULL,
        excerpt TEXT,
        type TEXT NOT NULL DEFAULT 'general',
        featured_image TEXT,
        video_url TEXT,
        tags TEXT DEFAULT '[]',
        author_id INTEGER NOT NULL REFERENCES users(id),
        status TEXT DEFAULT 'draft',
        publish_date TIMESTAMP,
        views INTEGER DEFAULT 0,
        featured BOOLEAN DEFAULT 0,
        email_sent BOOLEAN DEFAULT 0,
        email_sent_at TIMESTAMP,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    ''',
    'CREATE INDEX IF NOT EXISTS idx_newsletters_type ON newsletters(type)',
    'CREATE INDEX IF NOT EXISTS idx_newsletters_status ON newsletters(status)',
    'CREATE INDEX IF NOT EXISTS idx_newsletters_publish ON newsletters(publish_date DESC)',
    '''
    CREATE TABLE IF NOT EXISTS contacts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        email TEXT NOT NULL,
        title TEXT,
        file TEXT,
        survey TEXT,
        organization TEXT,
        advise TEXT,
        message TEXT NOT NULL,
        status TEXT DEFAULT 'new',
        ip_address TEXT,
        user_agent TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    ''',
    'CREATE INDEX IF NOT EXISTS idx_contacts_status ON contacts(status)',
    'CREATE INDEX IF NOT EXISTS idx_contacts_created ON contacts(created_at DESC)',
]


def utc_now():
    """Timestamp in the same format sqlite uses for CURRENT_TIMESTAMP"""
    return datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')


def dump_json(value):
    return json.dumps(value if value is not None else [])


def load_json(raw, default=None):
    """Parse a JSON column, tolerating empty or corrupt values"""
    if raw is None or raw == '':
        return [] if default is None else default
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return [] if default is None else default


class Database:
    """
    sqlite3 access shared by every Newsdesk store.

    Each call opens its own connection so worker threads (used by the
    newsletter dispatcher) never share a connection object.
    """

    def __init__(self, path):
        self.path = path

    def connect(self):
        conn = sqlite3.connect(self.path, timeout=10)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def cursor(self):
        """Yield a cursor, committing on success and wrapping sqlite errors in StoreError"""
        conn = self.connect()
        try:
            cursor = conn.cursor()
            yield cursor
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database error on {self.path}: {e}")
            raise StoreError(f"Database error: {e}") from e
        finally:
            conn.close()

    def init_schema(self):
        """Create every Newsdesk table and index if missing"""
        db_dir = os.path.dirname(self.path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        with self.cursor() as cursor:
            for statement in SCHEMA:
                cursor.execute(statement)

        logger.info(f"Newsdesk database initialized at {self.path}")
        return self.path

    def fetch_one(self, query, params=()):
        with self.cursor() as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone()
            return dict(row) if row else None

    def fetch_all(self, query, params=()):
        with self.cursor() as cursor:
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def fetch_value(self, query, params=()):
        with self.cursor() as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone()
            return row[0] if row else None

    def execute(self, query, params=()):
        """Run a write statement and return (rowcount, lastrowid)"""
        with self.cursor() as cursor:
            cursor.execute(query, params)
            return cursor.rowcount, cursor.lastrowid

    def monthly_counts(self, table, column='created_at', months=12, where='1=1', params=()):
        """Row counts per calendar month for the last `months` months, oldest first"""
        today = datetime.now(timezone.utc)
        month_index = today.year * 12 + today.month - 1 - (months - 1)
        cutoff = f'{month_index // 12:04d}-{month_index % 12 + 1:02d}-01 00:00:00'
        rows = self.fetch_all(f'''
            SELECT CAST(strftime('%Y', {column}) AS INTEGER) AS year,
                   CAST(strftime('%m', {column}) AS INTEGER) AS month,
                   COUNT(*) AS count
            FROM {table}
            WHERE {column} >= ? AND {where}
            GROUP BY year, month
            ORDER BY year, month
        ''', (cutoff, *params))
        return rows
