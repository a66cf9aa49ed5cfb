"""
Centralized logging service for Newsdesk.
Provides structured logging with database storage and easy integration.
"""

import json
import logging
from datetime import datetime, timedelta

from flask import current_app, has_app_context, has_request_context, request

from .database import Database

logger = logging.getLogger(__name__)

LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class LoggingService:
    """Persistent application log stored in the app_logs table"""

    def __init__(self, database):
        if isinstance(database, str):
            database = Database(database)
        self.database = database
        self._table_ready = False

    def _ensure_logs_table(self):
        """Ensure the app_logs table exists"""
        if self._table_ready:
            return
        with self.database.cursor() as cursor:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS app_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    level TEXT NOT NULL,
                    source TEXT NOT NULL,
                    message TEXT NOT NULL,
                    details TEXT,
                    ip_address TEXT,
                    user_agent TEXT,
                    request_path TEXT,
                    user_id TEXT
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_logs_timestamp
                ON app_logs(timestamp DESC)
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_logs_level
                ON app_logs(level)
            """)
        self._table_ready = True

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None

        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        if ip_address and ',' in ip_address:
            ip_address = ip_address.split(',')[0].strip()

        return ip_address, request.headers.get('User-Agent', ''), request.path

    def log(self, level, source, message, details=None, user_id=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (settings, subscribers, newsletters, etc.)
            message (str): Main log message
            details (str/dict): Additional details (will be JSON-encoded if dict)
            user_id (str): Optional user identifier
        """
        level = level.upper()
        if level not in LEVELS:
            level = 'INFO'

        # Mirror to the stdlib logger so console output never depends on the DB
        logger.log(getattr(logging, level), f"[{source}] {message}")

        if isinstance(details, dict):
            details = json.dumps(details, indent=2, default=str)

        try:
            self._ensure_logs_table()
            ip_address, user_agent, request_path = self._get_request_context()
            self.database.execute("""
                INSERT INTO app_logs
                (timestamp, level, source, message, details, ip_address, user_agent, request_path, user_id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                datetime.now().isoformat(), level, source, message, details,
                ip_address, user_agent, request_path, user_id
            ))
        except Exception as e:
            # Fallback to console logging if database fails
            logger.warning(f"Logging service error: {e}")

    def info(self, source, message, details=None, user_id=None):
        self.log('INFO', source, message, details, user_id)

    def warning(self, source, message, details=None, user_id=None):
        self.log('WARNING', source, message, details, user_id)

    def error(self, source, message, details=None, user_id=None):
        self.log('ERROR', source, message, details, user_id)

    def recent(self, limit=100, level=None, source=None):
        """Most recent log entries, newest first"""
        self._ensure_logs_table()
        query = 'SELECT * FROM app_logs WHERE 1=1'
        params = []
        if level:
            query += ' AND level = ?'
            params.append(level.upper())
        if source:
            query += ' AND source = ?'
            params.append(source)
        query += ' ORDER BY id DESC LIMIT ?'
        params.append(limit)
        return self.database.fetch_all(query, params)

    def cleanup_old_logs(self, days_to_keep=30):
        """Clean up old log entries"""
        self._ensure_logs_table()
        cutoff_iso = (datetime.now() - timedelta(days=days_to_keep)).isoformat()
        deleted_count, _ = self.database.execute(
            'DELETE FROM app_logs WHERE timestamp < ?', (cutoff_iso,)
        )
        self.info('system', f"Cleaned up {deleted_count} old log entries")
        return deleted_count


def db_log(level, source, message, details=None):
    """
    Log to the persistent DB logger of the current Newsdesk app.
    Outside an app context only the stdlib logger receives the message.
    """
    if has_app_context():
        newsdesk = current_app.extensions.get('newsdesk')
        if newsdesk is not None:
            newsdesk.log_service.log(level, source, message, details)
            return
    level_no = getattr(logging, level.upper(), logging.INFO)
    logger.log(level_no, f"[{source}] {message}")
