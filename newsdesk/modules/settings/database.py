"""
Settings Database
=================

Stores site settings as typed JSON values keyed by name.
"""

import json
import logging

from newsdesk.core.database import Database, utc_now
from newsdesk.core.errors import NotFound, ValidationError
from newsdesk.core.validation import (
    SETTING_CATEGORIES, check_setting_value, parse_bool, require_choice,
)

logger = logging.getLogger(__name__)


# Seeded by initialize_defaults()
DEFAULT_SETTINGS = [
    # General settings
    {'key': 'site_name', 'value': 'Newsletter Website', 'type': 'string', 'description': 'Website name', 'category': 'general', 'is_public': True},
    {'key': 'site_description', 'value': 'Stay updated with our latest news', 'type': 'string', 'description': 'Website description', 'category': 'general', 'is_public': True},
    {'key': 'admin_email', 'value': 'admin@example.com', 'type': 'string', 'description': 'Admin email address', 'category': 'general', 'is_public': False},

    # Email settings
    {'key': 'email_from_name', 'value': 'Newsletter Team', 'type': 'string', 'description': 'Email sender name', 'category': 'email', 'is_public': False},
    {'key': 'email_notifications', 'value': True, 'type': 'boolean', 'description': 'Enable email notifications', 'category': 'email', 'is_public': False},

    # Newsletter settings
    {'key': 'newsletter_frequency', 'value': 'weekly', 'type': 'string', 'description': 'Newsletter frequency', 'category': 'newsletter', 'is_public': True},
    {'key': 'max_newsletters_per_batch', 'value': 100, 'type': 'number', 'description': 'Max newsletters per batch send', 'category': 'newsletter', 'is_public': False},

    # SEO settings
    {'key': 'meta_keywords', 'value': 'newsletter, news, updates', 'type': 'string', 'description': 'Default meta keywords', 'category': 'seo', 'is_public': True},
    {'key': 'google_analytics_id', 'value': '', 'type': 'string', 'description': 'Google Analytics tracking ID', 'category': 'seo', 'is_public': True},
]


def _row_to_setting(row):
    """Convert a settings row into its API shape"""
    setting = dict(row)
    setting['value'] = json.loads(setting['value'])
    setting['is_public'] = bool(setting['is_public'])
    return setting


class SettingsStore:
    """Typed key/value store backed by the settings table"""

    def __init__(self, database):
        if isinstance(database, str):
            database = Database(database)
        self.database = database

    def get(self, key, default=None):
        """Stored value for key, or default when the key is absent"""
        raw = self.database.fetch_value('SELECT value FROM settings WHERE key = ?', (key,))
        if raw is None:
            return default
        return json.loads(raw)

    def find(self, key):
        row = self.database.fetch_one('SELECT * FROM settings WHERE key = ?', (key,))
        if not row:
            raise NotFound('Setting not found')
        return _row_to_setting(row)

    def upsert(self, key, value, type='string', description='', category='general', is_public=None):
        """
        Create or overwrite the setting stored under key.

        value must match type and category must be known. When is_public is
        None the stored flag is kept (False for a new setting).
        """
        if not isinstance(key, str) or not key.strip():
            raise ValidationError('Key, value, and type are required')
        key = key.strip()
        check_setting_value(value, type)
        require_choice(category or 'general', SETTING_CATEGORIES, 'category')

        now = utc_now()
        is_public = parse_bool(is_public)
        public_flag = None if is_public is None else int(is_public)
        self.database.execute('''
            INSERT INTO settings (key, value, type, description, category, is_public, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                type = excluded.type,
                description = excluded.description,
                category = excluded.category,
                is_public = COALESCE(?, settings.is_public),
                updated_at = excluded.updated_at
        ''', (key, json.dumps(value), type, description or '', category or 'general',
              public_flag or 0, now, now, public_flag))

        logger.info(f"Setting saved: {key}")
        return self.find(key)

    def bulk_upsert(self, settings):
        """Upsert each element on its own; a bad element fails the call after earlier ones are saved"""
        if not isinstance(settings, list):
            raise ValidationError('Settings must be an array')
        saved = []
        for item in settings:
            if not isinstance(item, dict):
                raise ValidationError('Each setting must be an object')
            saved.append(self.upsert(
                item.get('key'),
                item.get('value'),
                item.get('type', 'string'),
                item.get('description', ''),
                item.get('category', 'general'),
                item.get('is_public'),
            ))
        return saved

    def list(self, category=None, is_public=None):
        query = 'SELECT * FROM settings WHERE 1=1'
        params = []
        if category:
            query += ' AND category = ?'
            params.append(category)
        if is_public is not None:
            query += ' AND is_public = ?'
            params.append(int(is_public))
        query += ' ORDER BY category, key'
        return [_row_to_setting(row) for row in self.database.fetch_all(query, params)]

    def grouped(self, category=None, is_public=None):
        """Settings grouped by category"""
        groups = {}
        for setting in self.list(category, is_public):
            groups.setdefault(setting['category'], []).append(setting)
        return groups

    def list_public(self):
        """{key: value} for public settings only"""
        return {s['key']: s['value'] for s in self.list(is_public=True)}

    def delete(self, key):
        deleted, _ = self.database.execute('DELETE FROM settings WHERE key = ?', (key,))
        if not deleted:
            raise NotFound('Setting not found')
        logger.info(f"Setting deleted: {key}")

    def initialize_defaults(self, overwrite=False):
        """
        Seed DEFAULT_SETTINGS. Existing keys are left alone unless overwrite
        is set, in which case every default is reset. Returns the keys written.
        """
        written = []
        for default in DEFAULT_SETTINGS:
            if not overwrite and self.database.fetch_value(
                    'SELECT 1 FROM settings WHERE key = ?', (default['key'],)):
                continue
            self.upsert(**default)
            written.append(default['key'])
        return written
