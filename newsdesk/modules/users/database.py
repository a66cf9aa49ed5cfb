"""
Users Database
==============

User accounts. Passwords are stored as Werkzeug hashes and never leave
this module.
"""

import logging
from datetime import datetime, timedelta, timezone

from werkzeug.security import check_password_hash, generate_password_hash

from newsdesk.core.database import Database, utc_now
from newsdesk.core.errors import NotFound, ValidationError
from newsdesk.core.validation import (
    USER_ROLES, optional_text, require_choice, require_email, require_text,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _row_to_user(row):
    """Convert a users row into its API shape, dropping the password hash"""
    user = dict(row)
    user.pop('password_hash', None)
    user['is_active'] = bool(user['is_active'])
    user['email_verified'] = bool(user['email_verified'])
    user['full_name'] = f"{user['first_name']} {user['last_name']}"
    return user


class UserStore:
    """User accounts backed by the users table"""

    def __init__(self, database):
        if isinstance(database, str):
            database = Database(database)
        self.database = database

    def _ensure_email_free(self, email, exclude_id=None):
        existing = self.database.fetch_value('SELECT id FROM users WHERE email = ?', (email,))
        if existing is not None and existing != exclude_id:
            raise ValidationError('Email already registered')

    def create(self, data):
        """Create a user, the password is optional for accounts that never sign in"""
        email = require_email(data.get('email'))
        self._ensure_email_free(email)

        password = data.get('password')
        password_hash = None
        if password is not None:
            if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
                raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
            password_hash = generate_password_hash(password)

        is_active = data.get('is_active', True)
        if not isinstance(is_active, bool):
            raise ValidationError('is_active must be a boolean')

        now = utc_now()
        _, user_id = self.database.execute('''
            INSERT INTO users (email, password_hash, first_name, last_name, role, avatar,
                               is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        ''', (
            email,
            password_hash,
            require_text(data, 'first_name', 2, 50, 'First name'),
            require_text(data, 'last_name', 2, 50, 'Last name'),
            require_choice(data.get('role') or 'user', USER_ROLES, 'role'),
            optional_text(data, 'avatar', 500),
            int(is_active),
            now,
            now,
        ))
        logger.info(f"User created: {email}")
        return self.get(user_id)

    def get(self, user_id):
        row = self.database.fetch_one('SELECT * FROM users WHERE id = ?', (user_id,))
        if not row:
            raise NotFound('User not found')
        return _row_to_user(row)

    def update(self, user_id, data):
        """Validated partial update of profile, role and active flag"""
        self.get(user_id)
        changes = {}

        if 'first_name' in data:
            changes['first_name'] = require_text(data, 'first_name', 2, 50, 'First name')
        if 'last_name' in data:
            changes['last_name'] = require_text(data, 'last_name', 2, 50, 'Last name')
        if 'email' in data:
            changes['email'] = require_email(data['email'])
            self._ensure_email_free(changes['email'], exclude_id=user_id)
        if 'role' in data:
            changes['role'] = require_choice(data['role'], USER_ROLES, 'role')
        if 'is_active' in data:
            if not isinstance(data['is_active'], bool):
                raise ValidationError('is_active must be a boolean')
            changes['is_active'] = int(data['is_active'])
        if 'avatar' in data:
            changes['avatar'] = optional_text(data, 'avatar', 500)

        if changes:
            changes['updated_at'] = utc_now()
            assignments = ', '.join(f'{key} = ?' for key in changes)
            self.database.execute(f'UPDATE users SET {assignments} WHERE id = ?',
                                  (*changes.values(), user_id))
        return self.get(user_id)

    def delete(self, user_id):
        deleted, _ = self.database.execute('DELETE FROM users WHERE id = ?', (user_id,))
        if not deleted:
            raise NotFound('User not found')

    def verify_password(self, email, password):
        """Return the active user whose credentials match and stamp last_login, else None"""
        if not isinstance(email, str) or not isinstance(password, str):
            return None
        row = self.database.fetch_one('SELECT * FROM users WHERE email = ? AND is_active = 1',
                                      (email.lower().strip(),))
        if not row or not row['password_hash'] or not check_password_hash(row['password_hash'], password):
            return None
        self.database.execute('UPDATE users SET last_login = ? WHERE id = ?',
                              (utc_now(), row['id']))
        return self.get(row['id'])

    def _filters(self, role=None, is_active=None, search=None):
        clauses, params = ['1=1'], []
        if role:
            clauses.append('role = ?')
            params.append(role)
        if is_active is not None:
            clauses.append('is_active = ?')
            params.append(int(is_active))
        if search:
            clauses.append('(first_name LIKE ? OR last_name LIKE ? OR email LIKE ?)')
            params.extend([f'%{search}%'] * 3)
        return ' AND '.join(clauses), params

    def list(self, page=1, limit=10, role=None, is_active=None, search=None):
        where, params = self._filters(role, is_active, search)
        rows = self.database.fetch_all(f'''
            SELECT * FROM users WHERE {where}
            ORDER BY created_at DESC, id DESC
            LIMIT ? OFFSET ?
        ''', (*params, limit, (page - 1) * limit))
        return [_row_to_user(row) for row in rows]

    def count(self, role=None, is_active=None, search=None):
        where, params = self._filters(role, is_active, search)
        return self.database.fetch_value(f'SELECT COUNT(*) FROM users WHERE {where}', params)

    def stats(self):
        by_role = {role: 0 for role in USER_ROLES}
        for row in self.database.fetch_all('SELECT role, COUNT(*) AS count FROM users GROUP BY role'):
            by_role[row['role']] = row['count']
        return {
            'total': sum(by_role.values()),
            'active': self.count(is_active=True),
            'by_role': by_role,
            'monthly_data': self.database.monthly_counts('users'),
        }

    def daily_chart(self, days=7):
        """Per-day creation counts of users, contacts and newsletters, oldest day first"""
        today = datetime.now(timezone.utc).date()
        dates = [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]
        chart = {date: {'date': date, 'users': 0, 'contacts': 0, 'newsletters': 0} for date in dates}

        for table in ('users', 'contacts', 'newsletters'):
            rows = self.database.fetch_all(f'''
                SELECT date(created_at) AS day, COUNT(*) AS count
                FROM {table}
                WHERE date(created_at) >= ?
                GROUP BY day
            ''', (dates[0],))
            for row in rows:
                if row['day'] in chart:
                    chart[row['day']][table] = row['count']
        return [chart[date] for date in dates]
