"""
Subscriber Directory
====================

Persistence and lifecycle for newsletter subscribers. One row per email,
deactivated rather than deleted on unsubscribe and reactivated in place on
re-subscribe.
"""

import logging
import secrets
import sqlite3

from newsdesk.core.database import Database, dump_json, load_json, utc_now
from newsdesk.core.errors import (
    DuplicateSubscription, InvalidToken, NotFound, StoreError, TransportError, ValidationError,
)
from newsdesk.core.logging_service import db_log
from newsdesk.core.validation import (
    SUBSCRIBER_SOURCES, optional_text, require_choice, require_email,
    require_interests,
)
from newsdesk.modules.email import templates

logger = logging.getLogger(__name__)

# Fields an admin may change through update()
UPDATABLE_FIELDS = ('first_name', 'last_name', 'interests', 'is_active')


def generate_token():
    """Opaque URL-safe token with 256 bits of entropy"""
    return secrets.token_hex(32)


def _row_to_subscriber(row):
    """Convert a subscribers row into its API shape with derived fields"""
    subscriber = dict(row)
    subscriber['interests'] = load_json(subscriber.get('interests'), ['general'])
    subscriber['is_active'] = bool(subscriber['is_active'])
    subscriber['is_verified'] = bool(subscriber['is_verified'])

    first, last = subscriber.get('first_name'), subscriber.get('last_name')
    if first and last:
        subscriber['full_name'] = f'{first} {last}'
    else:
        subscriber['full_name'] = first or subscriber['email']

    sent = subscriber.get('emails_sent') or 0
    if sent:
        engaged = (subscriber.get('emails_opened') or 0) + (subscriber.get('emails_clicked') or 0)
        subscriber['engagement_rate'] = engaged / (sent * 2) * 100
    else:
        subscriber['engagement_rate'] = 0
    return subscriber


def _interest_filter(interests):
    """SQL fragment matching rows whose interests JSON array shares a tag with interests"""
    placeholders = ', '.join('?' for _ in interests)
    return (f'EXISTS (SELECT 1 FROM json_each(subscribers.interests) '
            f'WHERE json_each.value IN ({placeholders}))')


class SubscriberDirectory:
    """
    Subscriber store plus the subscribe/verify/unsubscribe lifecycle.

    mailer only needs send_email(recipient, subject, html_body, text_body);
    settings supplies site_name for the confirmation email.
    """

    def __init__(self, database, mailer=None, settings=None, frontend_url='http://localhost:3000'):
        if isinstance(database, str):
            database = Database(database)
        self.database = database
        self.mailer = mailer
        self.settings = settings
        self.frontend_url = frontend_url.rstrip('/')

    # ===================
    # LIFECYCLE
    # ===================

    def subscribe(self, email, first_name=None, last_name=None, interests=None,
                  source='website', ip_address=None, user_agent=None):
        """
        Subscribe email, returning (subscriber, created).

        A new address gets fresh tokens. An inactive address is reactivated
        in place keeping both tokens. An active address raises
        DuplicateSubscription. A confirmation email is sent in both
        successful cases; a send failure is logged and not raised.
        """
        email = require_email(email)
        first_name = optional_text({'first_name': first_name}, 'first_name', 50, 'First name')
        last_name = optional_text({'last_name': last_name}, 'last_name', 50, 'Last name')
        if interests is not None:
            interests = require_interests(interests)
        require_choice(source or 'website', SUBSCRIBER_SOURCES, 'source')

        existing = self.database.fetch_one('SELECT * FROM subscribers WHERE email = ?', (email,))

        if existing:
            if existing['is_active']:
                raise DuplicateSubscription(email)

            now = utc_now()
            self.database.execute('''
                UPDATE subscribers
                SET is_active = 1,
                    unsubscribed_at = NULL,
                    subscribed_at = ?,
                    interests = COALESCE(?, interests),
                    ip_address = ?,
                    user_agent = ?,
                    updated_at = ?
                WHERE id = ?
            ''', (now, dump_json(interests) if interests is not None else None,
                  ip_address, user_agent, now, existing['id']))

            logger.info(f"Reactivated subscription for: {email}")
            db_log('info', 'subscribers', f'Subscription reactivated: {email}', {'ip': ip_address})
            subscriber = self.get(existing['id'])
            self._send_confirmation(subscriber)
            return subscriber, False

        now = utc_now()
        try:
            _, subscriber_id = self.database.execute('''
                INSERT INTO subscribers
                (email, first_name, last_name, interests, is_active, is_verified,
                 verification_token, unsubscribe_token, source, ip_address, user_agent,
                 subscribed_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, 1, 0, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (email, first_name, last_name, dump_json(interests or ['general']),
                  generate_token(), generate_token(), source or 'website',
                  ip_address, user_agent, now, now, now))
        except StoreError as e:
            # a concurrent subscribe inserted the same email first
            if isinstance(e.__cause__, sqlite3.IntegrityError):
                raise DuplicateSubscription(email) from e
            raise

        logger.info(f"New subscription added: {email}")
        db_log('info', 'subscribers', f'New subscriber: {email}', {'ip': ip_address})
        subscriber = self.get(subscriber_id)
        self._send_confirmation(subscriber)
        return subscriber, True

    def _send_confirmation(self, subscriber):
        """Send the confirmation email, logging instead of raising on transport failure"""
        if self.mailer is None:
            logger.warning("No mailer configured, skipping subscription confirmation")
            return False

        site_name = self.settings.get('site_name', 'Newsletter Website') if self.settings else 'Newsletter Website'
        subject, html_body, text_body = templates.subscription_confirmation(
            subscriber, site_name, self.frontend_url
        )
        try:
            self.mailer.send_email(subscriber['email'], subject, html_body, text_body)
        except TransportError as e:
            logger.error(f"Subscription confirmation email failed: {e}")
            db_log('error', 'subscribers', f"Failed to send confirmation to {subscriber['email']}",
                   {'error': e.reason})
            return False
        return True

    def verify(self, token):
        """Mark the subscriber holding this verification token as verified, one use only"""
        if not token:
            raise InvalidToken('verification')
        updated, _ = self.database.execute('''
            UPDATE subscribers
            SET is_verified = 1, verification_token = NULL, updated_at = ?
            WHERE verification_token = ?
        ''', (utc_now(), token))
        if not updated:
            raise InvalidToken('verification')
        logger.info("Subscriber verified")

    def unsubscribe(self, token):
        """Deactivate the subscriber holding this unsubscribe token"""
        if not token:
            raise InvalidToken('unsubscribe')
        now = utc_now()
        updated, _ = self.database.execute('''
            UPDATE subscribers
            SET is_active = 0, unsubscribed_at = ?, updated_at = ?
            WHERE unsubscribe_token = ?
        ''', (now, now, token))
        if not updated:
            raise InvalidToken('unsubscribe')
        db_log('info', 'subscribers', 'Subscriber unsubscribed')

    # ===================
    # DISPATCH SUPPORT
    # ===================

    def find_eligible_for_newsletter(self, newsletter_type):
        """Active, verified subscribers interested in newsletter_type or 'general'"""
        wanted = ['general'] if newsletter_type == 'general' else [newsletter_type, 'general']
        rows = self.database.fetch_all(f'''
            SELECT * FROM subscribers
            WHERE is_active = 1 AND is_verified = 1 AND {_interest_filter(wanted)}
            ORDER BY id
        ''', wanted)
        return [_row_to_subscriber(row) for row in rows]

    def record_email_sent(self, subscriber_id):
        """Count one delivered email against the subscriber"""
        now = utc_now()
        self.database.execute('''
            UPDATE subscribers
            SET emails_sent = emails_sent + 1, last_email_sent = ?, updated_at = ?
            WHERE id = ?
        ''', (now, now, subscriber_id))

    # ===================
    # ADMIN
    # ===================

    def _filters(self, is_active=None, interests=None, search=None):
        clauses, params = ['1=1'], []
        if is_active is not None:
            clauses.append('is_active = ?')
            params.append(int(is_active))
        if interests:
            clauses.append(_interest_filter(interests))
            params.extend(interests)
        if search:
            clauses.append('(email LIKE ? OR first_name LIKE ? OR last_name LIKE ?)')
            params.extend([f'%{search}%'] * 3)
        return ' AND '.join(clauses), params

    def list(self, page=1, limit=10, is_active=None, interests=None, search=None):
        where, params = self._filters(is_active, interests, search)
        rows = self.database.fetch_all(f'''
            SELECT * FROM subscribers WHERE {where}
            ORDER BY subscribed_at DESC, id DESC
            LIMIT ? OFFSET ?
        ''', (*params, limit, (page - 1) * limit))
        return [_row_to_subscriber(row) for row in rows]

    def count(self, is_active=None, interests=None, search=None):
        where, params = self._filters(is_active, interests, search)
        return self.database.fetch_value(f'SELECT COUNT(*) FROM subscribers WHERE {where}', params)

    def get(self, subscriber_id):
        row = self.database.fetch_one('SELECT * FROM subscribers WHERE id = ?', (subscriber_id,))
        if not row:
            raise NotFound('Subscriber not found')
        return _row_to_subscriber(row)

    def find_by_email(self, email):
        row = self.database.fetch_one('SELECT * FROM subscribers WHERE email = ?',
                                      (email.lower().strip(),))
        return _row_to_subscriber(row) if row else None

    def update(self, subscriber_id, fields):
        """Apply whitelisted admin edits, other keys are ignored"""
        self.get(subscriber_id)

        changes = {}
        for key in UPDATABLE_FIELDS:
            if key not in fields:
                continue
            value = fields[key]
            if key == 'interests':
                value = dump_json(require_interests(value))
            elif key == 'is_active':
                if not isinstance(value, bool):
                    raise ValidationError('is_active must be a boolean')
                value = int(value)
            else:
                value = optional_text(fields, key, 50, key.replace('_', ' ').capitalize())
            changes[key] = value

        if changes:
            changes['updated_at'] = utc_now()
            assignments = ', '.join(f'{key} = ?' for key in changes)
            self.database.execute(f'UPDATE subscribers SET {assignments} WHERE id = ?',
                                  (*changes.values(), subscriber_id))
        return self.get(subscriber_id)

    def delete(self, subscriber_id):
        deleted, _ = self.database.execute('DELETE FROM subscribers WHERE id = ?', (subscriber_id,))
        if not deleted:
            raise NotFound('Subscriber not found')

    def stats(self):
        """Totals, interest breakdown among active subscribers and monthly signups"""
        counts = self.database.fetch_one('''
            SELECT COUNT(*) AS total,
                   COALESCE(SUM(is_active), 0) AS active,
                   COALESCE(SUM(is_verified), 0) AS verified
            FROM subscribers
        ''')
        by_interests = self.database.fetch_all('''
            SELECT json_each.value AS interest, COUNT(*) AS count
            FROM subscribers, json_each(subscribers.interests)
            WHERE subscribers.is_active = 1
            GROUP BY json_each.value
            ORDER BY count DESC, interest
        ''')
        return {
            'total': counts['total'],
            'active': counts['active'],
            'verified': counts['verified'],
            'by_interests': by_interests,
            'monthly_data': self.database.monthly_counts('subscribers', 'subscribed_at'),
        }
