"""
Contacts Database
=================

Contact form submissions. Senders get an acknowledgement email and the
admin is notified when email_notifications is switched on.
"""

import logging

from newsdesk.core.database import Database, utc_now
from newsdesk.core.errors import NotFound, TransportError
from newsdesk.core.logging_service import db_log
from newsdesk.core.validation import (
    CONTACT_STATUSES, optional_text, require_choice, require_email, require_text,
)
from newsdesk.modules.email import templates

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 3000
OPTIONAL_FIELDS = ('title', 'file', 'survey', 'organization', 'advise')


def _row_to_contact(row):
    contact = dict(row)
    contact['full_name'] = f"{contact['first_name']} {contact['last_name']}"
    return contact


class ContactStore:
    """Contact submissions plus the emails sent on submit"""

    def __init__(self, database, mailer=None, settings=None, frontend_url='http://localhost:3000'):
        if isinstance(database, str):
            database = Database(database)
        self.database = database
        self.mailer = mailer
        self.settings = settings
        self.frontend_url = frontend_url.rstrip('/')

    def submit(self, data, ip_address=None, user_agent=None):
        """Validate and store a submission, then email the sender (failures logged)"""
        record = {
            'first_name': require_text(data, 'first_name', 2, 50, 'First name'),
            'last_name': require_text(data, 'last_name', 2, 50, 'Last name'),
            'email': require_email(data.get('email')),
            'message': require_text(data, 'message', 1, MAX_MESSAGE_LENGTH, 'Message'),
        }
        for field in OPTIONAL_FIELDS:
            record[field] = optional_text(data, field, 500)
        record['ip_address'] = ip_address
        record['user_agent'] = user_agent
        record['created_at'] = record['updated_at'] = utc_now()

        columns = ', '.join(record)
        placeholders = ', '.join('?' for _ in record)
        _, contact_id = self.database.execute(
            f'INSERT INTO contacts ({columns}) VALUES ({placeholders})', tuple(record.values()))

        contact = self.get(contact_id)
        logger.info(f"Contact form submitted: {contact['email']}")
        db_log('info', 'contacts', f"Contact form submitted: {contact['email']}", {'id': contact_id})
        self._send_emails(contact)
        return contact

    def _send_emails(self, contact):
        if self.mailer is None:
            return
        site_name = self.settings.get('site_name', 'Newsletter Website') if self.settings else 'Newsletter Website'

        subject, html_body, text_body = templates.contact_confirmation(contact, site_name)
        try:
            self.mailer.send_email(contact['email'], subject, html_body, text_body)
        except TransportError as e:
            logger.error(f"Contact confirmation email failed: {e}")
            db_log('error', 'contacts', 'Contact confirmation email failed', {'error': e.reason})

        if not (self.settings and self.settings.get('email_notifications', False)):
            return
        admin_email = self.settings.get('admin_email') or getattr(self.mailer, 'admin_email', None)
        if not admin_email:
            return
        subject, html_body, text_body = templates.contact_notification(
            contact, site_name, self.frontend_url)
        try:
            self.mailer.send_email(admin_email, subject, html_body, text_body)
        except TransportError as e:
            logger.error(f"Contact notification email failed: {e}")
            db_log('error', 'contacts', 'Contact notification email failed', {'error': e.reason})

    def get(self, contact_id):
        row = self.database.fetch_one('SELECT * FROM contacts WHERE id = ?', (contact_id,))
        if not row:
            raise NotFound('Contact not found')
        return _row_to_contact(row)

    def update_status(self, contact_id, status):
        """Only the status of a submission is editable"""
        self.get(contact_id)
        require_choice(status, CONTACT_STATUSES, 'status')
        self.database.execute('UPDATE contacts SET status = ?, updated_at = ? WHERE id = ?',
                              (status, utc_now(), contact_id))
        return self.get(contact_id)

    def delete(self, contact_id):
        deleted, _ = self.database.execute('DELETE FROM contacts WHERE id = ?', (contact_id,))
        if not deleted:
            raise NotFound('Contact not found')

    def _filters(self, status=None, search=None):
        clauses, params = ['1=1'], []
        if status:
            clauses.append('status = ?')
            params.append(status)
        if search:
            clauses.append('(first_name LIKE ? OR last_name LIKE ? OR email LIKE ? '
                           'OR organization LIKE ? OR title LIKE ?)')
            params.extend([f'%{search}%'] * 5)
        return ' AND '.join(clauses), params

    def list(self, page=1, limit=10, status=None, search=None):
        where, params = self._filters(status, search)
        rows = self.database.fetch_all(f'''
            SELECT * FROM contacts WHERE {where}
            ORDER BY created_at DESC, id DESC
            LIMIT ? OFFSET ?
        ''', (*params, limit, (page - 1) * limit))
        return [_row_to_contact(row) for row in rows]

    def count(self, status=None, search=None):
        where, params = self._filters(status, search)
        return self.database.fetch_value(f'SELECT COUNT(*) FROM contacts WHERE {where}', params)

    def recent(self, limit=5):
        return self.list(page=1, limit=limit)

    def stats(self):
        by_status = {status: 0 for status in CONTACT_STATUSES}
        for row in self.database.fetch_all(
                'SELECT status, COUNT(*) AS count FROM contacts GROUP BY status'):
            by_status[row['status']] = row['count']
        return {
            'total': sum(by_status.values()),
            'by_status': by_status,
            'monthly_data': self.database.monthly_counts('contacts'),
        }
