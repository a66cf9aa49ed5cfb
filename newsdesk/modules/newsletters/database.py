"""
Newsletter Catalog
==================

Newsletters stored with a unique slug derived from the title. Authors are
users, resolved into a small author object on every read.
"""

import logging
import math
import re
from urllib.parse import urlparse

from newsdesk.core.database import Database, dump_json, load_json, utc_now
from newsdesk.core.errors import NotFound, ValidationError
from newsdesk.core.validation import (
    NEWSLETTER_STATUSES, NEWSLETTER_TYPES, optional_text, require_choice,
    require_string_list, require_text,
)

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200

# Fields accepted by create() and update()
EDITABLE_FIELDS = (
    'title', 'content', 'excerpt', 'type', 'featured_image', 'video_url',
    'tags', 'status', 'featured', 'author_id',
)

SELECT_NEWSLETTER = '''
    SELECT n.*, u.first_name AS author_first_name, u.last_name AS author_last_name,
           u.avatar AS author_avatar
    FROM newsletters n
    LEFT JOIN users u ON u.id = n.author_id
'''


def reading_time(content):
    """Minutes to read content at WORDS_PER_MINUTE, rounded up"""
    return math.ceil(len((content or '').split()) / WORDS_PER_MINUTE)


def _row_to_newsletter(row):
    """Convert a joined newsletters row into its API shape"""
    newsletter = dict(row)
    newsletter['tags'] = load_json(newsletter.get('tags'))
    newsletter['featured'] = bool(newsletter['featured'])
    newsletter['email_sent'] = bool(newsletter['email_sent'])
    newsletter['reading_time'] = reading_time(newsletter['content'])

    first = newsletter.pop('author_first_name', None)
    last = newsletter.pop('author_last_name', None)
    avatar = newsletter.pop('author_avatar', None)
    if first is None and last is None:
        newsletter['author'] = None
    else:
        newsletter['author'] = {
            'id': newsletter['author_id'],
            'first_name': first,
            'last_name': last,
            'full_name': f'{first} {last}',
            'avatar': avatar,
        }
    return newsletter


def _check_url(value, field):
    if value is None:
        return None
    parsed = urlparse(value) if isinstance(value, str) else None
    if not parsed or not parsed.scheme or not parsed.netloc:
        raise ValidationError(f'{field} must be a valid URL')
    return value


class NewsletterCatalog:
    """CRUD and lookups for newsletters"""

    def __init__(self, database):
        if isinstance(database, str):
            database = Database(database)
        self.database = database

    def create_slug(self, title, exclude_id=None):
        """Create URL-friendly slug with uniqueness checking"""
        slug = re.sub(r'[^\w\s-]', '', title.lower())
        slug = re.sub(r'[-\s]+', '-', slug).strip('-') or 'newsletter'

        # Ensure uniqueness
        base_slug = slug
        counter = 1
        while True:
            existing = self.database.fetch_value(
                'SELECT id FROM newsletters WHERE slug = ?', (slug,))
            if existing is None or existing == exclude_id:
                break
            slug = f"{base_slug}-{counter}"
            counter += 1
        return slug

    def _clean(self, data, partial=False):
        """Validate editable fields, returning column values ready to store"""
        clean = {}

        if not partial or 'title' in data:
            clean['title'] = require_text(data, 'title', 5, 200)
        if not partial or 'content' in data:
            clean['content'] = require_text(data, 'content', 10)
        if not partial or 'author_id' in data:
            author_id = data.get('author_id')
            if author_id in (None, ''):
                raise ValidationError('Author is required')
            try:
                author_id = int(author_id)
            except (TypeError, ValueError):
                raise ValidationError('Author not found')
            if not self.database.fetch_value('SELECT 1 FROM users WHERE id = ?', (author_id,)):
                raise ValidationError('Author not found')
            clean['author_id'] = author_id

        if 'excerpt' in data:
            clean['excerpt'] = optional_text(data, 'excerpt', 500, 'Excerpt')
        if 'type' in data or not partial:
            clean['type'] = require_choice(data.get('type') or 'general', NEWSLETTER_TYPES, 'type')
        if 'status' in data or not partial:
            clean['status'] = require_choice(data.get('status') or 'draft', NEWSLETTER_STATUSES, 'status')
        if 'featured' in data:
            if not isinstance(data['featured'], bool):
                raise ValidationError('featured must be a boolean')
            clean['featured'] = int(data['featured'])
        if 'tags' in data:
            clean['tags'] = dump_json(require_string_list(data['tags'], 'tags'))
        if 'featured_image' in data:
            clean['featured_image'] = _check_url(data['featured_image'], 'featured_image')
        if 'video_url' in data:
            clean['video_url'] = _check_url(data['video_url'], 'video_url')
        return clean

    def create(self, data):
        clean = self._clean(data)
        now = utc_now()
        clean['slug'] = self.create_slug(clean['title'])
        clean.setdefault('tags', dump_json([]))
        if clean['status'] == 'published':
            clean['publish_date'] = now
        clean['created_at'] = clean['updated_at'] = now

        columns = ', '.join(clean)
        placeholders = ', '.join('?' for _ in clean)
        _, newsletter_id = self.database.execute(
            f'INSERT INTO newsletters ({columns}) VALUES ({placeholders})',
            tuple(clean.values()))

        logger.info(f"Newsletter created: {clean['slug']}")
        return self.get(newsletter_id)

    def update(self, newsletter_id, data):
        """
        Partial update of editable fields. The slug is regenerated only when
        the title changes and publish_date is stamped on first publish.
        """
        current = self.get(newsletter_id)
        clean = self._clean({k: v for k, v in data.items() if k in EDITABLE_FIELDS}, partial=True)

        if 'title' in clean and clean['title'] != current['title']:
            clean['slug'] = self.create_slug(clean['title'], exclude_id=newsletter_id)
        if clean.get('status') == 'published' and not current['publish_date']:
            clean['publish_date'] = utc_now()

        if clean:
            clean['updated_at'] = utc_now()
            assignments = ', '.join(f'{key} = ?' for key in clean)
            self.database.execute(f'UPDATE newsletters SET {assignments} WHERE id = ?',
                                  (*clean.values(), newsletter_id))
        return self.get(newsletter_id)

    def get(self, newsletter_id):
        row = self.database.fetch_one(f'{SELECT_NEWSLETTER} WHERE n.id = ?', (newsletter_id,))
        if not row:
            raise NotFound('Newsletter not found')
        return _row_to_newsletter(row)

    def get_by_id_or_slug(self, identifier):
        """Decimal identifiers are tried as ids first, then everything is tried as a slug"""
        identifier = str(identifier)
        row = None
        if identifier.isdecimal():
            row = self.database.fetch_one(f'{SELECT_NEWSLETTER} WHERE n.id = ?', (int(identifier),))
        if not row:
            row = self.database.fetch_one(f'{SELECT_NEWSLETTER} WHERE n.slug = ?', (identifier,))
        if not row:
            raise NotFound('Newsletter not found')
        return _row_to_newsletter(row)

    def increment_views(self, newsletter_id):
        self.database.execute('UPDATE newsletters SET views = views + 1 WHERE id = ?',
                              (newsletter_id,))

    def mark_email_sent(self, newsletter_id):
        now = utc_now()
        self.database.execute('''
            UPDATE newsletters SET email_sent = 1, email_sent_at = ?, updated_at = ?
            WHERE id = ?
        ''', (now, now, newsletter_id))
        return self.get(newsletter_id)

    def delete(self, newsletter_id):
        deleted, _ = self.database.execute('DELETE FROM newsletters WHERE id = ?', (newsletter_id,))
        if not deleted:
            raise NotFound('Newsletter not found')

    def _filters(self, type=None, status=None, featured=None, author_id=None, search=None):
        clauses, params = ['1=1'], []
        if type:
            clauses.append('n.type = ?')
            params.append(type)
        if status:
            clauses.append('n.status = ?')
            params.append(status)
        if featured is not None:
            clauses.append('n.featured = ?')
            params.append(int(featured))
        if author_id:
            clauses.append('n.author_id = ?')
            params.append(author_id)
        if search:
            clauses.append('(n.title LIKE ? OR n.content LIKE ? OR n.tags LIKE ?)')
            params.extend([f'%{search}%'] * 3)
        return ' AND '.join(clauses), params

    def list(self, page=1, limit=10, **filters):
        where, params = self._filters(**filters)
        rows = self.database.fetch_all(f'''
            {SELECT_NEWSLETTER}
            WHERE {where}
            ORDER BY n.publish_date DESC, n.created_at DESC, n.id DESC
            LIMIT ? OFFSET ?
        ''', (*params, limit, (page - 1) * limit))
        return [_row_to_newsletter(row) for row in rows]

    def count(self, **filters):
        where, params = self._filters(**filters)
        return self.database.fetch_value(f'SELECT COUNT(*) FROM newsletters n WHERE {where}', params)

    def recent(self, limit=5):
        rows = self.database.fetch_all(
            f'{SELECT_NEWSLETTER} ORDER BY n.created_at DESC, n.id DESC LIMIT ?', (limit,))
        return [_row_to_newsletter(row) for row in rows]
