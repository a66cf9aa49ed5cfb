"""
Shared fixtures for the Newsdesk test suite.

Every test gets a Flask app over a temporary database directory with a
FakeMailer injected in place of the real email service and a recording
sleep in place of asyncio.sleep.
"""

import os
import shutil
import tempfile

import pytest
from flask import Flask

from newsdesk import Newsdesk
from newsdesk.core.errors import TransportError


class FakeMailer:
    """In-memory transport. Addresses in fail_for raise TransportError."""

    def __init__(self, events=None, fail_for=()):
        self.events = events if events is not None else []
        self.fail_for = set(fail_for)
        self.sent = []

    def send_email(self, recipient, subject, html_body, text_body=None, email_type='other'):
        self.events.append(('send', recipient))
        if recipient in self.fail_for:
            raise TransportError(recipient, 'simulated provider failure')
        self.sent.append({
            'recipient': recipient,
            'subject': subject,
            'html_body': html_body,
            'text_body': text_body,
            'email_type': email_type,
        })
        return f'fake-{len(self.sent)}'

    async def send_email_async(self, recipient, subject, html_body, text_body=None, email_type='other'):
        return self.send_email(recipient, subject, html_body, text_body, email_type)

    def sent_to(self, recipient):
        return [m for m in self.sent if m['recipient'] == recipient]


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="newsdesk-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def events():
    """Ordered log of sends and batch pauses"""
    return []


@pytest.fixture
def mailer(events):
    return FakeMailer(events)


@pytest.fixture
def app(tmp_db_dir, mailer, events):
    """Fully initialised Flask app with every Newsdesk module registered."""
    async def recording_sleep(seconds):
        events.append(('sleep', seconds))

    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir
    app.config["NEWSDESK_DB"] = os.path.join(tmp_db_dir, "newsdesk.db")
    app.config["FRONTEND_URL"] = "https://news.example.com"
    app.config["ADMIN_AUTH_ENABLED"] = False
    Newsdesk(app, mailer=mailer, sleep=recording_sleep)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def newsdesk(app):
    return app.extensions["newsdesk"]


@pytest.fixture
def author(newsdesk):
    return newsdesk.users.create({
        'first_name': 'Ada',
        'last_name': 'Lovelace',
        'email': 'ada@example.com',
        'password': 'analytical',
        'role': 'editor',
    })


@pytest.fixture
def make_subscriber(newsdesk):
    """Create a subscriber, verified unless told otherwise."""
    def _make(email, interests=None, verified=True, **profile):
        subscriber, _ = newsdesk.subscribers.subscribe(email, interests=interests, **profile)
        if verified:
            newsdesk.subscribers.verify(subscriber['verification_token'])
        return newsdesk.subscribers.get(subscriber['id'])
    return _make


@pytest.fixture
def make_newsletter(newsdesk, author):
    def _make(title='Weekly Roundup Issue', type='general', status='published', **extra):
        data = {
            'title': title,
            'content': 'Plenty of interesting things happened this week in the newsroom.',
            'author_id': author['id'],
            'type': type,
            'status': status,
        }
        data.update(extra)
        return newsdesk.newsletters.create(data)
    return _make
