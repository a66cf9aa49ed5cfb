"""
Tests for the subscriber directory lifecycle and its routes.
"""

import pytest

from newsdesk.core.errors import DuplicateSubscription, InvalidToken, NotFound, ValidationError


# ---------------------------------------------------------------------------
# Subscribe
# ---------------------------------------------------------------------------

def test_subscribe_creates_active_unverified_record(newsdesk, mailer):
    subscriber, created = newsdesk.subscribers.subscribe('  Reader@Example.COM ')

    assert created is True
    assert subscriber['email'] == 'reader@example.com'
    assert subscriber['is_active'] is True
    assert subscriber['is_verified'] is False
    assert subscriber['interests'] == ['general']
    assert len(subscriber['verification_token']) == 64
    assert len(subscriber['unsubscribe_token']) == 64
    assert subscriber['verification_token'] != subscriber['unsubscribe_token']
    assert len(mailer.sent_to('reader@example.com')) == 1, "A confirmation email is sent"


def test_confirmation_email_links_to_verify_page(newsdesk, mailer):
    subscriber, _ = newsdesk.subscribers.subscribe('link@example.com')
    html = mailer.sent_to('link@example.com')[0]['html_body']

    assert f"https://news.example.com/verify/{subscriber['verification_token']}" in html


def test_subscribe_rejects_bad_input(newsdesk):
    with pytest.raises(ValidationError):
        newsdesk.subscribers.subscribe('not-an-email')
    with pytest.raises(ValidationError):
        newsdesk.subscribers.subscribe('a@example.com', interests=['cooking'])
    with pytest.raises(ValidationError):
        newsdesk.subscribers.subscribe('a@example.com', interests=[])
    with pytest.raises(ValidationError):
        newsdesk.subscribers.subscribe('a@example.com', first_name='x' * 51)


def test_subscribe_twice_while_active_is_duplicate(newsdesk):
    newsdesk.subscribers.subscribe('dup@example.com')

    with pytest.raises(DuplicateSubscription) as excinfo:
        newsdesk.subscribers.subscribe('DUP@example.com')
    assert excinfo.value.message == 'Email already subscribed'
    assert newsdesk.subscribers.count() == 1


def test_concurrent_first_subscribe_is_duplicate(newsdesk, monkeypatch):
    newsdesk.subscribers.subscribe('race@example.com')

    # the second caller's existence check ran before the first insert committed
    real_fetch_one = newsdesk.database.fetch_one

    def stale_fetch_one(query, params=()):
        if query == 'SELECT * FROM subscribers WHERE email = ?':
            return None
        return real_fetch_one(query, params)

    monkeypatch.setattr(newsdesk.database, 'fetch_one', stale_fetch_one)

    with pytest.raises(DuplicateSubscription):
        newsdesk.subscribers.subscribe('race@example.com')
    assert newsdesk.subscribers.count() == 1


def test_resubscribe_after_unsubscribe_reactivates_in_place(newsdesk):
    original, _ = newsdesk.subscribers.subscribe('back@example.com', interests=['photos'])
    newsdesk.subscribers.unsubscribe(original['unsubscribe_token'])

    again, created = newsdesk.subscribers.subscribe('back@example.com', interests=['videos'])

    assert created is False
    assert again['id'] == original['id']
    assert again['is_active'] is True
    assert again['unsubscribed_at'] is None
    assert again['interests'] == ['videos']
    assert again['unsubscribe_token'] == original['unsubscribe_token']
    assert again['verification_token'] == original['verification_token']
    assert newsdesk.subscribers.count() == 1


def test_confirmation_failure_does_not_fail_subscribe(app, newsdesk, mailer):
    mailer.fail_for.add('flaky@example.com')

    subscriber, created = newsdesk.subscribers.subscribe('flaky@example.com')

    assert created is True
    assert newsdesk.subscribers.find_by_email('flaky@example.com')['id'] == subscriber['id']
    assert mailer.sent_to('flaky@example.com') == []


# ---------------------------------------------------------------------------
# Verify / unsubscribe
# ---------------------------------------------------------------------------

def test_verify_token_is_single_use(newsdesk):
    subscriber, _ = newsdesk.subscribers.subscribe('verify@example.com')
    token = subscriber['verification_token']

    newsdesk.subscribers.verify(token)
    verified = newsdesk.subscribers.get(subscriber['id'])
    assert verified['is_verified'] is True
    assert verified['verification_token'] is None

    with pytest.raises(InvalidToken) as excinfo:
        newsdesk.subscribers.verify(token)
    assert excinfo.value.message == 'Invalid verification token'


def test_unsubscribe_deactivates(newsdesk):
    subscriber, _ = newsdesk.subscribers.subscribe('leave@example.com')

    newsdesk.subscribers.unsubscribe(subscriber['unsubscribe_token'])

    gone = newsdesk.subscribers.get(subscriber['id'])
    assert gone['is_active'] is False
    assert gone['unsubscribed_at'] is not None


def test_unknown_tokens_raise(newsdesk):
    with pytest.raises(InvalidToken):
        newsdesk.subscribers.verify('f' * 64)
    with pytest.raises(InvalidToken):
        newsdesk.subscribers.unsubscribe('f' * 64)
    with pytest.raises(InvalidToken):
        newsdesk.subscribers.verify('')


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------

def test_eligibility_by_interest(newsdesk, make_subscriber):
    general = make_subscriber('general@example.com', ['general'])
    photos = make_subscriber('photos@example.com', ['photos'])
    both = make_subscriber('both@example.com', ['photos', 'general'])
    make_subscriber('press@example.com', ['press'])
    make_subscriber('unverified@example.com', ['general'], verified=False)
    inactive = make_subscriber('inactive@example.com', ['general'])
    newsdesk.subscribers.unsubscribe(inactive['unsubscribe_token'])

    photo_ids = [s['id'] for s in newsdesk.subscribers.find_eligible_for_newsletter('photos')]
    general_ids = [s['id'] for s in newsdesk.subscribers.find_eligible_for_newsletter('general')]

    assert photo_ids == [general['id'], photos['id'], both['id']]
    assert general_ids == [general['id'], both['id']]


def test_record_email_sent_increments_counter(newsdesk, make_subscriber):
    subscriber = make_subscriber('count@example.com')

    newsdesk.subscribers.record_email_sent(subscriber['id'])
    newsdesk.subscribers.record_email_sent(subscriber['id'])

    updated = newsdesk.subscribers.get(subscriber['id'])
    assert updated['emails_sent'] == 2
    assert updated['last_email_sent'] is not None


# ---------------------------------------------------------------------------
# Admin operations
# ---------------------------------------------------------------------------

def test_update_only_touches_whitelisted_fields(newsdesk, make_subscriber):
    subscriber = make_subscriber('edit@example.com')

    updated = newsdesk.subscribers.update(subscriber['id'], {
        'first_name': 'Grace',
        'last_name': 'Hopper',
        'interests': ['press', 'press'],
        'email': 'hijack@example.com',
        'is_verified': False,
        'emails_sent': 999,
    })

    assert updated['full_name'] == 'Grace Hopper'
    assert updated['interests'] == ['press']
    assert updated['email'] == 'edit@example.com'
    assert updated['is_verified'] is True
    assert updated['emails_sent'] == 0


def test_update_validates_types(newsdesk, make_subscriber):
    subscriber = make_subscriber('types@example.com')
    with pytest.raises(ValidationError):
        newsdesk.subscribers.update(subscriber['id'], {'is_active': 'yes'})
    with pytest.raises(NotFound):
        newsdesk.subscribers.update(9999, {'first_name': 'Nobody'})


def test_full_name_falls_back(newsdesk):
    only_first, _ = newsdesk.subscribers.subscribe('first@example.com', first_name='Alan')
    nameless, _ = newsdesk.subscribers.subscribe('nameless@example.com')

    assert only_first['full_name'] == 'Alan'
    assert nameless['full_name'] == 'nameless@example.com'
    assert nameless['engagement_rate'] == 0


def test_list_filters(newsdesk, make_subscriber):
    make_subscriber('ada@example.com', ['photos'], first_name='Ada')
    make_subscriber('bob@example.com', ['press'])
    gone = make_subscriber('gone@example.com', ['photos'])
    newsdesk.subscribers.unsubscribe(gone['unsubscribe_token'])

    assert newsdesk.subscribers.count() == 3
    assert newsdesk.subscribers.count(is_active=True) == 2
    assert newsdesk.subscribers.count(interests=['photos']) == 2
    assert [s['email'] for s in newsdesk.subscribers.list(search='Ada')] == ['ada@example.com']
    assert len(newsdesk.subscribers.list(page=2, limit=2)) == 1


def test_stats(newsdesk, make_subscriber):
    make_subscriber('one@example.com', ['photos', 'general'])
    make_subscriber('two@example.com', ['photos'], verified=False)

    stats = newsdesk.subscribers.stats()

    assert stats['total'] == 2
    assert stats['active'] == 2
    assert stats['verified'] == 1
    assert {'interest': 'photos', 'count': 2} in stats['by_interests']
    assert {'interest': 'general', 'count': 1} in stats['by_interests']
    assert sum(m['count'] for m in stats['monthly_data']) == 2


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

def test_subscribe_route_created_then_duplicate(client):
    response = client.post('/api/subscribers/subscribe', json={
        'email': 'route@example.com', 'interests': ['videos'],
    })
    body = response.get_json()

    assert response.status_code == 201
    assert body['message'] == 'Subscribed successfully! Please check your email to confirm.'
    assert body['data']['interests'] == ['videos']
    assert 'verification_token' not in body['data'], "Tokens must not leak to the public caller"
    assert 'unsubscribe_token' not in body['data']

    duplicate = client.post('/api/subscribers/subscribe', json={'email': 'route@example.com'})
    assert duplicate.status_code == 400
    assert duplicate.get_json() == {'success': False, 'message': 'Email already subscribed'}


def test_subscribe_route_reactivation_returns_200(client, newsdesk):
    subscriber, _ = newsdesk.subscribers.subscribe('again@example.com')
    newsdesk.subscribers.unsubscribe(subscriber['unsubscribe_token'])

    response = client.post('/api/subscribers/subscribe', json={'email': 'again@example.com'})

    assert response.status_code == 200
    assert response.get_json()['message'] == 'Subscription reactivated successfully'


def test_subscribe_route_records_request_metadata(client, newsdesk):
    client.post('/api/subscribers/subscribe', json={'email': 'meta@example.com'},
                headers={'X-Forwarded-For': '203.0.113.9, 10.0.0.1', 'User-Agent': 'pytest-agent'})

    subscriber = newsdesk.subscribers.find_by_email('meta@example.com')
    assert subscriber['ip_address'] == '203.0.113.9'
    assert subscriber['user_agent'] == 'pytest-agent'


def test_verify_and_unsubscribe_routes(client, newsdesk):
    subscriber, _ = newsdesk.subscribers.subscribe('links@example.com')

    verify = client.get(f"/api/subscribers/verify/{subscriber['verification_token']}")
    assert verify.status_code == 200
    assert verify.get_json()['message'] == 'Email verified successfully!'

    reused = client.get(f"/api/subscribers/verify/{subscriber['verification_token']}")
    assert reused.status_code == 404
    assert reused.get_json()['message'] == 'Invalid verification token'

    leave = client.get(f"/api/subscribers/unsubscribe/{subscriber['unsubscribe_token']}")
    assert leave.status_code == 200
    assert newsdesk.subscribers.get(subscriber['id'])['is_active'] is False


def test_admin_list_route_paginates(client, make_subscriber):
    for i in range(3):
        make_subscriber(f'p{i}@example.com', ['photos'])
    make_subscriber('x@example.com', ['press'])

    body = client.get('/api/subscribers?interests=photos,videos&limit=2').get_json()

    assert body['total'] == 3
    assert body['count'] == 2
    assert body['pagination'] == {'page': 1, 'pages': 2, 'limit': 2}


def test_admin_update_and_delete_routes(client, make_subscriber):
    subscriber = make_subscriber('admin-edit@example.com')

    updated = client.put(f"/api/subscribers/{subscriber['id']}", json={'is_active': False})
    assert updated.status_code == 200
    assert updated.get_json()['data']['is_active'] is False

    assert client.delete(f"/api/subscribers/{subscriber['id']}").status_code == 200
    missing = client.delete(f"/api/subscribers/{subscriber['id']}")
    assert missing.status_code == 404
    assert missing.get_json()['message'] == 'Subscriber not found'


def test_stats_route(client, make_subscriber):
    make_subscriber('stat@example.com')
    body = client.get('/api/subscribers/stats').get_json()
    assert body['data']['total'] == 1
