"""
Tests for the newsletter catalog and its public and admin routes.
"""

import pytest

from newsdesk.core.errors import NotFound, ValidationError
from newsdesk.modules.newsletters.database import reading_time


CONTENT = 'Plenty of interesting things happened this week in the newsroom.'


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

def test_create_sets_slug_author_and_defaults(newsdesk, author):
    newsletter = newsdesk.newsletters.create({
        'title': 'Hello, World!  Again',
        'content': CONTENT,
        'author_id': author['id'],
    })

    assert newsletter['slug'] == 'hello-world-again'
    assert newsletter['type'] == 'general'
    assert newsletter['status'] == 'draft'
    assert newsletter['publish_date'] is None
    assert newsletter['tags'] == []
    assert newsletter['views'] == 0
    assert newsletter['featured'] is False
    assert newsletter['email_sent'] is False
    assert newsletter['author'] == {
        'id': author['id'],
        'first_name': 'Ada',
        'last_name': 'Lovelace',
        'full_name': 'Ada Lovelace',
        'avatar': None,
    }


def test_slug_collisions_get_counter_suffix(make_newsletter):
    first = make_newsletter(title='Same Title Here')
    second = make_newsletter(title='Same Title Here')
    third = make_newsletter(title='Same Title Here')

    assert [n['slug'] for n in (first, second, third)] == [
        'same-title-here', 'same-title-here-1', 'same-title-here-2',
    ]


def test_slug_falls_back_for_symbol_titles(make_newsletter):
    assert make_newsletter(title='!!!???')['slug'] == 'newsletter'


@pytest.mark.parametrize("overrides,message", [
    ({'title': 'Shrt'}, 'Title must be at least 5 characters'),
    ({'title': 'x' * 201}, 'Title cannot exceed 200 characters'),
    ({'content': 'too short'}, 'Content must be at least 10 characters'),
    ({'author_id': None}, 'Author is required'),
    ({'author_id': 9999}, 'Author not found'),
    ({'type': 'podcasts'}, None),
    ({'status': 'scheduled'}, None),
    ({'featured': 'yes'}, 'featured must be a boolean'),
    ({'tags': 'python'}, 'tags must be a list of strings'),
    ({'featured_image': 'not a url'}, 'featured_image must be a valid URL'),
    ({'excerpt': 'x' * 501}, 'Excerpt cannot exceed 500 characters'),
])
def test_create_validation(newsdesk, author, overrides, message):
    data = {'title': 'Valid Title', 'content': CONTENT, 'author_id': author['id']}
    data.update(overrides)

    with pytest.raises(ValidationError) as excinfo:
        newsdesk.newsletters.create(data)
    if message:
        assert excinfo.value.message == message


def test_create_published_stamps_publish_date(make_newsletter):
    published = make_newsletter(status='published')
    assert published['publish_date'] is not None


def test_update_regenerates_slug_only_on_title_change(newsdesk, make_newsletter):
    newsletter = make_newsletter(title='Original Title', status='draft')

    same = newsdesk.newsletters.update(newsletter['id'], {'title': 'Original Title', 'excerpt': 'Short'})
    assert same['slug'] == 'original-title'
    assert same['excerpt'] == 'Short'

    renamed = newsdesk.newsletters.update(newsletter['id'], {'title': 'Brand New Title'})
    assert renamed['slug'] == 'brand-new-title'


def test_update_keeps_own_slug_when_retitled_back(newsdesk, make_newsletter):
    newsletter = make_newsletter(title='Round Trip Title')
    newsdesk.newsletters.update(newsletter['id'], {'title': 'Detour Title'})

    back = newsdesk.newsletters.update(newsletter['id'], {'title': 'Round Trip Title'})
    assert back['slug'] == 'round-trip-title'


def test_first_publish_stamps_date_once(newsdesk, make_newsletter):
    newsletter = make_newsletter(status='draft')

    published = newsdesk.newsletters.update(newsletter['id'], {'status': 'published'})
    stamp = published['publish_date']
    assert stamp is not None

    newsdesk.newsletters.update(newsletter['id'], {'status': 'archived'})
    again = newsdesk.newsletters.update(newsletter['id'], {'status': 'published'})
    assert again['publish_date'] == stamp


def test_update_ignores_unknown_fields(newsdesk, make_newsletter):
    newsletter = make_newsletter()
    updated = newsdesk.newsletters.update(newsletter['id'], {'views': 1000, 'slug': 'hijack'})

    assert updated['views'] == 0
    assert updated['slug'] == newsletter['slug']


def test_lookup_by_id_or_slug(newsdesk, make_newsletter):
    newsletter = make_newsletter(title='Lookup Target')

    assert newsdesk.newsletters.get_by_id_or_slug(str(newsletter['id']))['id'] == newsletter['id']
    assert newsdesk.newsletters.get_by_id_or_slug('lookup-target')['id'] == newsletter['id']
    with pytest.raises(NotFound):
        newsdesk.newsletters.get_by_id_or_slug('missing-slug')


def test_lookup_all_digit_slug(newsdesk, make_newsletter):
    newsletter = make_newsletter(title='20245')

    assert newsletter['slug'] == '20245'
    assert newsdesk.newsletters.get_by_id_or_slug('20245')['id'] == newsletter['id']


def test_filters_and_count(newsdesk, make_newsletter):
    make_newsletter(title='Photo Essay One', type='photos', featured=True, tags=['travel'])
    make_newsletter(title='Press Release One', type='press')
    make_newsletter(title='Draft Photo Essay', type='photos', status='draft')

    assert newsdesk.newsletters.count() == 3
    assert newsdesk.newsletters.count(type='photos') == 2
    assert newsdesk.newsletters.count(type='photos', status='published') == 1
    assert newsdesk.newsletters.count(featured=True) == 1
    assert [n['title'] for n in newsdesk.newsletters.list(search='travel')] == ['Photo Essay One']


def test_reading_time():
    assert reading_time('') == 0
    assert reading_time('word ' * 200) == 1
    assert reading_time('word ' * 201) == 2


def test_delete(newsdesk, make_newsletter):
    newsletter = make_newsletter()
    newsdesk.newsletters.delete(newsletter['id'])

    with pytest.raises(NotFound):
        newsdesk.newsletters.get(newsletter['id'])
    with pytest.raises(NotFound):
        newsdesk.newsletters.delete(newsletter['id'])


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

def test_create_route(client, author):
    response = client.post('/api/newsletters', json={
        'title': 'Created Through Route',
        'content': CONTENT,
        'author_id': author['id'],
        'tags': ['flask', ' python '],
    })
    body = response.get_json()

    assert response.status_code == 201
    assert body['data']['slug'] == 'created-through-route'
    assert body['data']['tags'] == ['flask', 'python']


def test_create_route_validation_error(client, author):
    response = client.post('/api/newsletters', json={'title': 'Shrt', 'content': CONTENT,
                                                     'author_id': author['id']})
    assert response.status_code == 400
    assert response.get_json()['success'] is False


def test_get_route_counts_views(client, newsdesk, make_newsletter):
    newsletter = make_newsletter(title='Viewed Newsletter')

    first = client.get('/api/newsletters/viewed-newsletter').get_json()
    second = client.get(f"/api/newsletters/{newsletter['id']}").get_json()

    assert first['data']['views'] == 1
    assert second['data']['views'] == 2
    assert newsdesk.newsletters.get(newsletter['id'])['views'] == 2


def test_get_route_unknown_slug(client):
    response = client.get('/api/newsletters/no-such-slug')
    assert response.status_code == 404
    assert response.get_json()['message'] == 'Newsletter not found'


def test_get_route_all_digit_slug(client, make_newsletter):
    newsletter = make_newsletter(title='20245')

    response = client.get('/api/newsletters/20245')
    assert response.status_code == 200
    assert response.get_json()['data']['id'] == newsletter['id']


def test_get_route_non_ascii_digit_is_not_found(client):
    response = client.get('/api/newsletters/%C2%B2')
    assert response.status_code == 404
    assert response.get_json()['message'] == 'Newsletter not found'


def test_list_route_pagination_and_filters(client, make_newsletter, author):
    for i in range(3):
        make_newsletter(title=f'Press Item Number {i}', type='press')
    make_newsletter(title='General Item', type='general')

    body = client.get('/api/newsletters?type=press&limit=2').get_json()
    assert body['total'] == 3
    assert body['count'] == 2
    assert body['pagination'] == {'page': 1, 'pages': 2, 'limit': 2}

    by_author = client.get(f"/api/newsletters?author={author['id']}").get_json()
    assert by_author['total'] == 4

    large_page = client.get('/api/newsletters?limit=500').get_json()
    assert large_page['pagination'] == {'page': 1, 'pages': 1, 'limit': 500}
    assert large_page['count'] == 4

    floored = client.get('/api/newsletters?limit=0&page=-3').get_json()
    assert floored['pagination']['page'] == 1
    assert floored['pagination']['limit'] == 10


def test_type_route_only_published(client, make_newsletter):
    make_newsletter(title='Published Video', type='videos')
    make_newsletter(title='Draft Video', type='videos', status='draft')

    body = client.get('/api/newsletters/type/videos').get_json()
    assert [n['title'] for n in body['data']] == ['Published Video']

    bad = client.get('/api/newsletters/type/podcasts')
    assert bad.status_code == 400


def test_update_and_delete_routes(client, make_newsletter):
    newsletter = make_newsletter(status='draft')

    updated = client.put(f"/api/newsletters/{newsletter['id']}", json={'featured': True})
    assert updated.status_code == 200
    assert updated.get_json()['data']['featured'] is True

    assert client.delete(f"/api/newsletters/{newsletter['id']}").status_code == 200
    assert client.put(f"/api/newsletters/{newsletter['id']}", json={}).status_code == 404
