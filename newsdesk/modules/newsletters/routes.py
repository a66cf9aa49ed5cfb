"""
Newsletters Routes
==================

Provides:
- GET / -- paginated newsletters with filters (public)
- GET /type/<type> -- published newsletters of one type (public)
- GET /<id_or_slug> -- single newsletter, counts a view (public)
- POST / -- create a newsletter (admin)
- PUT /<id> -- update a newsletter (admin)
- DELETE /<id> -- delete a newsletter (admin)
- POST /<id>/send -- email a published newsletter to subscribers (admin)
"""

import asyncio

from flask import jsonify, request
from flask_cors import cross_origin

from newsdesk.core.api import (
    admin_required, get_json_body, get_page_args, json_errors, newsdesk, paginated,
)
from newsdesk.core.errors import ValidationError
from newsdesk.core.logging_service import db_log
from newsdesk.core.validation import NEWSLETTER_TYPES, parse_bool, require_choice
from . import newsletters_bp


# ===================
# PUBLIC API ROUTES
# ===================

@newsletters_bp.route('', methods=['GET'])
@cross_origin()
@json_errors('newsletters')
def get_newsletters():
    page, limit = get_page_args()
    filters = {
        'type': request.args.get('type'),
        'status': request.args.get('status'),
        'featured': parse_bool(request.args.get('featured')),
        'author_id': request.args.get('author', type=int),
        'search': request.args.get('search'),
    }
    catalog = newsdesk().newsletters
    newsletters = catalog.list(page=page, limit=limit, **filters)
    return paginated(newsletters, catalog.count(**filters), page, limit)


@newsletters_bp.route('/type/<newsletter_type>', methods=['GET'])
@cross_origin()
@json_errors('newsletters')
def get_newsletters_by_type(newsletter_type):
    require_choice(newsletter_type, NEWSLETTER_TYPES, 'type')
    page, limit = get_page_args()
    catalog = newsdesk().newsletters
    newsletters = catalog.list(page=page, limit=limit, type=newsletter_type, status='published')
    total = catalog.count(type=newsletter_type, status='published')
    return paginated(newsletters, total, page, limit)


@newsletters_bp.route('/<identifier>', methods=['GET'])
@cross_origin()
@json_errors('newsletters')
def get_newsletter(identifier):
    """Look up by numeric id or slug and count the view"""
    catalog = newsdesk().newsletters
    newsletter = catalog.get_by_id_or_slug(identifier)
    catalog.increment_views(newsletter['id'])
    newsletter['views'] += 1
    return jsonify({'success': True, 'data': newsletter})


# ===================
# ADMIN ROUTES
# ===================

@newsletters_bp.route('', methods=['POST'])
@admin_required
@json_errors('newsletters')
def create_newsletter():
    newsletter = newsdesk().newsletters.create(get_json_body())
    db_log('info', 'newsletters', f"Newsletter created: {newsletter['title']}", {'id': newsletter['id']})
    return jsonify({'success': True, 'data': newsletter}), 201


@newsletters_bp.route('/<int:newsletter_id>', methods=['PUT'])
@admin_required
@json_errors('newsletters')
def update_newsletter(newsletter_id):
    newsletter = newsdesk().newsletters.update(newsletter_id, get_json_body())
    db_log('info', 'newsletters', f'Newsletter updated: {newsletter_id}')
    return jsonify({'success': True, 'data': newsletter})


@newsletters_bp.route('/<int:newsletter_id>', methods=['DELETE'])
@admin_required
@json_errors('newsletters')
def delete_newsletter(newsletter_id):
    newsdesk().newsletters.delete(newsletter_id)
    db_log('info', 'newsletters', f'Newsletter deleted: {newsletter_id}')
    return jsonify({'success': True, 'message': 'Newsletter deleted successfully'})


@newsletters_bp.route('/<int:newsletter_id>/send', methods=['POST'])
@admin_required
@json_errors('newsletters')
def send_newsletter(newsletter_id):
    """Dispatch a published newsletter and mark it as emailed"""
    ext = newsdesk()
    newsletter = ext.newsletters.get(newsletter_id)

    if newsletter['status'] != 'published':
        raise ValidationError('Newsletter must be published before sending')

    result = asyncio.run(ext.dispatcher.dispatch(newsletter))
    ext.newsletters.mark_email_sent(newsletter_id)

    return jsonify({
        'success': True,
        'message': 'Newsletter sent successfully',
        'data': result.to_dict()
    })
