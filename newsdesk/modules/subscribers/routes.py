"""
Subscribers Routes
==================

Provides:
- POST /subscribe -- subscribe or reactivate (public)
- GET /verify/<token> -- confirm an email address (public)
- GET /unsubscribe/<token> -- deactivate a subscription (public)
- GET / -- paginated subscriber list (admin)
- GET /stats -- subscriber statistics (admin)
- PUT /<id> -- update name, interests or active flag (admin)
- DELETE /<id> -- delete a subscriber (admin)
"""

from flask import jsonify, request
from flask_cors import cross_origin

from newsdesk.core.api import (
    admin_required, get_client_ip, get_json_body, get_page_args, get_user_agent,
    json_errors, newsdesk, paginated,
)
from newsdesk.core.logging_service import db_log
from newsdesk.core.validation import parse_bool
from . import subscribers_bp

# Never echoed back to the public subscribe endpoint
PRIVATE_FIELDS = ('verification_token', 'unsubscribe_token', 'ip_address', 'user_agent')


def _public_view(subscriber):
    return {k: v for k, v in subscriber.items() if k not in PRIVATE_FIELDS}


# ===================
# PUBLIC API ROUTES
# ===================

@subscribers_bp.route('/subscribe', methods=['POST'])
@cross_origin()
@json_errors('subscribers')
def subscribe():
    """Handle new subscription requests"""
    data = get_json_body()
    subscriber, created = newsdesk().subscribers.subscribe(
        data.get('email'),
        first_name=data.get('first_name'),
        last_name=data.get('last_name'),
        interests=data.get('interests'),
        source=data.get('source') or 'website',
        ip_address=get_client_ip(),
        user_agent=get_user_agent(),
    )

    if created:
        return jsonify({
            'success': True,
            'message': 'Subscribed successfully! Please check your email to confirm.',
            'data': _public_view(subscriber)
        }), 201

    return jsonify({
        'success': True,
        'message': 'Subscription reactivated successfully',
        'data': _public_view(subscriber)
    }), 200


@subscribers_bp.route('/verify/<token>', methods=['GET'])
@cross_origin()
@json_errors('subscribers')
def verify_subscription(token):
    newsdesk().subscribers.verify(token)
    return jsonify({'success': True, 'message': 'Email verified successfully!'})


@subscribers_bp.route('/unsubscribe/<token>', methods=['GET'])
@cross_origin()
@json_errors('subscribers')
def unsubscribe(token):
    newsdesk().subscribers.unsubscribe(token)
    return jsonify({'success': True, 'message': 'Successfully unsubscribed from newsletter'})


# ===================
# ADMIN ROUTES
# ===================

@subscribers_bp.route('', methods=['GET'])
@admin_required
@json_errors('subscribers')
def get_subscribers():
    page, limit = get_page_args()
    interests = request.args.get('interests')
    filters = {
        'is_active': parse_bool(request.args.get('is_active')),
        'interests': [i.strip() for i in interests.split(',') if i.strip()] if interests else None,
        'search': request.args.get('search'),
    }
    directory = newsdesk().subscribers
    subscribers = directory.list(page=page, limit=limit, **filters)
    return paginated(subscribers, directory.count(**filters), page, limit)


@subscribers_bp.route('/stats', methods=['GET'])
@admin_required
@json_errors('subscribers')
def get_subscriber_stats():
    return jsonify({'success': True, 'data': newsdesk().subscribers.stats()})


@subscribers_bp.route('/<int:subscriber_id>', methods=['PUT'])
@admin_required
@json_errors('subscribers')
def update_subscriber(subscriber_id):
    subscriber = newsdesk().subscribers.update(subscriber_id, get_json_body())
    db_log('info', 'subscribers', f'Subscriber updated: {subscriber_id}')
    return jsonify({'success': True, 'data': subscriber})


@subscribers_bp.route('/<int:subscriber_id>', methods=['DELETE'])
@admin_required
@json_errors('subscribers')
def delete_subscriber(subscriber_id):
    newsdesk().subscribers.delete(subscriber_id)
    db_log('info', 'subscribers', f'Subscriber deleted: {subscriber_id}')
    return jsonify({'success': True, 'message': 'Subscriber deleted successfully'})
