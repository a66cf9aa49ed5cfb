"""
Helpers shared by the Newsdesk blueprints: the admin guard, JSON error
envelopes and list pagination.
"""

import logging
import math
from functools import wraps

from flask import current_app, jsonify, request, session

from .errors import NewsdeskError
from .logging_service import db_log

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def newsdesk():
    """The Newsdesk extension bound to the current app"""
    return current_app.extensions['newsdesk']


def admin_required(f):
    """Decorator to require admin login, enforced only when ADMIN_AUTH_ENABLED"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_app.config.get('ADMIN_AUTH_ENABLED') and 'admin_id' not in session:
            return jsonify({'success': False, 'message': 'Not authorized'}), 401
        return f(*args, **kwargs)
    return decorated_function


def json_errors(source):
    """
    Render NewsdeskError as {success: False, message} with its status code and
    anything unexpected as a 500 'Server error' envelope.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except NewsdeskError as e:
                if e.status_code >= 500:
                    logger.error(f"{source}: {e.message}")
                return jsonify({'success': False, 'message': e.message}), e.status_code
            except Exception as e:
                logger.exception(f"Unhandled error in {source}.{f.__name__}")
                db_log('error', source, f'Error in {f.__name__}', {'error': str(e)})
                return jsonify({'success': False, 'message': 'Server error', 'error': str(e)}), 500
        return decorated_function
    return decorator


def get_json_body():
    """Request body as a dict, empty when missing or not an object"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def get_client_ip():
    """Get client IP address from request"""
    if request.headers.get('X-Forwarded-For'):
        return request.headers.get('X-Forwarded-For').split(',')[0].strip()
    elif request.headers.get('X-Real-IP'):
        return request.headers.get('X-Real-IP')
    else:
        return request.remote_addr


def get_user_agent():
    return request.headers.get('User-Agent', '')[:500]


def get_page_args():
    """(page, limit) from the query string, both at least 1"""
    page = request.args.get('page', DEFAULT_PAGE, type=int) or DEFAULT_PAGE
    limit = request.args.get('limit', DEFAULT_LIMIT, type=int) or DEFAULT_LIMIT
    return max(page, 1), max(limit, 1)


def paginated(items, total, page, limit):
    """List envelope used by every collection endpoint"""
    return jsonify({
        'success': True,
        'count': len(items),
        'total': total,
        'pagination': {
            'page': page,
            'pages': math.ceil(total / limit) if limit else 0,
            'limit': limit,
        },
        'data': items,
    })
