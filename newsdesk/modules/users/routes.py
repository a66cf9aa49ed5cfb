"""
Users Routes
============

Provides:
- POST /login -- admin sign-in, sets session['admin_id'] (public)
- POST /logout -- clear the admin session (public)
- GET / -- paginated users, filter by role, active flag or search (admin)
- POST / -- create a user (admin)
- GET /dashboard -- totals, recent activity and a 7 day chart (admin)
- GET /stats -- counts by role and month (admin)
- GET /<id> -- single user (admin)
- PUT /<id> -- update a user (admin)
- DELETE /<id> -- delete a user other than the signed-in admin (admin)
"""

from flask import jsonify, request, session
from flask_cors import cross_origin

from newsdesk.core.api import (
    admin_required, get_json_body, get_page_args, json_errors, newsdesk, paginated,
)
from newsdesk.core.errors import ValidationError
from newsdesk.core.logging_service import db_log
from newsdesk.core.validation import parse_bool
from . import users_bp


@users_bp.route('/login', methods=['POST'])
@cross_origin()
@json_errors('users')
def login():
    """Sign in an admin account"""
    data = get_json_body()
    email = data.get('email')
    password = data.get('password')

    if not email or not password:
        raise ValidationError('Email and password are required')

    user = newsdesk().users.verify_password(email, password)
    if not user:
        db_log('warning', 'users', 'Failed admin login', {'email': str(email)[:255]})
        return jsonify({'success': False, 'message': 'Invalid email or password'}), 401

    if user['role'] != 'admin':
        return jsonify({'success': False, 'message': 'Admin access required'}), 403

    session['admin_id'] = user['id']
    session['admin_email'] = user['email']
    db_log('info', 'users', f"Admin signed in: {user['email']}", {'id': user['id']})
    return jsonify({'success': True, 'message': 'Sign-in successful', 'data': user})


@users_bp.route('/logout', methods=['POST'])
@cross_origin()
def logout():
    session.pop('admin_id', None)
    session.pop('admin_email', None)
    return jsonify({'success': True, 'message': 'Signed out'})


@users_bp.route('', methods=['GET'])
@admin_required
@json_errors('users')
def get_users():
    page, limit = get_page_args()
    filters = {
        'role': request.args.get('role'),
        'is_active': parse_bool(request.args.get('is_active')),
        'search': request.args.get('search'),
    }
    store = newsdesk().users
    return paginated(store.list(page=page, limit=limit, **filters), store.count(**filters), page, limit)


@users_bp.route('', methods=['POST'])
@admin_required
@json_errors('users')
def create_user():
    user = newsdesk().users.create(get_json_body())
    db_log('info', 'users', f"User created: {user['email']}", {'id': user['id']})
    return jsonify({'success': True, 'data': user}), 201


@users_bp.route('/dashboard', methods=['GET'])
@admin_required
@json_errors('users')
def get_dashboard_analytics():
    ext = newsdesk()
    return jsonify({
        'success': True,
        'data': {
            'users': {
                'total': ext.users.count(),
                'active': ext.users.count(is_active=True),
            },
            'contacts': {
                'total': ext.contacts.count(),
                'new': ext.contacts.count(status='new'),
                'recent': ext.contacts.recent(5),
            },
            'newsletters': {
                'total': ext.newsletters.count(),
                'published': ext.newsletters.count(status='published'),
                'recent': ext.newsletters.recent(5),
            },
            'chart': ext.users.daily_chart(7),
        }
    })


@users_bp.route('/stats', methods=['GET'])
@admin_required
@json_errors('users')
def get_user_stats():
    return jsonify({'success': True, 'data': newsdesk().users.stats()})


@users_bp.route('/<int:user_id>', methods=['GET'])
@admin_required
@json_errors('users')
def get_user(user_id):
    return jsonify({'success': True, 'data': newsdesk().users.get(user_id)})


@users_bp.route('/<int:user_id>', methods=['PUT'])
@admin_required
@json_errors('users')
def update_user(user_id):
    user = newsdesk().users.update(user_id, get_json_body())
    db_log('info', 'users', f'User updated: {user_id}')
    return jsonify({'success': True, 'data': user})


@users_bp.route('/<int:user_id>', methods=['DELETE'])
@admin_required
@json_errors('users')
def delete_user(user_id):
    if session.get('admin_id') == user_id:
        raise ValidationError('Cannot delete your own account')
    newsdesk().users.delete(user_id)
    db_log('info', 'users', f'User deleted: {user_id}')
    return jsonify({'success': True, 'message': 'User deleted successfully'})
