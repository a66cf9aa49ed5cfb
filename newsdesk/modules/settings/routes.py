"""
Settings Routes
===============

Provides:
- GET /public -- public settings as a key/value map
- GET / -- all settings grouped by category (admin)
- POST / -- create or update a setting (admin)
- PUT /bulk -- upsert a list of settings (admin)
- POST /initialize -- seed default settings, ?reset=true overwrites (admin)
- GET /<key> -- single setting (admin)
- DELETE /<key> -- delete a setting (admin)
"""

from flask import jsonify, request
from flask_cors import cross_origin

from newsdesk.core.api import admin_required, get_json_body, json_errors, newsdesk
from newsdesk.core.errors import ValidationError
from newsdesk.core.logging_service import db_log
from newsdesk.core.validation import parse_bool
from . import settings_bp


@settings_bp.route('/public', methods=['GET'])
@cross_origin()
@json_errors('settings')
def get_public_settings():
    return jsonify({'success': True, 'data': newsdesk().settings.list_public()})


@settings_bp.route('', methods=['GET'])
@admin_required
@json_errors('settings')
def get_settings():
    """All settings grouped by category, optionally filtered"""
    grouped = newsdesk().settings.grouped(
        category=request.args.get('category'),
        is_public=parse_bool(request.args.get('is_public')),
    )
    return jsonify({'success': True, 'data': grouped})


@settings_bp.route('', methods=['POST'])
@admin_required
@json_errors('settings')
def create_or_update_setting():
    data = get_json_body()
    if not data.get('key') or 'value' not in data or data.get('value') is None or not data.get('type'):
        raise ValidationError('Key, value, and type are required')

    setting = newsdesk().settings.upsert(
        data['key'],
        data['value'],
        data['type'],
        data.get('description', ''),
        data.get('category') or 'general',
        data.get('is_public'),
    )
    db_log('info', 'settings', f"Setting saved: {setting['key']}")
    return jsonify({'success': True, 'data': setting})


@settings_bp.route('/bulk', methods=['PUT'])
@admin_required
@json_errors('settings')
def update_settings():
    data = get_json_body()
    settings = newsdesk().settings.bulk_upsert(data.get('settings'))
    db_log('info', 'settings', f'Bulk updated {len(settings)} settings')
    return jsonify({
        'success': True,
        'message': 'Settings updated successfully',
        'data': settings
    })


@settings_bp.route('/initialize', methods=['POST'])
@admin_required
@json_errors('settings')
def initialize_settings():
    reset = parse_bool(request.args.get('reset')) or False
    written = newsdesk().settings.initialize_defaults(overwrite=reset)
    db_log('info', 'settings', 'Default settings initialized', {'keys': written, 'reset': reset})
    return jsonify({
        'success': True,
        'message': 'Default settings initialized successfully',
        'data': written
    })


@settings_bp.route('/<key>', methods=['GET'])
@admin_required
@json_errors('settings')
def get_setting(key):
    return jsonify({'success': True, 'data': newsdesk().settings.find(key)})


@settings_bp.route('/<key>', methods=['DELETE'])
@admin_required
@json_errors('settings')
def delete_setting(key):
    newsdesk().settings.delete(key)
    db_log('info', 'settings', f'Setting deleted: {key}')
    return jsonify({'success': True, 'message': 'Setting deleted successfully'})
