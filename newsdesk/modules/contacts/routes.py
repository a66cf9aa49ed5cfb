"""
Contacts Routes
===============

Provides:
- POST / -- submit the contact form (public)
- GET / -- paginated submissions, filter by status or search (admin)
- GET /stats -- counts by status and month (admin)
- GET /<id> -- single submission (admin)
- PUT /<id> -- change status (admin)
- DELETE /<id> -- delete a submission (admin)
"""

from flask import jsonify, request
from flask_cors import cross_origin

from newsdesk.core.api import (
    admin_required, get_client_ip, get_json_body, get_page_args, get_user_agent,
    json_errors, newsdesk, paginated,
)
from newsdesk.core.errors import ValidationError
from newsdesk.core.logging_service import db_log
from . import contacts_bp


@contacts_bp.route('', methods=['POST'])
@cross_origin()
@json_errors('contacts')
def submit_contact():
    contact = newsdesk().contacts.submit(
        get_json_body(), ip_address=get_client_ip(), user_agent=get_user_agent())
    return jsonify({
        'success': True,
        'message': 'Contact form submitted successfully',
        'data': contact
    }), 201


@contacts_bp.route('', methods=['GET'])
@admin_required
@json_errors('contacts')
def get_contacts():
    page, limit = get_page_args()
    filters = {'status': request.args.get('status'), 'search': request.args.get('search')}
    store = newsdesk().contacts
    return paginated(store.list(page=page, limit=limit, **filters), store.count(**filters), page, limit)


@contacts_bp.route('/stats', methods=['GET'])
@admin_required
@json_errors('contacts')
def get_contact_stats():
    return jsonify({'success': True, 'data': newsdesk().contacts.stats()})


@contacts_bp.route('/<int:contact_id>', methods=['GET'])
@admin_required
@json_errors('contacts')
def get_contact(contact_id):
    return jsonify({'success': True, 'data': newsdesk().contacts.get(contact_id)})


@contacts_bp.route('/<int:contact_id>', methods=['PUT'])
@admin_required
@json_errors('contacts')
def update_contact(contact_id):
    data = get_json_body()
    if 'status' not in data:
        raise ValidationError('Status is required')
    contact = newsdesk().contacts.update_status(contact_id, data['status'])
    db_log('info', 'contacts', f"Contact {contact_id} marked {contact['status']}")
    return jsonify({'success': True, 'data': contact})


@contacts_bp.route('/<int:contact_id>', methods=['DELETE'])
@admin_required
@json_errors('contacts')
def delete_contact(contact_id):
    newsdesk().contacts.delete(contact_id)
    db_log('info', 'contacts', f'Contact deleted: {contact_id}')
    return jsonify({'success': True, 'message': 'Contact deleted successfully'})
