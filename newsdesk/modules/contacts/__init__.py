"""
Contacts Module
===============

Contact form intake with admin triage (status), search and statistics.
"""

from flask import Blueprint

contacts_bp = Blueprint('contacts', __name__, url_prefix='/api/contacts')

from . import routes
