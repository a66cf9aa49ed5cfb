"""
Subscribers Module
==================

Newsletter subscriber directory: double opt-in subscription, token based
verification and unsubscribe, admin listing and statistics.
"""

from flask import Blueprint

subscribers_bp = Blueprint('subscribers', __name__, url_prefix='/api/subscribers')

from . import routes
