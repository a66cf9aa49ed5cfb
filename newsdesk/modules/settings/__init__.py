"""
Settings Module
===============

Typed key/value site settings. Public settings are exposed to the
front end, everything else is admin only.
"""

from flask import Blueprint

settings_bp = Blueprint('settings', __name__, url_prefix='/api/settings')

from . import routes
