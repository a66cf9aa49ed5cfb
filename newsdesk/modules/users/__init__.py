"""
Users Module
============

Staff accounts (admins, editors, users) who author newsletters, plus the
admin dashboard summary.
"""

from flask import Blueprint

users_bp = Blueprint('users', __name__, url_prefix='/api/users')

from . import routes
