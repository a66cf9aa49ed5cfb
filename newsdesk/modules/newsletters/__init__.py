"""
Newsletters Module
==================

Newsletter catalog with draft/publish workflow, slug lookups, view
counting and batched email dispatch to interested subscribers.
"""

from flask import Blueprint

newsletters_bp = Blueprint('newsletters', __name__, url_prefix='/api/newsletters')

from . import routes
