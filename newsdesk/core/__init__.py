"""
Newsdesk Core
=============

Core utilities and shared functionality for Newsdesk modules.
"""

from .config import Config
from .database import Database
from .errors import (
    NewsdeskError, ValidationError, NotFound, DuplicateSubscription,
    InvalidToken, TransportError, StoreError,
)
from .logging_service import LoggingService, db_log

__all__ = [
    'Config', 'Database', 'LoggingService', 'db_log',
    'NewsdeskError', 'ValidationError', 'NotFound', 'DuplicateSubscription',
    'InvalidToken', 'TransportError', 'StoreError',
]
