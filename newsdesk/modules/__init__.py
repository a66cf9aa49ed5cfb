"""
Newsdesk Modules
================

Feature blueprints registered by the Newsdesk extension.
"""

__all__ = ['contacts', 'email', 'newsletters', 'settings', 'subscribers', 'users']
