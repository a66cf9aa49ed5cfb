"""
Newsdesk - A Flask Newsletter Backend
=====================================

A modular Flask extension for a newsletter/content site with:
- Contact form intake
- Newsletter publishing and batched email dispatch
- Subscriber management with double opt-in
- Typed site settings
- User administration

Usage:
    from flask import Flask
    from newsdesk import Newsdesk

    app = Flask(__name__)
    newsdesk = Newsdesk(app)
"""

import asyncio
import logging
import os

from .core.config import Config
from .core.database import Database
from .core.logging_service import LoggingService

__version__ = '0.1.0'

logger = logging.getLogger(__name__)

# Config keys read from app.config, falling back to Config
CONFIG_KEYS = (
    'SECRET_KEY', 'DB_DIR', 'FRONTEND_URL',
    'EMAIL_PROVIDER', 'EMAIL_ADDRESS', 'EMAIL_PASSWORD', 'EMAIL_HOST', 'EMAIL_PORT',
    'EMAIL_ADMIN_EMAIL', 'RESEND_API_KEY', 'ADMIN_AUTH_ENABLED', 'CORS_ORIGINS',
    'NEWSLETTER_BATCH_DELAY',
)

DEFAULT_FEATURES = {
    'contacts': True,
    'newsletters': True,
    'subscribers': True,
    'settings': True,
    'users': True,
}


class Newsdesk:
    """
    Flask extension that builds every Newsdesk store and service once per
    app and registers the feature blueprints.

    Args:
        app: Flask app, or None to call init_app later
        config: optional dict, 'features' maps module name to enabled flag
        mailer: transport used for every email, defaults to the global EmailService
        sleep: coroutine used between dispatch batches, defaults to asyncio.sleep
    """

    def __init__(self, app=None, config=None, mailer=None, sleep=None):
        self._config = config or {}
        self._mailer = mailer
        self._sleep = sleep
        self._registered = []

        self.database = None
        self.log_service = None
        self.mailer = None
        self.settings = None
        self.subscribers = None
        self.newsletters = None
        self.dispatcher = None
        self.contacts = None
        self.users = None

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._apply_config(app)
        self._setup_database_dir(app)

        self.database = Database(app.config['NEWSDESK_DB'])
        self.database.init_schema()
        self.log_service = LoggingService(self.database)

        self._build_services(app)
        self._register_modules(app)

        app.extensions['newsdesk'] = self
        logger.info(f"Newsdesk initialized with modules: {', '.join(self._registered)}")

    def _apply_config(self, app):
        """app.config wins, then Config (environment), then derived defaults"""
        for key in CONFIG_KEYS:
            if app.config.get(key) is None:
                value = getattr(Config, key, None)
                if value is not None:
                    app.config[key] = value

        # NEWSDESK_DB follows DB_DIR unless set explicitly
        app.config['NEWSDESK_DB'] = (
            app.config.get('NEWSDESK_DB')
            or os.getenv('NEWSDESK_DB')
            or os.path.join(app.config['DB_DIR'], 'newsdesk.db')
        )

        # Flask-CORS reads CORS_ORIGINS from app.config for @cross_origin routes
        origins = app.config.get('CORS_ORIGINS') or '*'
        if isinstance(origins, str) and origins != '*':
            app.config['CORS_ORIGINS'] = [o.strip() for o in origins.split(',') if o.strip()]

    def _setup_database_dir(self, app):
        db_dir = os.path.dirname(app.config['NEWSDESK_DB'])
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    def _build_services(self, app):
        from .modules.contacts.database import ContactStore
        from .modules.email.email_service import email_service
        from .modules.newsletters.database import NewsletterCatalog
        from .modules.newsletters.dispatch import NewsletterDispatcher
        from .modules.settings.database import SettingsStore
        from .modules.subscribers.directory import SubscriberDirectory
        from .modules.users.database import UserStore

        if self._mailer is not None:
            self.mailer = self._mailer
        else:
            email_service.init_app(app, self.database)
            self.mailer = email_service

        frontend_url = app.config['FRONTEND_URL']
        self.settings = SettingsStore(self.database)
        self.subscribers = SubscriberDirectory(self.database, self.mailer, self.settings, frontend_url)
        self.newsletters = NewsletterCatalog(self.database)
        self.dispatcher = NewsletterDispatcher(
            self.subscribers, self.settings, self.mailer, frontend_url,
            batch_delay=float(app.config['NEWSLETTER_BATCH_DELAY']),
            sleep=self._sleep or asyncio.sleep,
        )
        self.contacts = ContactStore(self.database, self.mailer, self.settings, frontend_url)
        self.users = UserStore(self.database)

    def _register_modules(self, app):
        from .modules.contacts import contacts_bp
        from .modules.newsletters import newsletters_bp
        from .modules.settings import settings_bp
        from .modules.subscribers import subscribers_bp
        from .modules.users import users_bp

        blueprints = {
            'contacts': contacts_bp,
            'newsletters': newsletters_bp,
            'subscribers': subscribers_bp,
            'settings': settings_bp,
            'users': users_bp,
        }
        features = {**DEFAULT_FEATURES, **self._config.get('features', {})}

        for name, blueprint in blueprints.items():
            if not features.get(name):
                continue
            app.register_blueprint(blueprint)
            self._registered.append(name)

    def get_registered_modules(self):
        return list(self._registered)


__all__ = ['Newsdesk', 'Config', '__version__']
