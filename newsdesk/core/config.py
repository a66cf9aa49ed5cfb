import os
from dotenv import load_dotenv

load_dotenv(override=True)


def _bool(value, default=False):
    if value is None:
        return default
    return value.strip().lower() in {'1', 'true', 'yes', 'on'}


class Config:
    """
    Base configuration for Newsdesk.
    Projects should provide database paths and mail credentials via environment variables.
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))
    NEWSDESK_DB = os.getenv('NEWSDESK_DB', os.path.join(DB_DIR, 'newsdesk.db'))

    # Public site used to build verify/unsubscribe/newsletter links in emails
    FRONTEND_URL = os.getenv('FRONTEND_URL', 'http://localhost:3000').rstrip('/')

    # Email settings
    EMAIL_PROVIDER = os.getenv('EMAIL_PROVIDER', 'resend')
    EMAIL_ADDRESS = os.getenv('EMAIL_ADDRESS', 'onboarding@resend.dev')
    EMAIL_PASSWORD = os.getenv('EMAIL_PASSWORD')
    EMAIL_HOST = os.getenv('EMAIL_HOST', 'smtp.gmail.com')
    EMAIL_PORT = int(os.getenv('EMAIL_PORT', '587'))
    EMAIL_ADMIN_EMAIL = os.getenv('EMAIL_ADMIN_EMAIL')

    # Resend API settings
    RESEND_API_KEY = os.getenv('RESEND_API_KEY') or os.getenv('RESEND')

    # Admin guard is off unless explicitly enabled
    ADMIN_AUTH_ENABLED = _bool(os.getenv('ADMIN_AUTH_ENABLED'), False)

    # Comma separated list, '*' allows every origin
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Newsletter dispatch
    NEWSLETTER_BATCH_DELAY = float(os.getenv('NEWSLETTER_BATCH_DELAY', '1.0'))
