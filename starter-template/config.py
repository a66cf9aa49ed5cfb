import os
from dotenv import load_dotenv

load_dotenv()

IS_PRODUCTION = (
    os.getenv('ENVIRONMENT') == 'production' or
    os.getenv('FLASK_ENV') == 'production' or
    os.getenv('PRODUCTION') == '1'
)

DB_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'databases')


class Config:
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')
    IS_PRODUCTION = IS_PRODUCTION
    PORT = int(os.getenv('PORT', '5000'))

    # Database
    DB_DIR = DB_DIR
    NEWSDESK_DB = os.path.join(DB_DIR, 'newsdesk.db')

    # Public site that hosts the verify, unsubscribe and newsletter pages
    FRONTEND_URL = os.getenv('FRONTEND_URL', 'http://localhost:3000')

    # Email
    EMAIL_PROVIDER = os.getenv('EMAIL_PROVIDER', 'resend')
    RESEND_API_KEY = os.getenv('RESEND_API_KEY', '')
    EMAIL_ADDRESS = os.getenv('EMAIL_ADDRESS', 'onboarding@resend.dev')
    EMAIL_ADMIN_EMAIL = os.getenv('EMAIL_ADMIN_EMAIL', '')

    # Admin endpoints stay open locally, lock them down in production
    ADMIN_AUTH_ENABLED = IS_PRODUCTION
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')
