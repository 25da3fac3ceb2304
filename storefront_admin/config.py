"""Configuration for the storefront admin service.

Everything is read from the environment so the same image runs in every
deployment.
"""

import os

STOREFRONT_DB_URI = os.environ.get('STOREFRONT_DB_URI', 'sqlite:///./storefront.db')
ECHO_SQL = os.environ.get('ECHO_SQL', '').lower() in ['1', 'true', 'yes']

DEFAULT_JWT_SECRET = 'foosecret'
"""Development only. ``create_app`` refuses it unless testing."""

JWT_SECRET = os.environ.get('JWT_SECRET', DEFAULT_JWT_SECRET)

# Minutes
SESSION_DURATION = int(os.environ.get('SESSION_DURATION', '120'))

AUTH_SESSION_COOKIE_NAME = os.environ.get('AUTH_SESSION_COOKIE_NAME',
                                          'storefront_session')

SECURE = os.environ.get('SECURE', 'true').lower() not in ['false', 'no']

PASSWORD_RESET_REDIRECT_URL = os.environ.get(
    'PASSWORD_RESET_REDIRECT_URL', 'http://localhost:5173/#/reset-password')

CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '')

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

MAIL_SERVER = os.environ.get('MAIL_SERVER', '')
"""SMTP host for password reset email. Empty disables sending."""

MAIL_PORT = int(os.environ.get('MAIL_PORT', '25'))
MAIL_SENDER = os.environ.get('MAIL_SENDER', 'no-reply@localhost')

# Minutes
PASSWORD_RESET_TTL = int(os.environ.get('PASSWORD_RESET_TTL', '60'))
