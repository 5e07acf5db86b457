"""
Runtime configuration read from the environment. Values can be provided in a `.env` file.
"""

import os

from dotenv import load_dotenv

load_dotenv()

ENVIRONMENT = os.environ.get('environment', 'dev')

SQLALCHEMY_DATABASE_URL = os.environ.get('SQLALCHEMY_DATABASE_URL', 'sqlite:///./booking.db')

JWT_SECRET = os.environ.get('JWT_SECRET', 'change-me')
LOGIN_EXPIRY_HOURS = int(os.environ.get('LOGIN_EXPIRY_HOURS', 4))
VERIFICATION_TOKEN_EXPIRY_HOURS = int(os.environ.get('VERIFICATION_TOKEN_EXPIRY_HOURS', 24))
PASSWORD_RESET_EXPIRY_HOURS = int(os.environ.get('PASSWORD_RESET_EXPIRY_HOURS', 1))
EMAIL_ACTION_EXPIRY_HOURS = int(os.environ.get('EMAIL_ACTION_EXPIRY_HOURS', 72))

FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:5173')

EMAIL_HOST = os.environ.get('EMAIL_HOST')
EMAIL_PORT = int(os.environ.get('EMAIL_PORT', 587))
EMAIL_USERNAME = os.environ.get('EMAIL_USERNAME')
EMAIL_PASSWORD = os.environ.get('EMAIL_PASSWORD')
EMAIL_FROM = os.environ.get('EMAIL_FROM', 'noreply@example.com')
EMAIL_FROM_NAME = os.environ.get('EMAIL_FROM_NAME', 'Scientific Infrastructure Booking')
EMAIL_USE_TLS = os.environ.get('EMAIL_USE_TLS', 'true').lower() in ('1', 'true', 'yes')

UPLOAD_DIR = os.environ.get('UPLOAD_DIR', os.path.join(os.path.dirname(os.path.abspath(__file__)), 'uploads'))
MAX_UPLOAD_SIZE = int(os.environ.get('MAX_UPLOAD_SIZE', 5 * 1024 * 1024))

GUEST_MAX_BOOKINGS_PER_DAY = int(os.environ.get('GUEST_MAX_BOOKINGS_PER_DAY', 1))

ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL')
ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD')

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
