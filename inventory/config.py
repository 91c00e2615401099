"""
Inventory Tracker Configuration
Settings read from the environment at startup
"""

import os
from datetime import timedelta


BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
DATA_DIR = os.path.join(BASE_DIR, 'data')


class Config:
    # Session signing key; a fresh random key per process when unset
    SECRET_KEY = os.environ.get('SESSION_SECRET') or os.urandom(24)

    # Storage: DATABASE_URL selects the relational backend, otherwise DB_FILE is used
    DATABASE_URL = os.environ.get('DATABASE_URL')
    DB_FILE = os.environ.get('DB_FILE', os.path.join(DATA_DIR, 'inventory.db'))

    # Server-side sessions
    SESSION_DIR = os.environ.get('SESSION_DIR', os.path.join(DATA_DIR, 'sessions'))
    SESSION_PERMANENT = True
    PERMANENT_SESSION_LIFETIME = timedelta(hours=float(os.environ.get('SESSION_LIFETIME_HOURS', 4)))
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # First-run account, only created when a password is supplied
    BOOTSTRAP_ADMIN_USERNAME = os.environ.get('BOOTSTRAP_ADMIN_USERNAME', 'admin')
    BOOTSTRAP_ADMIN_PASSWORD = os.environ.get('BOOTSTRAP_ADMIN_PASSWORD')

    PORT = int(os.environ.get('PORT', 3000))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
