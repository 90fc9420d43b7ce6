"""
Test settings: in-memory SQLite and a fast password hasher.
"""
import os

# Must be set before base.py builds DATABASES
os.environ.setdefault('DATABASE_URL', 'sqlite://:memory:')

from .base import *  # noqa: E402,F401,F403

DEBUG = False

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

LOG_LEVEL = 'WARNING'
for _logger in LOGGING['loggers'].values():
    _logger['level'] = 'WARNING'
