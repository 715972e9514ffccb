"""Test environment: settings are read at import time, so set them before app modules load."""

import os

os.environ.setdefault("JWT_SECRET", "test-signing-key-not-for-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("APP_ENV", "dev")
