"""
Pytest configuration for auth service tests.

Points the service at a throwaway SQLite database before any service module
is imported, since settings and the engine are created at import time.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_auth.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("LOG_LEVEL", "WARNING")
