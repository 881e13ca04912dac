"""Simple runtime configuration for the Session Todo app.

Control flags are read from environment variables to allow toggling in
development or production without code changes.
"""
import os


def _trueish(v: str | None) -> bool:
    if not v:
        return False
    return v.lower() in ('1', 'true', 'yes', 'on')


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


# Secret used to sign session cookies. When unset a random secret is generated
# per process (see sessions.py), which invalidates every session on restart.
SECRET_KEY = os.getenv('SECRET_KEY') or None

# Name of the cookie carrying the signed session token.
SESSION_COOKIE_NAME = os.getenv('SESSION_COOKIE_NAME', 'session_token')

# Idle lifetime of a session. Every request pushes the expiry forward.
SESSION_EXPIRE_MINUTES = _int_env('SESSION_EXPIRE_MINUTES', 60 * 24)

# Cookie secure flag: default to False for test/dev (HTTP). In production set
# COOKIE_SECURE=1 or true in the environment so cookies are marked Secure.
COOKIE_SECURE = _trueish(os.getenv('COOKIE_SECURE', 'false'))

# When true, the app is considered to be running in development mode.
# Templates show a small banner and Jinja2 reloads templates from disk.
DEV_MODE = _trueish(os.getenv('DEV_MODE', '0'))

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

# Length bounds (after trimming) for list names and todo text.
NAME_MIN_LENGTH = 1
NAME_MAX_LENGTH = 100


# Optional local overrides: define variables in session_todo/local_config.py
# to extend or override the defaults above without changing versioned config.
try:
    from .local_config import *  # type: ignore  # noqa: F401,F403
except ImportError:
    # No local overrides present; proceed with defaults.
    pass
