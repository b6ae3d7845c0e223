"""
Owner authentication for the factory admin endpoints.

Password stored as PBKDF2-HMAC-SHA256 hash (configured via settings), never in plain text.
Sessions stored server-side in memory; tokens are 256-bit URL-safe random strings.
"""

import hashlib
import secrets
import time
from typing import Dict, Optional

from launchpad_app.config import Settings

# ── Session store: { token -> (owner_username, expiry_unix_timestamp) } ──
_sessions: Dict[str, tuple] = {}
COOKIE_NAME: str = "launchpad_session"  # exported so main.py can import it


def hash_password(password: str, salt: str, iterations: int) -> str:
    dk = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations,
    )
    return dk.hex()


def verify_credentials(username: str, password: str, settings: Settings) -> bool:
    """Constant-time check of the owner credentials."""
    if not settings.owner_login_enabled:
        return False
    username_ok = secrets.compare_digest(
        username.lower().strip(), settings.owner_username.lower()
    )
    password_ok = secrets.compare_digest(
        hash_password(password, settings.owner_salt, settings.password_iterations),
        settings.owner_password_hash.lower(),
    )
    # Evaluate BOTH checks so timing doesn't leak which one failed.
    return username_ok and password_ok


def create_session(username: str, settings: Settings) -> str:
    """Generate a new session token and store it with an expiry."""
    token = secrets.token_urlsafe(32)   # 256-bit entropy
    _sessions[token] = (username, time.time() + settings.session_ttl_seconds)
    _cleanup_sessions()
    return token


def session_user(token: Optional[str]) -> Optional[str]:
    """Return the username bound to a valid, unexpired token, else None."""
    if not token:
        return None
    entry = _sessions.get(token)
    if entry is None:
        return None
    username, expiry = entry
    if time.time() > expiry:
        del _sessions[token]
        return None
    return username


def delete_session(token: str) -> None:
    """Invalidate a session (logout)."""
    _sessions.pop(token, None)


def _cleanup_sessions() -> None:
    """Purge expired sessions to prevent unbounded memory growth."""
    now = time.time()
    expired = [t for t, (_, exp) in list(_sessions.items()) if now > exp]
    for t in expired:
        del _sessions[t]
