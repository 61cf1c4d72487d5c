#!/usr/bin/env python3
"""
Session store check script.

Run this script to verify the configured session backend: it tests the
Redis connection when SESSION_BACKEND=redis, then creates, resolves and
revokes a throwaway session.
"""

import sys
import logging
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.database import close_redis, ping_redis
from config.settings import settings
from models.schemas import SessionUser
from storage.session_store import SessionUnavailable, get_session_store

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    """Check the session backend end to end."""

    print("=" * 60)
    print("Session Store Check")
    print("=" * 60)
    print()
    print(f"Backend: {settings.SESSION_BACKEND}")
    print(f"Configured accounts: {len(settings.AUTH_ACCOUNTS)}")
    print()

    if settings.SESSION_BACKEND.lower() == "redis":
        print("Testing Redis connection...")
        error = ping_redis()

        if error is None:
            print("✅ Redis: Connected")
        else:
            print(f"❌ Redis: Failed - {error}")
            print(f"   Make sure Redis is running on {settings.REDIS_HOST}:{settings.REDIS_PORT}")
            sys.exit(1)
        print()

    store = get_session_store()
    user = SessionUser(user_id="healthcheck@local", name="Healthcheck", email="healthcheck@local")

    try:
        session = store.create_session(user)
        print(f"✅ Created session {session.token[:8]}...")

        resolved = store.get_current_session(session.token)
        print(f"✅ Resolved session for {resolved.user.user_id}")

        deleted = store.delete_all_sessions(user.user_id)
        print(f"✅ Revoked {deleted} session(s)")

        try:
            store.get_current_session(session.token)
            print("❌ Session still resolvable after revocation")
            sys.exit(1)
        except SessionUnavailable:
            print("✅ Revoked session no longer resolves")

    except Exception as e:
        print(f"❌ Session store check failed: {e}")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ Session store is working")
    print("=" * 60)

    # Cleanup
    close_redis()


if __name__ == "__main__":
    main()
