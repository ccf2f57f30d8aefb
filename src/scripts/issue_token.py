"""
Issue a bearer token for local development.

Tokens are signed with JWT_SECRET, so they are accepted by a server
running with the same settings.

Usage:
    python -m src.scripts.issue_token <user-id> [email] [--minutes N]
"""

import argparse
import sys
import os
from datetime import timedelta

# Add parent directory to path to allow imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from src.shortlinks.core.config import get_settings
from src.shortlinks.services.auth_service import create_access_token


def issue_token(argv=None) -> str:
    parser = argparse.ArgumentParser(description="Issue a development bearer token")
    parser.add_argument("user_id")
    parser.add_argument("email", nargs="?")
    parser.add_argument("--minutes", type=int, default=None)
    args = parser.parse_args(argv)

    settings = get_settings()
    expires = timedelta(minutes=args.minutes) if args.minutes else None
    return create_access_token(settings, args.user_id, args.email, expires)


if __name__ == "__main__":
    print(issue_token())
