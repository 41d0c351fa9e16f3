"""
Mint a development bearer token for the API.

Usage:
    python scripts/issue_token.py <user_id> [email]
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from timekeeper.api.auth import issue_token
from timekeeper.infra.config import get_settings


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        return 1

    email = sys.argv[2] if len(sys.argv) > 2 else None
    print(issue_token(int(sys.argv[1]), get_settings(), email=email))
    return 0


if __name__ == "__main__":
    sys.exit(main())
