#!/usr/bin/env python3
"""
Issue invite codes directly against the database.

Usage:
    python scripts/create_invite_codes.py            # one 8-character code
    python scripts/create_invite_codes.py 20 --length 10
"""
import argparse
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from daily_review.database import SessionLocal, init_db
from daily_review.services.invite_service import DEFAULT_CODE_LENGTH, create_invite_codes
from daily_review.services.validators import validate_invite_request


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create daily review invite codes")
    parser.add_argument("count", nargs="?", type=int, default=1)
    parser.add_argument("--length", type=int, default=DEFAULT_CODE_LENGTH)
    args = parser.parse_args(argv)

    validation = validate_invite_request(args.count, args.length)
    if not validation.is_valid:
        print(f"Error: {'; '.join(validation.errors)}")
        sys.exit(1)

    init_db()
    db = SessionLocal()
    try:
        codes = create_invite_codes(db, args.count, args.length)
    finally:
        db.close()

    print("\n=== Invite Codes ===\n")
    for invite in codes:
        print(f"  + {invite.code}")

    print(f"\nTotal: {len(codes)} created, {args.count - len(codes)} failed")

    if len(codes) < args.count:
        sys.exit(1)


if __name__ == "__main__":
    main()
