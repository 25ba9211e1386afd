#!/usr/bin/env python3
"""
Database initialisation
Creates the tables and seeds portal users

Usage:
    python scripts/init_db.py --admin admin:secret --partner alice:pass1 --partner bob:pass2
"""

import argparse
import sys
from pathlib import Path

# Put the backend directory on PYTHONPATH
sys.path.insert(0, str(Path(__file__).parent.parent))

from partner_portal.core.config import settings
from partner_portal.core.database import Database
from partner_portal.core.security import configure_hashing, hash_password
from partner_portal.models import User


def parse_credentials(value: str):
    """'username:password' -> (username, password)"""
    username, sep, password = value.partition(":")
    if not sep or not username or not password:
        raise argparse.ArgumentTypeError(f"expected username:password, got '{value}'")
    return username, password


def create_user(database: Database, username: str, password: str, is_admin: bool):
    """Create a user unless one with that username already exists"""
    db = database.SessionLocal()

    try:
        existing = db.query(User).filter(User.username == username).first()
        if existing:
            print(f"ℹ️  User '{username}' already exists")
            return

        user = User(
            username=username,
            password_hash=hash_password(password),
            is_partner=not is_admin,
            is_admin=is_admin,
        )
        db.add(user)
        db.commit()

        role = "admin" if is_admin else "partner"
        print(f"✅ User '{username}' created ({role})")
    finally:
        db.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create tables and seed portal users")
    parser.add_argument("--database-url", default=settings.DATABASE_URL,
                        help="SQLAlchemy URL (defaults to DATABASE_URL)")
    parser.add_argument("--admin", action="append", default=[], type=parse_credentials,
                        metavar="USERNAME:PASSWORD", help="admin user to create")
    parser.add_argument("--partner", action="append", default=[], type=parse_credentials,
                        metavar="USERNAME:PASSWORD", help="partner user to create")
    args = parser.parse_args(argv)

    print("=" * 70)
    print("PARTNER PORTAL - Database initialisation")
    print("=" * 70)

    configure_hashing(settings.BCRYPT_ROUNDS)
    database = Database(args.database_url)

    print("📊 Creating tables...")
    database.init_db()
    print("✅ Tables created")

    for username, password in args.admin:
        create_user(database, username, password, is_admin=True)

    for username, password in args.partner:
        create_user(database, username, password, is_admin=False)

    database.dispose()

    print("=" * 70)
    print("✅ Done")
    print("=" * 70)


if __name__ == "__main__":
    main()
