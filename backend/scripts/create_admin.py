"""
Create Admin Account
====================
Creates an admin account directly in the database, for deployments where
the first-admin registration endpoint should not be exposed.

Usage (from project root):
    python backend/scripts/create_admin.py --email admin@college.edu --name "Admissions Admin"
    python backend/scripts/create_admin.py --email admin@college.edu --name Admin --password s3cret!

Flags:
    --email     EMAIL  (required) The admin's email address
    --name      NAME   (required) Display name
    --password  PW     (optional) Password. If omitted, a random one is generated and printed.

DATABASE_URL is read from the environment / .env like the API server.
"""

import argparse
import os
import secrets
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), ".."))

from sqlalchemy.exc import SQLAlchemyError  # noqa: E402

from telecalling.core.config import settings  # noqa: E402
from telecalling.core.database import SessionLocal, check_db_connection, init_db  # noqa: E402
from telecalling.core.security import hash_password  # noqa: E402
from telecalling.models.user import User, UserRole  # noqa: E402


def generate_password() -> str:
    """Generate a readable password (12 chars URL-safe)."""
    return secrets.token_urlsafe(9)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create an admin account for the telecalling CRM.")
    parser.add_argument("--email", required=True, help="The admin's email address (required)")
    parser.add_argument("--name", required=True, help="Display name (required)")
    parser.add_argument("--password", default=None, help="Password (optional, generated when omitted)")
    args = parser.parse_args(argv)

    email = args.email.strip().lower()
    name = args.name.strip()
    password = args.password or generate_password()

    if len(password) < settings.password_min_length:
        print(f"  [FAIL] Password must have at least {settings.password_min_length} characters")
        return 1

    print("=" * 60)
    print("  CREATE ADMIN ACCOUNT")
    print("=" * 60)

    print("\n1. Connecting to database...")
    if not check_db_connection():
        print("  [FAIL] Database connection failed")
        return 1
    init_db()
    print("  [OK] Connected")

    db = SessionLocal()
    try:
        if db.query(User.id).filter(User.email == email).first() is not None:
            print(f"  [FAIL] A user with email {email} already exists")
            return 1

        print("\n2. Creating admin account...")
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=UserRole.ADMIN,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        print(f"  [FAIL] Failed to create user: {e}")
        return 1
    finally:
        db.close()

    print(f"  [OK] User created (ID: {user.id})")
    print(f"  Email:    {email}")
    print(f"  Name:     {name}")
    if not args.password:
        print(f"  Password: {password}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
