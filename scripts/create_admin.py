#!/usr/bin/env python3
"""
Create (or promote) an admin account.

Usage:
    python scripts/create_admin.py admin@example.com "Site Admin" --password secret123
"""

import argparse
import getpass


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or promote an admin user.")
    parser.add_argument("email")
    parser.add_argument("name")
    parser.add_argument("--password", help="Prompted for when omitted")
    args = parser.parse_args()

    from lawdir.auth import get_password_hash, is_password_too_long
    from lawdir.db.session import get_db_session, init_db
    from lawdir.db.models import User, UserRole

    password = args.password or getpass.getpass("Password: ")
    if len(password) < 8 or is_password_too_long(password):
        print("Password must be 8 characters to 72 bytes long")
        return 1

    init_db()
    email = args.email.strip().lower()

    with get_db_session() as db:
        user = db.query(User).filter(User.email == email).first()
        if user:
            user.role = UserRole.ADMIN
            user.password_hash = get_password_hash(password)
            print(f"Promoted {email} to ADMIN")
        else:
            db.add(User(
                email=email,
                name=args.name,
                password_hash=get_password_hash(password),
                role=UserRole.ADMIN,
                is_active=True,
            ))
            print(f"Created admin {email}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
