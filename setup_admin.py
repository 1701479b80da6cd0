"""
Create the initial admin account.

    python setup_admin.py --email admin@example.com --password 'S3cret!' --name "Admin User"

Existing admins (same admin id or email) are left untouched.
"""

import argparse
import logging
from datetime import datetime, timezone
from typing import Optional

import database
from auth import hash_password

logger = logging.getLogger(__name__)


def create_admin(admin_id: str, email: str, password: str, name: str,
                 role: str = "super_admin") -> Optional[dict]:
    """Returns the stored admin (without password), or None if one already exists."""
    admins = database.get_collection("admin")
    admin_id = admin_id.strip().lower()
    email = email.strip().lower()

    if admins.find_one({"$or": [{"admin_id": admin_id}, {"email": email}]}):
        logger.warning("Admin %s (%s) already exists, skipping", admin_id, email)
        return None

    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters")
    if role not in ("admin", "super_admin"):
        raise ValueError("Role must be admin or super_admin")

    doc = {
        "admin_id": admin_id,
        "email": email,
        "password": hash_password(password),
        "name": name.strip(),
        "role": role,
        "is_active": True,
        "last_login": None,
        "created_at": datetime.now(timezone.utc),
    }
    admins.insert_one(doc)
    logger.info("Created admin %s (%s)", admin_id, email)
    return {k: v for k, v in doc.items() if k not in ("_id", "password")}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("--admin-id", default="ADMIN001")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="Admin User")
    parser.add_argument("--role", default="super_admin", choices=["admin", "super_admin"])
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")
    created = create_admin(args.admin_id, args.email, args.password, args.name, args.role)
    return 0 if created else 1


if __name__ == "__main__":
    raise SystemExit(main())
