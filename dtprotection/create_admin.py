"""
Create an admin account from the command line

    python -m dtprotection.create_admin --username admin --email admin@dtprotection.com
"""
import argparse
import getpass
import logging
import sys

from sqlalchemy import or_

from . import models
from .auth import get_password_hash
from .database import SessionLocal, engine

logger = logging.getLogger(__name__)


def create_admin(db, username: str, email: str, password: str, role: str = "super_admin") -> models.Admin:
    """Insert an admin; raises ValueError on bad input or an existing username/email"""
    if role not in models.ADMIN_ROLES:
        raise ValueError(f"Unknown role: {role}")
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")

    email = email.lower()
    existing = db.query(models.Admin).filter(
        or_(models.Admin.username == username, models.Admin.email == email)
    ).first()
    if existing:
        raise ValueError(f"Admin {existing.username} already exists")

    admin = models.Admin(
        username=username,
        email=email,
        password_hash=get_password_hash(password),
        role=role,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a DT Protection admin account")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--email", default="admin@dtprotection.com")
    parser.add_argument("--role", default="super_admin", choices=models.ADMIN_ROLES)
    parser.add_argument("--password", help="prompted for when omitted")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    password = args.password or getpass.getpass("Password: ")

    models.Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        admin = create_admin(db, args.username, args.email, password, args.role)
    except ValueError as e:
        logger.error(f"❌ {e}")
        return 1
    finally:
        db.close()

    logger.info(f"✅ Admin {admin.username} ({admin.role}) created")
    logger.info("⚠️ Change the password after first login if it was shared")
    return 0


if __name__ == "__main__":
    sys.exit(main())
