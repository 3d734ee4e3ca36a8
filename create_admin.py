"""
Promote an existing user to administrator
Usage: python create_admin.py <email> [--revoke]
"""
import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from bikeregistry.database import SessionLocal
from bikeregistry.models import User

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def set_role(email: str, role: str) -> bool:
    """Set the role of the user with this email. Returns False when no such user exists."""
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if not user:
            logger.error(f"❌ No user found with email {email}")
            return False

        user.role = role
        db.commit()
        logger.info(f"✅ User {user.id} ({user.email}) is now '{role}'")
        return True
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Grant or revoke administrator access")
    parser.add_argument("email", help="Email of an existing account")
    parser.add_argument("--revoke", action="store_true", help="Demote the user back to 'user'")
    args = parser.parse_args()

    if not set_role(args.email, "user" if args.revoke else "admin"):
        sys.exit(1)
