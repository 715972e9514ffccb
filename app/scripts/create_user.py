"""
Create an account directly (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD FIRST_NAME LAST_NAME [role]
Example:
  python -m app.scripts.create_user admin@example.com 'S3cure!pass' Ada Lovelace admin
"""
import argparse
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.exceptions import AppError
from app.models.user import ROLES
from app.services.auth import AuthService
from app.services.users import update_role


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an Airdrop Journal account.")
    parser.add_argument("email", help="Email address (login name)")
    parser.add_argument("password", help="8+ chars with upper, lower, digit and symbol")
    parser.add_argument("first_name")
    parser.add_argument("last_name")
    parser.add_argument("role", nargs="?", default="user", choices=ROLES)
    parser.add_argument("--verified", action="store_true", help="Mark the email as verified")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        service = AuthService.from_settings(db, get_settings())
        try:
            result = service.signup(args.first_name, args.last_name, args.email, args.password)
        except AppError as e:
            print(e.message, file=sys.stderr)
            for err in e.errors or []:
                print(f"  - {err['message']}", file=sys.stderr)
            return 1
        user = result.user
        if args.role != "user":
            user = update_role(db, user.id, args.role)
        if args.verified:
            user.is_email_verified = True
            user.email_verification_token = None
            user.email_verification_expires_at = None
            db.commit()
        print(f"Created user '{user.email}' with role '{user.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
