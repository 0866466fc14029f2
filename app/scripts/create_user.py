"""
Create a user (e.g. first admin). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD FIRST_NAME LAST_NAME [role]
  python -m app.scripts.create_user --seed-admin
Example:
  python -m app.scripts.create_user ana@empresa.com your-secure-password Ana Souza manager
"""
import argparse
import sys

from pydantic import ValidationError as SchemaValidationError

from app.core.database import SessionLocal
from app.core.exceptions import ConflictError
from app.core.permissions import ROLES
from app.schemas.auth import UserCreate
from app.services.users import create_user, ensure_default_admin


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an ERP user (no registration UI).")
    parser.add_argument(
        "--seed-admin",
        action="store_true",
        help="Create the default admin from DEFAULT_ADMIN_EMAIL/DEFAULT_ADMIN_PASSWORD if missing",
    )
    parser.add_argument("email", nargs="?", help="Email address (login)")
    parser.add_argument("password", nargs="?", help="Password (6-128 chars)")
    parser.add_argument("first_name", nargs="?", default="Usuario")
    parser.add_argument("last_name", nargs="?", default="ERP")
    parser.add_argument("role", nargs="?", default="user", choices=list(ROLES))
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        if args.seed_admin:
            admin = ensure_default_admin(db)
            if admin is None:
                print("Default admin already exists.")
            else:
                print(f"Created default admin '{admin.email}'.")
            return 0

        if not args.email or not args.password:
            parser.error("email and password are required unless --seed-admin is given")
        try:
            body = UserCreate(
                email=args.email,
                password=args.password,
                first_name=args.first_name,
                last_name=args.last_name,
                role=args.role,
            )
        except SchemaValidationError as e:
            print(f"Invalid user data: {e.errors()[0]['msg']}", file=sys.stderr)
            return 1
        try:
            user = create_user(db, body)
        except ConflictError:
            print(f"User '{body.email}' already exists.", file=sys.stderr)
            return 1
        print(f"Created user '{user.email}' with role '{user.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
