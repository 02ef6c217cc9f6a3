"""
Create a user (e.g. the first admin). Run from project root:
  python -m bookstore.scripts.create_user USERNAME EMAIL PASSWORD [role]
Example:
  python -m bookstore.scripts.create_user admin admin@example.com your-secure-password ADMIN
"""
import argparse
import sys

from pydantic import ValidationError

from bookstore.core.database import SessionLocal
from bookstore.core.exceptions import ConflictError
from bookstore.models.user import Role
from bookstore.schemas.auth import RegisterRequest
from bookstore.services.users import UserService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a bookstore user from the command line.")
    parser.add_argument("username", help="Username (3-50 letters, digits or underscores)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (6-128 chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.USER.value,
        type=str.upper,
        choices=[r.value for r in Role],
    )
    args = parser.parse_args(argv)

    try:
        body = RegisterRequest(username=args.username, email=args.email, password=args.password)
    except ValidationError as e:
        for error in e.errors():
            print(f"{error['loc'][0]}: {error['msg']}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        users = UserService(db)
        try:
            user = users.register(body)
        except ConflictError as e:
            print(e.message, file=sys.stderr)
            return 1
        if args.role != user.role:
            user.role = args.role
            db.commit()
        print(f"Created user '{user.username}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
