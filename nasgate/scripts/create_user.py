"""
Create an account out-of-band. Run from project root:
  python -m nasgate.scripts.create_user USERNAME PASSWORD [role] [--email EMAIL]
Example:
  python -m nasgate.scripts.create_user alice her-secure-password user

Admin accounts created here do not complete first-run setup; the completion flag
is only written by the setup flow.
"""
import argparse
import sys

from dotenv import load_dotenv

from nasgate.core.config import get_settings
from nasgate.core.database import build_engine, build_session_factory
from nasgate.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, USERNAME_MAX_LEN
from nasgate.models import Base, Role
from nasgate.services.users import UsernameTakenError, create_user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a NAS Gate account.")
    parser.add_argument("username", help=f"Username (1-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default=Role.USER.value, choices=[r.value for r in Role])
    parser.add_argument("--email", default=None)
    load_dotenv()
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not username or len(username) > USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    engine = build_engine(get_settings().DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    db = build_session_factory(engine)()
    try:
        create_user(db, username, args.password, role=Role(args.role), email=args.email)
    except UsernameTakenError:
        print(f"User '{username}' already exists.", file=sys.stderr)
        return 1
    finally:
        db.close()
        engine.dispose()
    print(f"Created user '{username}' with role '{args.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
