#!/usr/bin/env python3
"""
Change the password of an existing user.

Usage:
    python scripts/set_password.py admin
    python scripts/set_password.py admin --password 'n3w-p4ss'

Without --password the new password is prompted for (twice).
"""

import argparse
import getpass
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from meteo_api.app import create_app  # noqa: E402
from meteo_api.app.config import get_config  # noqa: E402
from meteo_api.app.db import DatabaseError  # noqa: E402
from meteo_api.app.services.auth import auth_service  # noqa: E402
from meteo_api.app.services.errors import ServiceError  # noqa: E402
from pymongo.errors import PyMongoError  # noqa: E402

logger = logging.getLogger("set_password")


def _prompt_password() -> str:
    first = getpass.getpass("New password: ")
    second = getpass.getpass("Repeat new password: ")
    if first != second:
        raise SystemExit("Passwords do not match")
    return first


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Set a new password for a user")
    parser.add_argument('username')
    parser.add_argument('--password', help='New password (prompted when omitted)')
    args = parser.parse_args(argv)

    password = args.password or _prompt_password()

    app = create_app(get_config())
    with app.app_context():
        try:
            user = auth_service.change_password(args.username, password)
        except ServiceError as e:
            logger.error(f"Could not change password: {e.message}")
            return 1
        except (DatabaseError, PyMongoError) as e:
            logger.error(f"Could not change password: {e}")
            return 1

    logger.info("Password updated for %s", user['username'])
    return 0


if __name__ == "__main__":
    sys.exit(main())
