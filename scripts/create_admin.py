#!/usr/bin/env python3
"""
Provision the initial administrator account.

Reads ADMIN_USERNAME / ADMIN_PASSWORD from the environment (or .env file),
falling back to admin / admin123. Running it again once the user exists is a
no-op.

Usage:
    python scripts/create_admin.py
    python scripts/create_admin.py --username root --password 's3cret'
"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

# Ensure the repository root is on sys.path so `meteo_api` package imports work
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from meteo_api.app import create_app  # noqa: E402
from meteo_api.app.config import get_config  # noqa: E402
from meteo_api.app.db import DatabaseError  # noqa: E402
from meteo_api.app.services.auth import auth_service  # noqa: E402
from meteo_api.app.services.errors import ServiceError  # noqa: E402
from pymongo.errors import PyMongoError  # noqa: E402

logger = logging.getLogger("create_admin")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create the administrator user")
    parser.add_argument('--username', help='Admin username (default: $ADMIN_USERNAME or "admin")')
    parser.add_argument('--password', help='Admin password (default: $ADMIN_PASSWORD or "admin123")')
    args = parser.parse_args(argv)

    app = create_app(get_config())
    username = args.username or app.config['ADMIN_USERNAME']
    password = args.password or app.config['ADMIN_PASSWORD']

    with app.app_context():
        try:
            created, user = auth_service.ensure_admin(username, password)
        except ServiceError as e:
            logger.error(f"Error creating admin user: {e.message}")
            return 1
        except (DatabaseError, PyMongoError) as e:
            logger.error(f"Error creating admin user: {e}")
            return 1

    if created:
        logger.info("Admin user created successfully (id=%s)", user['_id'])
    else:
        logger.info("Admin user already exists")
    return 0


if __name__ == "__main__":
    sys.exit(main())
