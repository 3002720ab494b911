# scripts/create_indexes.py
"""
Create MongoDB indexes for the stations API.

- Unique index on station codes
- Unique index on usernames
- Lookup indexes for station filters and measurement -> station references

The script is idempotent - safe to run multiple times. The application also
creates these indexes at startup when it can reach the database.

Usage:
    python scripts/create_indexes.py [--mongo-uri URI] [--db NAME]
"""

import argparse
import os
import sys
from pathlib import Path

from pymongo import MongoClient
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from meteo_api.app.config import Config  # noqa: E402
from meteo_api.app.db import ensure_indexes  # noqa: E402


def main(argv=None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument('--mongo-uri')
    p.add_argument('--db')
    args = p.parse_args(argv)

    mongo_uri = args.mongo_uri or os.environ.get('MONGO_URI') or Config.MONGO_URI
    client = MongoClient(mongo_uri)
    db = client[args.db] if args.db else client.get_default_database(Config.MONGO_DB)

    print(f"[INFO] Creating indexes on database '{db.name}'...")
    ok = ensure_indexes(db)
    client.close()
    if ok:
        print("[SUCCESS] All indexes created successfully!")
        return 0
    print("[ERROR] Index creation failed, see log output")
    return 1


if __name__ == "__main__":
    sys.exit(main())
