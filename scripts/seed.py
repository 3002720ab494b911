#!/usr/bin/env python3
"""
Seed the database with random stations and measurements.

Existing stations and measurements are deleted first. Users are untouched.

Usage:
    python scripts/seed.py
    python scripts/seed.py --stations 10 --max-measurements 50 --seed 42
"""

import argparse
import logging
import random
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv
load_dotenv()

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from meteo_api.app import create_app  # noqa: E402
from meteo_api.app.config import get_config  # noqa: E402
from meteo_api.app.db import DatabaseError  # noqa: E402
from meteo_api.app.repositories import measurements_repo, stations_repo  # noqa: E402
from pymongo.errors import PyMongoError  # noqa: E402

logger = logging.getLogger("seed")

STATION_TYPES = ('automatic', 'manual')


def build_stations(count: int, rng: random.Random) -> List[Dict[str, Any]]:
    now = datetime.now(timezone.utc)
    return [
        {
            'name': f"Station {i + 1}",
            'long': round(rng.uniform(-180, 180), 4),
            'lat': round(rng.uniform(-90, 90), 4),
            'type': rng.choice(STATION_TYPES),
            'code': f"STATION_CODE_{i + 1}",
            'createdAt': now,
            'updatedAt': now,
        }
        for i in range(count)
    ]


def build_measurements(station_ids: List[Any], per_station: int, rng: random.Random) -> List[Dict[str, Any]]:
    now = datetime.now(timezone.utc)
    return [
        {
            'value': round(rng.random() * 100, 2),
            'station_id': station_id,
            'createdAt': now,
            'updatedAt': now,
        }
        for station_id in station_ids
        for _ in range(per_station)
    ]


def seed(station_count: int, max_measurements: int, rng: random.Random) -> Dict[str, int]:
    """Replace stations/measurements with random data. Needs an app context."""
    stations_repo.delete_many({})
    measurements_repo.delete_many({})

    station_ids = stations_repo.insert_many(build_stations(station_count, rng))
    logger.info(f"Inserted {len(station_ids)} stations")

    # Same count for every station, picked once per run
    per_station = rng.randint(1, max_measurements) if max_measurements > 0 else 0
    measurement_ids = measurements_repo.insert_many(build_measurements(station_ids, per_station, rng))
    logger.info(f"Inserted {len(measurement_ids)} measurements")

    return {'stations': len(station_ids), 'measurements': len(measurement_ids)}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed stations and measurements")
    parser.add_argument('--stations', type=int, default=50, help='Number of stations (default: 50)')
    parser.add_argument('--max-measurements', type=int, default=1000,
                        help='Upper bound of measurements per station (default: 1000)')
    parser.add_argument('--seed', type=int, help='Random seed for reproducible data')
    args = parser.parse_args(argv)

    rng = random.Random(args.seed)
    app = create_app(get_config())
    with app.app_context():
        try:
            seed(args.stations, args.max_measurements, rng)
        except (DatabaseError, PyMongoError) as e:
            logger.error(f"Seeding error: {e}")
            return 1

    logger.info("Seeding complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
