"""Load restaurants from a JSON file into the configured database."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from sqlalchemy import select

from resto_pulse.db.session import SessionLocal
from resto_pulse.models import Restaurant
from resto_pulse.services.restaurants import RestaurantService

logger = logging.getLogger(__name__)


def load_entries(path: Path) -> list[dict]:
    """Read a JSON list of restaurant objects.

    Accepts ``image``/``menuImages`` keys as aliases for ``image_url`` and
    ``menu_images``.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list")
    entries = []
    for item in data:
        if not isinstance(item, dict):
            raise ValueError(f"{path} contains a non-object entry")
        entries.append(
            {
                "name": item.get("name"),
                "description": item.get("description") or item.get("cuisine"),
                "phone": item.get("phone"),
                "address": item.get("address"),
                "image_url": item.get("image_url") or item.get("image"),
                "menu_images": item.get("menu_images") or item.get("menuImages") or [],
            }
        )
    return entries


def seed(path: Path) -> int:
    """Create every restaurant whose name is not already present."""
    service = RestaurantService()
    created = 0
    with SessionLocal() as db:
        existing = set(db.scalars(select(Restaurant.name)))
        for entry in load_entries(path):
            if entry["name"] in existing:
                continue
            result = service.create_restaurant(db, entry)
            if not result.success:
                logger.error("Skipped %r: %s", entry["name"], result.error)
                continue
            existing.add(entry["name"])
            created += 1
    return created


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", type=Path, help="JSON file with a list of restaurants")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        created = seed(args.path)
    except (OSError, ValueError) as exc:
        print(f"[seed] {exc}", file=sys.stderr)
        return 1
    print(f"[seed] created {created} restaurants")
    return 0


if __name__ == "__main__":
    sys.exit(main())
