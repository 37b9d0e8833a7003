#!/usr/bin/env python3
"""Import fare catalog rows from a JSON export.

The file holds either a list of rows or an object with an ``items`` list.
Rows use the catalog field names; airport flags may be Y/N strings.
"""

import asyncio
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from app.database import AsyncSessionLocal
from app.schemas.fare_route import FareRouteCreate
from app.services.catalog_service import catalog_service


def load_rows(path: Path) -> list[FareRouteCreate]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    rows = payload.get("items", []) if isinstance(payload, dict) else payload

    items: list[FareRouteCreate] = []
    failed = 0
    for index, row in enumerate(rows, start=1):
        try:
            items.append(FareRouteCreate.model_validate(row))
        except ValidationError as e:
            failed += 1
            print(f"Row {index} skipped: {e.error_count()} error(s)", file=sys.stderr)
    if failed:
        print(f"{failed} row(s) failed validation", file=sys.stderr)
    return items


async def import_file(path: Path, clear: bool = False) -> None:
    items = load_rows(path)
    if not items:
        print("Nothing to import")
        return

    async with AsyncSessionLocal() as session:
        imported, cleared = await catalog_service.import_routes(
            session, items, clear_existing=clear
        )
        await session.commit()
    print(f"Imported {imported} fare routes (cleared {cleared})")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Import fare routes from JSON")
    parser.add_argument("file", type=Path, help="JSON file with catalog rows")
    parser.add_argument("--clear", action="store_true", help="Purge the catalog first")

    args = parser.parse_args()

    asyncio.run(import_file(args.file, clear=args.clear))
