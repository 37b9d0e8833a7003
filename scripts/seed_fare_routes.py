#!/usr/bin/env python3
"""Load the sample fare catalog (NY, NJ and CA corridors)."""

import asyncio

from app.database import AsyncSessionLocal
from app.seed import seed_fare_routes


async def main(clear: bool = False) -> None:
    async with AsyncSessionLocal() as session:
        imported = await seed_fare_routes(session, clear=clear)
        await session.commit()
    print(f"Seeded {imported} fare routes")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed the sample fare catalog")
    parser.add_argument("--clear", action="store_true", help="Purge the catalog first")

    args = parser.parse_args()

    asyncio.run(main(clear=args.clear))
