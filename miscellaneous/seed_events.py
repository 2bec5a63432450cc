#!/usr/bin/env python3
"""
Seed demo events and print bearer tokens for local testing of Ticketgate.
"""

import asyncio
import sys
from datetime import timedelta
from decimal import Decimal

from ticketgate.database import init_database, close_database, get_session_factory
from ticketgate.services.inventory_store import InventoryStore
from ticketgate.utils.auth import ROLE_HOLDER, ROLE_ORGANIZER, create_access_token
from ticketgate.utils.clock import utcnow

ORGANIZER_ID = "organizer-demo"

DEMO_EVENTS = [
    ("Rooftop Jazz Night", 120, Decimal("25.00"), 7),
    ("Indie Film Premiere", 2, Decimal("12.50"), 3),
    ("Sold Out Sunday", 0, Decimal("40.00"), 10),
]


async def seed_events():
    """Create the demo events."""
    print("🔧 Ticketgate - Demo Data")
    print("=" * 50)

    print("\n🔄 Initializing database connection...")
    await init_database()

    try:
        store = InventoryStore(get_session_factory())
        now = utcnow()

        for name, capacity, price, days_ahead in DEMO_EVENTS:
            event = await store.add_event(
                name=name,
                starts_at=now + timedelta(days=days_ahead),
                capacity=capacity,
                organizer_id=ORGANIZER_ID,
                price=price,
                venue="Demo Hall",
            )
            print(f"✅ {event.name}")
            print(f"   ID: {event.id}")
            print(f"   Capacity: {event.capacity_total}")
            print(f"   Starts: {event.starts_at.isoformat()}")

    except Exception as e:
        print(f"❌ Error seeding events: {e}")
        return 1
    finally:
        await close_database()

    expires = timedelta(days=1)
    print("\n🔑 Bearer tokens (valid for one day)")
    print("Organizer:")
    print(create_access_token({"sub": ORGANIZER_ID, "name": "Demo Organizer", "role": ROLE_ORGANIZER}, expires))
    print("Holder:")
    print(create_access_token({"sub": "holder-demo", "name": "Demo Holder", "role": ROLE_HOLDER}, expires))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_events()))
