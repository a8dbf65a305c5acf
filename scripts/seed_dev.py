#!/usr/bin/env python
"""Seed development database with a demo memorial.

Creates an owner, a visitor and one public plus one private memorial so the
reaction and notification flows can be exercised locally.

Constraints:
- Refuses to run in staging or prod (MEMORIAL_ENV check)
- Idempotent via ON CONFLICT DO NOTHING
- Never runs automatically (manual invocation only)

Usage:
    cd python && DATABASE_URL=... python ../scripts/seed_dev.py
"""

import os
import sys
from uuid import UUID

DEMO_OWNER_ID = UUID("00000000-0000-4000-8000-000000000001")
DEMO_VISITOR_ID = UUID("00000000-0000-4000-8000-000000000002")
DEMO_PUBLIC_MEMORIAL_ID = UUID("00000000-0000-4000-8000-0000000000a1")
DEMO_PRIVATE_MEMORIAL_ID = UUID("00000000-0000-4000-8000-0000000000a2")


def main():
    memorial_env = os.getenv("MEMORIAL_ENV", "local")
    if memorial_env not in ("local", "test"):
        print(f"ERROR: seed_dev.py refuses to run in MEMORIAL_ENV={memorial_env}")
        sys.exit(1)

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("ERROR: DATABASE_URL environment variable must be set")
        sys.exit(1)

    from memorial.db.dialect import insert_if_absent
    from memorial.db.engine import create_db_engine
    from memorial.db.models import Memorial, MemorialMember, User
    from memorial.db.session import create_session_factory, session_scope, transaction

    factory = create_session_factory(create_db_engine(database_url))
    created = []

    with session_scope(factory) as db, transaction(db):
        for user_id, email, name in (
            (DEMO_OWNER_ID, "owner@example.com", "Anna Demo"),
            (DEMO_VISITOR_ID, "visitor@example.com", None),
        ):
            if insert_if_absent(db, User, {"id": user_id, "email": email, "name": name}, ["id"]):
                created.append(f"user {email}")

        for memorial_id, first_name, privacy in (
            (DEMO_PUBLIC_MEMORIAL_ID, "Erika", "public"),
            (DEMO_PRIVATE_MEMORIAL_ID, "Hans", "private"),
        ):
            values = {
                "id": memorial_id,
                "creator_id": DEMO_OWNER_ID,
                "memorial_type": "person",
                "first_name": first_name,
                "last_name": "Mustermann",
                "privacy_level": privacy,
            }
            if insert_if_absent(db, Memorial, values, ["id"]):
                created.append(f"{privacy} memorial {first_name}")

        if insert_if_absent(
            db,
            MemorialMember,
            {
                "memorial_id": DEMO_PRIVATE_MEMORIAL_ID,
                "user_id": DEMO_VISITOR_ID,
                "role": "member",
            },
            ["memorial_id", "user_id"],
        ):
            created.append("membership visitor -> private memorial")

    if created:
        print("Seeded: " + ", ".join(created))
    else:
        print("Seed data already present")


if __name__ == "__main__":
    main()
