"""Summarize how many memberships are linked to a person.

Run with:

    python -m scripts.check_membership_linking

Requires SUPABASE_URL/SUPABASE_SERVICE_ROLE_KEY environment variables.
"""

from __future__ import annotations

import argparse
import os
import sys

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Active unlinked memberships are listed individually up to this many.
DETAIL_LIMIT = 20


def get_database():
    from neighbors_admin.config import load_envs
    from neighbors_admin.db import create_service_database_client  # Lazy import to ensure env is loaded

    load_envs(PROJECT_ROOT)
    return create_service_database_client()


def check_linking() -> int:
    from neighbors_admin.memberships import linking_status

    db = get_database()
    status = linking_status(db.list_memberships(), db.list_people())

    print("=== LINKING STATUS ===")
    print(f"Total memberships: {status.total_memberships}")
    print(f"Linked: {status.linked}")
    print(f"Unlinked: {status.unlinked}")
    print(f"Unlinked but can be linked by email: {status.unlinked_linkable}")
    print(f"Unlinked without a matching person: {status.unlinked_unmatched}")
    print(f"Active and linked: {status.active_linked}")

    print("\n=== UNLINKED MEMBERSHIPS BY STATUS ===")
    for status_name, count in sorted(status.unlinked_by_status.items()):
        print(f"  {status_name}: {count}")

    print(f"\n=== ACTIVE UNLINKED MEMBERSHIPS ({len(status.active_unlinked)}) ===")
    if len(status.active_unlinked) <= DETAIL_LIMIT:
        for index, item in enumerate(status.active_unlinked, start=1):
            print(
                f"  {index}. {item.email or 'NO EMAIL'} - Tier: {item.tier or 'N/A'} - "
                f"Can link: {'YES' if item.linkable else 'NO'}"
            )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Summarize membership linking")
    parser.parse_args()

    return check_linking()


if __name__ == "__main__":
    sys.exit(main())
