"""Report memberships that share a customer email.

Run with:

    python -m scripts.check_duplicate_emails [--json]

Requires SUPABASE_URL/SUPABASE_SERVICE_ROLE_KEY environment variables.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import asdict
from typing import Any, Dict

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def get_database():
    from neighbors_admin.config import load_envs
    from neighbors_admin.db import create_service_database_client  # Lazy import to ensure env is loaded

    load_envs(PROJECT_ROOT)
    return create_service_database_client()


def dump(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, indent=2, sort_keys=True, default=str)


def check_duplicates(as_json: bool = False) -> int:
    from neighbors_admin.memberships import find_duplicate_memberships, summarize_duplicates

    db = get_database()
    memberships = db.list_memberships()
    people = db.list_people(with_email_only=True)

    duplicates = find_duplicate_memberships(memberships, people)
    summary = summarize_duplicates(memberships)

    if as_json:
        print(dump({"summary": asdict(summary), "duplicates": [asdict(item) for item in duplicates]}))
        return 0

    print("=== DUPLICATE EMAIL ANALYSIS ===")
    print(f"Total memberships: {summary.total_memberships}")
    print(f"Unique customer emails: {summary.unique_emails}")
    print(f"Emails with duplicates: {summary.duplicate_emails}")
    print(f"Memberships in duplicate groups: {summary.memberships_in_duplicates}")
    for size, count in summary.group_sizes.items():
        print(f"  Emails with {size} memberships: {count}")

    for index, duplicate in enumerate(duplicates, start=1):
        owner = f" [{duplicate.person_name}]" if duplicate.person_name else ""
        print(f"\n{index}. {duplicate.email}{owner} ({duplicate.membership_count} memberships)")
        for info in duplicate.tiers:
            tier = info.tier.value if info.tier else "no tier"
            status = info.status.value if info.status else "unknown"
            print(
                f"   - {info.membership_id}: {tier}, {status}, "
                f"renewed {info.last_renewal or 'N/A'}, subscription {info.stripe_subscription_id or 'N/A'}"
            )

    print(f"\nEmails with multiple active memberships: {len(summary.emails_with_multiple_active)}")
    for email in summary.emails_with_multiple_active:
        print(f"  {email}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Report memberships sharing a customer email")
    parser.add_argument("--json", action="store_true", help="Emit the report as JSON")
    args = parser.parse_args()

    return check_duplicates(as_json=args.json)


if __name__ == "__main__":
    sys.exit(main())
