#!/usr/bin/env python3
"""
Slowpost Store Demo - Shows documents, links and join queries.

Builds a small community in a temporary SQLite file through the same
factory the application uses. Set STORE_BACKEND=memory to run it without
touching disk.
"""

import asyncio
import json
import os
import tempfile

from slowpost_store import (
    DocumentNotFoundError,
    SlowpostRepository,
    StoreBackend,
    StoreConfig,
    open_db_adapter,
)
from slowpost_store.config import SqliteConfig
from slowpost_store.models import Group, Member, Profile, Subscription, Update


async def main():
    print("=" * 60)
    print("Slowpost Store Demo - Documents, Links and Joins")
    print("=" * 60)
    print()

    with tempfile.TemporaryDirectory() as data_dir:
        if os.getenv("STORE_BACKEND", "").lower() == "memory":
            backend = StoreBackend.MEMORY
        else:
            backend = StoreBackend.SQLITE
        config = StoreConfig(
            backend=backend,
            sqlite=SqliteConfig(path=os.path.join(data_dir, "slowpost.db")),
        )
        print(f"[Setup] Backend: {backend.value}")

        async with open_db_adapter(config) as adapter:
            repo = SlowpostRepository(adapter)

            # 1. Profiles
            print("\n[Step 1] Creating profiles...")
            for username, full_name in [
                ("ada", "Ada Lovelace"),
                ("grace", "Grace Hopper"),
                ("linus", "Linus Pauling"),
            ]:
                await repo.add_profile(Profile(username=username, full_name=full_name))
                print(f"  - Created: {full_name} (@{username})")

            # 2. Group and memberships
            print("\n[Step 2] Creating group 'writers'...")
            await repo.add_group(
                Group(group_name="writers", display_name="Writers", admin_username="ada")
            )
            await repo.add_member(
                Member(group_name="writers", username="ada", status="approved", is_admin=True)
            )
            await repo.add_member(Member(group_name="writers", username="grace"))
            print("  - ada joined as admin")
            print("  - grace requested to join (pending)")

            # 3. Approve
            print("\n[Step 3] Approving grace...")
            await repo.update_member("writers", "grace", status="approved")
            for member, profile in await repo.get_group_members("writers"):
                print(f"  {profile.full_name:<15} status={member.status} admin={member.is_admin}")

            # 4. Viewer-aware group listing
            print("\n[Step 4] grace's groups as seen by ada...")
            print("-" * 50)
            for group, membership, viewer in await repo.get_user_memberships("grace", "ada"):
                viewer_status = viewer.status if viewer else "not a member"
                print(f"  {group.display_name}: grace={membership.status}, ada={viewer_status}")

            # 5. Subscriptions
            print("\n[Step 5] Subscriptions...")
            print("-" * 50)
            await repo.add_subscription(
                Subscription(subscriber_username="grace", subscribed_to_username="ada")
            )
            await repo.add_subscription(
                Subscription(
                    subscriber_username="linus",
                    subscribed_to_username="ada",
                    is_close=True,
                )
            )
            for subscription, profile in await repo.get_subscribers("ada"):
                close = " (close friend)" if subscription.is_close else ""
                print(f"  {profile.full_name} subscribes to ada{close}")

            # 6. Activity feed
            print("\n[Step 6] ada's activity feed...")
            print("-" * 50)
            await repo.add_update(
                "ada",
                Update(
                    id="u1",
                    type="new_subscriber",
                    username="grace",
                    timestamp="2024-03-01T09:00:00Z",
                ),
            )
            await repo.add_update(
                "ada",
                Update(
                    id="u2",
                    type="group_join",
                    username="grace",
                    group_name="writers",
                    timestamp="2024-03-02T09:00:00Z",
                ),
            )
            for update, profile, group in await repo.get_updates("ada"):
                where = f" in {group.display_name}" if group else ""
                print(f"  [{update.timestamp}] {update.type}: {profile.full_name}{where}")

            # 7. Raw document
            print("\n[Step 7] Raw stored profile (ada)...")
            print("-" * 50)
            print(json.dumps(await adapter.get_document("profiles", "ada"), indent=2))

            # 8. Missing targets
            print("\n[Step 8] Updating a missing profile...")
            print("-" * 50)
            try:
                await repo.update_profile("ghost", bio="boo")
            except DocumentNotFoundError as e:
                print(f"  {e}")
            print(f"  Reading it returns: {await repo.get_profile('ghost')}")
            print()

    print("=" * 60)
    print("Demo Complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
