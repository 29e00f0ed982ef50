"""
Typed accessors over a DbAdapter.

SlowpostRepository gives each relation kind its own methods and payload
model while keeping the generic documents/links tables underneath. It holds
no global state: construct it with the adapter the application built at
startup and pass it to whatever needs it.

Invariants:
    - Payloads are validated before they reach the adapter
    - Link payloads repeat their endpoint keys (e.g. Member.group_name)
    - Methods touching more than one record are not atomic

How to change safely:
    - Keep collection names in kinds.Collection
    - New relation kinds get a model in models.py and methods here
"""

from __future__ import annotations

import logging
from typing import Any

from .adapters.base import DbAdapter
from .kinds import Collection
from .models import Group, Member, Profile, Subscription, Update

logger = logging.getLogger(__name__)


class SlowpostRepository:
    """Relation-kind aware facade over a DbAdapter.

    Example:
        >>> repo = SlowpostRepository(adapter)
        >>> await repo.add_group(Group(group_name="writers", display_name="Writers",
        ...                            admin_username="ada"))
        >>> await repo.add_member(Member(group_name="writers", username="ada",
        ...                              status="approved", is_admin=True))
        >>> [m.username for m, _ in await repo.get_group_members("writers")]
    """

    def __init__(self, adapter: DbAdapter) -> None:
        self.adapter = adapter

    # -------------------------- profiles --------------------------
    async def get_profile(self, username: str) -> Profile | None:
        data = await self.adapter.get_document(Collection.PROFILES.value, username)
        return Profile.model_validate(data) if data is not None else None

    async def add_profile(self, profile: Profile) -> None:
        await self.adapter.add_document(
            Collection.PROFILES.value, profile.username, profile.to_wire()
        )

    async def update_profile(self, username: str, **changes: Any) -> None:
        """Update profile fields by their Python names.

        Raises:
            ValueError: If a field is unknown or invalid
            DocumentNotFoundError: If the profile does not exist
        """
        await self.adapter.update_document(
            Collection.PROFILES.value, username, Profile.wire_update(changes)
        )

    async def list_profiles(self) -> list[Profile]:
        entries = await self.adapter.get_all_documents(Collection.PROFILES.value)
        return [Profile.model_validate(entry.data) for entry in entries]

    # -------------------------- groups --------------------------
    async def get_group(self, group_name: str) -> Group | None:
        data = await self.adapter.get_document(Collection.GROUPS.value, group_name)
        return Group.model_validate(data) if data is not None else None

    async def add_group(self, group: Group) -> None:
        await self.adapter.add_document(Collection.GROUPS.value, group.group_name, group.to_wire())

    async def update_group(self, group_name: str, **changes: Any) -> None:
        await self.adapter.update_document(
            Collection.GROUPS.value, group_name, Group.wire_update(changes)
        )

    # -------------------------- memberships --------------------------
    async def add_member(self, member: Member) -> None:
        await self.adapter.add_link(
            Collection.MEMBERS.value, member.group_name, member.username, member.to_wire()
        )

    async def update_member(self, group_name: str, username: str, **changes: Any) -> None:
        await self.adapter.update_link(
            Collection.MEMBERS.value, group_name, username, Member.wire_update(changes)
        )

    async def remove_member(self, group_name: str, username: str) -> None:
        await self.adapter.delete_link(Collection.MEMBERS.value, group_name, username)

    async def get_group_members(self, group_name: str) -> list[tuple[Member, Profile]]:
        """Members with profiles; members without a profile are left out."""
        rows = await self.adapter.get_group_members_with_profiles(group_name)
        return [
            (Member.model_validate(row.membership), Profile.model_validate(row.profile))
            for row in rows
        ]

    async def get_user_memberships(
        self,
        username: str,
        viewer_username: str | None = None,
    ) -> list[tuple[Group, Member, Member | None]]:
        """Groups of ``username`` with the viewer's own membership in each."""
        rows = await self.adapter.get_user_groups_with_membership(username, viewer_username)
        return [
            (
                Group.model_validate(row.group),
                Member.model_validate(row.membership),
                Member.model_validate(row.viewer_membership)
                if row.viewer_membership is not None
                else None,
            )
            for row in rows
        ]

    # -------------------------- subscriptions --------------------------
    async def add_subscription(self, subscription: Subscription) -> None:
        await self.adapter.add_link(
            Collection.SUBSCRIPTIONS.value,
            subscription.subscribed_to_username,
            subscription.subscriber_username,
            subscription.to_wire(),
        )

    async def update_subscription(
        self,
        subscribed_to_username: str,
        subscriber_username: str,
        **changes: Any,
    ) -> None:
        await self.adapter.update_link(
            Collection.SUBSCRIPTIONS.value,
            subscribed_to_username,
            subscriber_username,
            Subscription.wire_update(changes),
        )

    async def remove_subscription(
        self,
        subscribed_to_username: str,
        subscriber_username: str,
    ) -> None:
        await self.adapter.delete_link(
            Collection.SUBSCRIPTIONS.value, subscribed_to_username, subscriber_username
        )

    async def get_subscribers(self, username: str) -> list[tuple[Subscription, Profile]]:
        """Who subscribes to ``username``, with the subscriber's profile."""
        rows = await self.adapter.get_subscribers_with_profiles(username)
        return [
            (Subscription.model_validate(row.subscription), Profile.model_validate(row.profile))
            for row in rows
        ]

    async def get_subscriptions(self, username: str) -> list[tuple[Subscription, Profile]]:
        """Who ``username`` subscribes to, with that user's profile."""
        rows = await self.adapter.get_subscriptions_with_profiles(username)
        return [
            (Subscription.model_validate(row.subscription), Profile.model_validate(row.profile))
            for row in rows
        ]

    # -------------------------- updates --------------------------
    async def add_update(self, owner_username: str, update: Update) -> None:
        """Append an entry to ``owner_username``'s feed."""
        await self.adapter.add_link(
            Collection.UPDATES.value, owner_username, update.id, update.to_wire()
        )
        logger.debug(
            "Added feed entry",
            extra={"owner": owner_username, "update_id": update.id, "type": update.type},
        )

    async def get_updates(self, username: str) -> list[tuple[Update, Profile, Group | None]]:
        rows = await self.adapter.get_updates_with_profiles_and_groups(username)
        return [
            (
                Update.model_validate(row.update),
                Profile.model_validate(row.profile),
                Group.model_validate(row.group) if row.group is not None else None,
            )
            for row in rows
        ]
