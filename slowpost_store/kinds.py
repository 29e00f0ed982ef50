"""
Known collection names.

The documents and links tables are shared by every relation kind; the
collection string is the only thing telling a group membership apart from a
subscription. Naming them here keeps the strings in one place.
"""

from __future__ import annotations

from enum import Enum


class Collection(str, Enum):
    """Collection names used by the application.

    Document collections are keyed by a business identifier. Link
    collections are keyed by (parent_key, child_key):

    - MEMBERS: parent = group name, child = username
    - SUBSCRIPTIONS: parent = subscribed-to username, child = subscriber username
    - UPDATES: parent = feed owner username, child = update id
    """

    # documents
    PROFILES = "profiles"
    GROUPS = "groups"
    AUTH = "auth"
    SESSIONS = "sessions"

    # links
    MEMBERS = "members"
    SUBSCRIPTIONS = "subscriptions"
    UPDATES = "updates"

    def __str__(self) -> str:
        return self.value
