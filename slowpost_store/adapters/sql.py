"""
Shared SQL for the embedded and networked adapters.

Table schema:
    documents:
        - collection TEXT
        - key TEXT (caller-chosen business identifier)
        - data TEXT (JSON)
        - PRIMARY KEY (collection, key)

    links:
        - collection TEXT
        - parent_key TEXT
        - child_key TEXT
        - data TEXT (JSON)
        - PRIMARY KEY (collection, parent_key, child_key)
        - INDEX on (collection, parent_key)
        - INDEX on (collection, child_key)

Both adapters run the exact same statement text. Placeholders are numbered
(?1, ?2, ...) so a value can be referenced twice and so libSQL and sqlite3
bind them identically.

How to change safely:
    - The table and index shapes are read by other tooling; never rename them
    - Payloads must stay JSON text, not a binary encoding
    - Every DDL statement must stay idempotent (IF NOT EXISTS)
"""

from __future__ import annotations

# Extended result codes of a primary-key or unique violation. Other constraint
# failures (NOT NULL, CHECK) are not duplicates and propagate unchanged.
DUPLICATE_KEY_CODES = frozenset({"SQLITE_CONSTRAINT_PRIMARYKEY", "SQLITE_CONSTRAINT_UNIQUE"})


def is_duplicate_key(code: str | None, message: str) -> bool:
    """Whether a driver error is a primary-key or unique violation."""
    return code in DUPLICATE_KEY_CODES or "UNIQUE constraint failed" in message


SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS documents (
        collection TEXT NOT NULL,
        key TEXT NOT NULL,
        data TEXT NOT NULL,
        PRIMARY KEY (collection, key)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS links (
        collection TEXT NOT NULL,
        parent_key TEXT NOT NULL,
        child_key TEXT NOT NULL,
        data TEXT NOT NULL,
        PRIMARY KEY (collection, parent_key, child_key)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_links_parent ON links(collection, parent_key)",
    "CREATE INDEX IF NOT EXISTS idx_links_child ON links(collection, child_key)",
)

# Documents
SELECT_DOCUMENT = "SELECT data FROM documents WHERE collection = ?1 AND key = ?2"
INSERT_DOCUMENT = "INSERT INTO documents (collection, key, data) VALUES (?1, ?2, ?3)"
UPDATE_DOCUMENT = "UPDATE documents SET data = ?1 WHERE collection = ?2 AND key = ?3"
SELECT_ALL_DOCUMENTS = "SELECT key, data FROM documents WHERE collection = ?1"

# Links
SELECT_LINK = (
    "SELECT data FROM links WHERE collection = ?1 AND parent_key = ?2 AND child_key = ?3"
)
SELECT_CHILD_LINKS = "SELECT data FROM links WHERE collection = ?1 AND parent_key = ?2"
SELECT_PARENT_LINKS = "SELECT data FROM links WHERE collection = ?1 AND child_key = ?2"
INSERT_LINK = (
    "INSERT INTO links (collection, parent_key, child_key, data) VALUES (?1, ?2, ?3, ?4)"
)
UPDATE_LINK = (
    "UPDATE links SET data = ?1 WHERE collection = ?2 AND parent_key = ?3 AND child_key = ?4"
)
DELETE_LINK = "DELETE FROM links WHERE collection = ?1 AND parent_key = ?2 AND child_key = ?3"

# Joins
#
# Collection names are bound as parameters rather than inlined so the
# statements follow the Collection enum.

# ?1 members collection, ?2 groups collection, ?3 username, ?4 viewer username.
# With ?4 NULL the LEFT JOIN never matches and the viewer column is NULL.
SELECT_USER_GROUPS_WITH_MEMBERSHIP = """
    SELECT
        g.data AS group_data,
        m.data AS membership_data,
        v.data AS viewer_membership_data
    FROM links m
    INNER JOIN documents g ON g.collection = ?2 AND g.key = m.parent_key
    LEFT JOIN links v ON v.collection = ?1
        AND v.parent_key = m.parent_key
        AND v.child_key = ?4
    WHERE m.collection = ?1 AND m.child_key = ?3
"""

# ?1 members collection, ?2 profiles collection, ?3 group name
SELECT_GROUP_MEMBERS_WITH_PROFILES = """
    SELECT
        m.data AS membership_data,
        p.data AS profile_data
    FROM links m
    INNER JOIN documents p ON p.collection = ?2 AND p.key = m.child_key
    WHERE m.collection = ?1 AND m.parent_key = ?3
"""

# ?1 subscriptions collection, ?2 profiles collection, ?3 subscriber username
SELECT_SUBSCRIPTIONS_WITH_PROFILES = """
    SELECT
        s.data AS subscription_data,
        p.data AS profile_data
    FROM links s
    INNER JOIN documents p ON p.collection = ?2 AND p.key = s.parent_key
    WHERE s.collection = ?1 AND s.child_key = ?3
"""

# ?1 subscriptions collection, ?2 profiles collection, ?3 subscribed-to username
SELECT_SUBSCRIBERS_WITH_PROFILES = """
    SELECT
        s.data AS subscription_data,
        p.data AS profile_data
    FROM links s
    INNER JOIN documents p ON p.collection = ?2 AND p.key = s.child_key
    WHERE s.collection = ?1 AND s.parent_key = ?3
"""

# ?1 updates collection, ?2 profiles collection, ?3 groups collection, ?4 feed owner.
# The actor and group are referenced from the update payload, not the link keys.
# Only string references resolve; a numeric or null reference never matches a key.
SELECT_UPDATES_WITH_PROFILES_AND_GROUPS = """
    SELECT
        u.data AS update_data,
        p.data AS profile_data,
        g.data AS group_data
    FROM links u
    INNER JOIN documents p ON p.collection = ?2
        AND json_type(u.data, '$.username') = 'text'
        AND p.key = json_extract(u.data, '$.username')
    LEFT JOIN documents g ON g.collection = ?3
        AND json_type(u.data, '$.groupName') = 'text'
        AND g.key = json_extract(u.data, '$.groupName')
    WHERE u.collection = ?1 AND u.parent_key = ?4
"""
