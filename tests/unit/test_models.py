"""
Unit tests for payload models.

Tests cover:
- camelCase wire format
- Unknown fields preserved
- Partial update validation
"""

import pytest
from pydantic import ValidationError

from slowpost_store.models import Group, Member, Profile, Subscription, Update


class TestWireFormat:
    """Tests for to_wire and parsing."""

    def test_profile_to_wire(self):
        profile = Profile(username="ada", full_name="Ada Lovelace", expected_send_month="December")

        assert profile.to_wire() == {
            "username": "ada",
            "fullName": "Ada Lovelace",
            "bio": "",
            "expectedSendMonth": "December",
        }

    def test_parse_camel_case(self):
        group = Group.model_validate(
            {
                "groupName": "writers",
                "displayName": "Writers",
                "adminUsername": "ada",
                "isPublic": False,
            }
        )

        assert group.group_name == "writers"
        assert group.is_public is False
        assert group.description == ""

    def test_unknown_fields_preserved(self):
        data = {"username": "ada", "fullName": "Ada", "legacyField": 1}

        assert Profile.model_validate(data).to_wire()["legacyField"] == 1

    def test_member_defaults(self):
        member = Member(group_name="writers", username="ada")

        assert member.to_wire() == {
            "groupName": "writers",
            "username": "ada",
            "groupBio": "",
            "status": "pending",
            "isAdmin": False,
        }

    def test_member_status_is_checked(self):
        with pytest.raises(ValidationError):
            Member(group_name="writers", username="ada", status="banned")

    def test_required_fields(self):
        with pytest.raises(ValidationError):
            Subscription(subscriber_username="ada")
        with pytest.raises(ValidationError):
            Update(id="u1", type="new_subscriber", username="ada")


class TestWireUpdate:
    """Tests for partial updates."""

    def test_translates_names(self):
        assert Profile.wire_update({"full_name": "Ada L.", "plan_to_send": True}) == {
            "fullName": "Ada L.",
            "planToSend": True,
        }

    def test_allows_null_on_optional(self):
        assert Profile.wire_update({"photo_url": None}) == {"photoUrl": None}

    def test_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown Profile field: nickname"):
            Profile.wire_update({"nickname": "A"})

    def test_invalid_value(self):
        with pytest.raises(ValueError):
            Member.wire_update({"status": "banned"})
