"""
Unit tests for analytics/roles.py — pure functions only, no DB required.
"""
import pytest

from analytics.roles import (
    Role,
    UNKNOWN_PRIORITY,
    chart_label,
    full_name,
    parse_role,
    role_label,
    role_priority,
    sort_key,
    sort_users,
)
from conftest import make_user


class TestRolePriority:
    def test_fixed_ranking(self):
        ranked = sorted(Role, key=role_priority)
        assert [r.value for r in ranked] == [
            "admin",
            "hr",
            "contact_center_ops_manager",
            "contact_center_manager",
            "team_leader",
            "agent",
        ]

    def test_string_and_enum_agree(self):
        assert role_priority("team_leader") == role_priority(Role.TEAM_LEADER) == 5

    def test_unknown_role_sorts_last(self):
        assert role_priority("janitor") == UNKNOWN_PRIORITY
        assert role_priority(None) == UNKNOWN_PRIORITY
        assert role_priority("janitor") > role_priority("agent")


class TestParseRole:
    def test_known(self):
        assert parse_role("hr") is Role.HR

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown role"):
            parse_role("supervisor")


class TestLabels:
    def test_table_labels(self):
        assert role_label("admin") == "System Admin"
        assert role_label("contact_center_ops_manager") == "CC Ops Manager"
        assert role_label("nope") == "Unknown Role"

    def test_chart_labels(self):
        assert chart_label("admin") == "Admin"
        assert chart_label("hr") == "HR Manager"
        # Unknown roles show the raw value on the chart
        assert chart_label("nope") == "nope"


class TestOrdering:
    def test_full_name_handles_missing_parts(self):
        assert full_name({"firstName": "Ann", "lastName": None}) == "Ann"
        assert full_name({}) == ""

    def test_role_before_name(self):
        agent = make_user("a", role="agent", first="Aaron")
        admin = make_user("z", role="admin", first="Zed")
        assert sort_key(admin) < sort_key(agent)

    def test_name_tiebreak_is_case_insensitive(self):
        users = [
            make_user("1", first="bob"),
            make_user("2", first="Alice"),
            make_user("3", first="carol"),
        ]
        assert [u["firstName"] for u in sort_users(users)] == ["Alice", "bob", "carol"]

    def test_sort_users_returns_new_list(self):
        users = [make_user("b"), make_user("a")]
        ordered = sort_users(users)
        assert [u["id"] for u in users] == ["b", "a"]
        assert [u["id"] for u in ordered] == ["a", "b"]
