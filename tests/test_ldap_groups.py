from __future__ import annotations

import pytest

from wellerman.errors import GroupNotFound
from wellerman.remote.ldap_groups import (
    delete_group,
    members_differ,
    normalize_members,
    reconcile_group,
)


def test_normalize_members_is_case_and_order_insensitive():
    assert normalize_members(["bob", "Alice", "BOB"]) == ["alice", "bob"]
    assert not members_differ(["Alice", "bob"], ["BOB", "alice"])
    assert members_differ(["alice"], ["alice", "carol"])


def test_reconcile_group_creates_missing_group(directory):
    result = reconcile_group(
        directory, name="core", comment="core", subjects=["alice", "bob"]
    )

    assert result.created and result.changed
    assert result.dn == "cn=core,ou=groups,dc=example,dc=org"
    assert directory.mutations() == [("add_group", result.dn)]
    entry = directory.entries[result.dn]
    assert entry.description == "core"
    assert entry.members == ("alice", "bob")


def test_reconcile_group_member_order_and_case_do_not_matter(directory):
    directory.seed("core", description="core", members=["Alice", "bob"])

    result = reconcile_group(directory, name="core", comment="core", subjects=["BOB", "alice"])

    assert not result.changed
    assert directory.mutations() == []


def test_reconcile_group_replaces_on_description_change(directory):
    directory.seed("core", description="old", members=["alice"])

    result = reconcile_group(directory, name="core", comment="new", subjects=["alice"])

    assert result.updated
    assert directory.mutations() == [("modify_group", result.dn)]
    assert directory.entries[result.dn].description == "new"


def test_reconcile_group_replaces_on_member_change(directory):
    directory.seed("core", description="core", members=["alice"])

    result = reconcile_group(directory, name="core", comment="core", subjects=["alice", "carol"])

    assert result.updated
    assert directory.entries[result.dn].members == ("alice", "carol")


def test_reconcile_group_twice_is_a_noop(directory):
    reconcile_group(directory, name="core", comment="core", subjects=["alice"])
    before = len(directory.mutations())

    result = reconcile_group(directory, name="core", comment="core", subjects=["alice"])

    assert not result.changed
    assert len(directory.mutations()) == before


def test_delete_group_missing_is_distinguishable(directory):
    with pytest.raises(GroupNotFound):
        delete_group(directory, "core")
    assert directory.mutations() == []


def test_delete_group_removes_entry(directory):
    directory.seed("core", description="core", members=["alice"])

    dn = delete_group(directory, "core")

    assert dn == "cn=core,ou=groups,dc=example,dc=org"
    assert directory.entries == {}
