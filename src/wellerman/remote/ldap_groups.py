from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from ..errors import GroupNotFound

logger = logging.getLogger(__name__)


@dataclass
class GroupSyncResult:
    dn: str
    created: bool = False
    updated: bool = False

    @property
    def changed(self) -> bool:
        return self.created or self.updated


def normalize_members(members: Iterable[str]) -> list[str]:
    """Lower-cased, de-duplicated and sorted; used for comparison only."""
    return sorted({member.strip().lower() for member in members if member.strip()})


def members_differ(current: Iterable[str], desired: Iterable[str]) -> bool:
    return normalize_members(current) != normalize_members(desired)


def reconcile_group(
    directory: Any,
    *,
    name: str,
    comment: str,
    subjects: list[str],
) -> GroupSyncResult:
    dn = directory.group_dn(name)
    existing = directory.search_group(name)
    if existing is None:
        directory.add_group(dn, description=comment, members=subjects)
        logger.info("Created directory group %s", dn)
        return GroupSyncResult(dn=dn, created=True)

    if existing.description == comment and not members_differ(existing.members, subjects):
        return GroupSyncResult(dn=dn)

    directory.modify_group(existing.dn or dn, description=comment, members=subjects)
    logger.info("Updated directory group %s", dn)
    return GroupSyncResult(dn=dn, updated=True)


def delete_group(directory: Any, name: str) -> str:
    existing = directory.search_group(name)
    if existing is None:
        raise GroupNotFound(name)
    dn = existing.dn or directory.group_dn(name)
    directory.delete_group(dn)
    logger.info("Deleted directory group %s", dn)
    return dn
