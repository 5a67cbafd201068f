from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from ..config import LdapSettings
from ..errors import DirectoryError

logger = logging.getLogger(__name__)

_SCOPES = {"base": "BASE", "single": "LEVEL", "sub": "SUBTREE"}


@dataclass(frozen=True)
class DirectorySchema:
    object_class_attribute: str = "objectClass"
    group_class: str = "groupOfUniqueNames"
    description_attribute: str = "description"
    member_attribute: str = "uniqueMember"


@dataclass(frozen=True)
class DirectoryEntry:
    dn: str
    description: str
    members: tuple[str, ...]


class DirectoryClient:
    """LDAP access for group entries.

    Each public call opens its own connection, binds with the service
    account, runs one operation and unbinds.
    """

    def __init__(
        self,
        settings: LdapSettings,
        *,
        schema: DirectorySchema | None = None,
        connection_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.settings = settings
        self.schema = schema or DirectorySchema()
        self._connection_factory = connection_factory or self._default_connection

    def group_dn(self, name: str) -> str:
        rdn = _escape_rdn(name)
        return f"{self.settings.group_name_property}={rdn},{self.settings.group_search_base}"

    def search_group(self, name: str) -> DirectoryEntry | None:
        ldap3 = _load_ldap3()
        search_filter = self.settings.group_search_filter.replace(
            "%s", _escape_filter(name)
        )
        attributes = list(self.settings.group_search_attributes)
        for attribute in (self.schema.description_attribute, self.schema.member_attribute):
            if attribute not in attributes:
                attributes.append(attribute)
        with self._bound("search group", name) as conn:
            conn.search(
                search_base=self.settings.group_search_base,
                search_filter=search_filter,
                search_scope=getattr(ldap3, _SCOPES[self.settings.group_search_scope]),
                attributes=attributes,
            )
            _check_result(conn, "search group", name)
            entries = [
                item for item in (conn.response or []) if item.get("type") == "searchResEntry"
            ]
        if not entries:
            return None
        if len(entries) > 1:
            raise DirectoryError("search group", name, f"too many entries returned ({len(entries)})")
        entry = entries[0]
        attrs = entry.get("attributes") or {}
        description = _values(attrs, self.schema.description_attribute)
        return DirectoryEntry(
            dn=str(entry.get("dn") or ""),
            description=description[0] if description else "",
            members=tuple(_values(attrs, self.schema.member_attribute)),
        )

    def add_group(self, dn: str, *, description: str, members: list[str]) -> None:
        attributes: dict[str, list[str]] = {
            self.schema.object_class_attribute: [self.schema.group_class],
            self.schema.member_attribute: list(members),
        }
        if description:
            attributes[self.schema.description_attribute] = [description]
        with self._bound("add group", dn) as conn:
            conn.add(dn, attributes=attributes)
            _check_result(conn, "add group", dn)

    def modify_group(self, dn: str, *, description: str, members: list[str]) -> None:
        replace = _load_ldap3().MODIFY_REPLACE
        changes = {
            self.schema.description_attribute: [(replace, [description] if description else [])],
            self.schema.member_attribute: [(replace, list(members))],
        }
        with self._bound("modify group", dn) as conn:
            conn.modify(dn, changes)
            _check_result(conn, "modify group", dn)

    def delete_group(self, dn: str) -> None:
        with self._bound("delete group", dn) as conn:
            conn.delete(dn)
            _check_result(conn, "delete group", dn)

    @contextmanager
    def _bound(self, operation: str, target: str) -> Iterator[Any]:
        errors = _load_ldap_exceptions().LDAPException
        try:
            conn = self._connection_factory()
        except errors as exc:
            raise DirectoryError(operation, target, str(exc)) from exc
        try:
            if not conn.bind():
                raise DirectoryError(operation, target, f"bind failed: {_describe(conn)}")
            yield conn
        except errors as exc:
            raise DirectoryError(operation, target, str(exc)) from exc
        finally:
            conn.unbind()

    def _default_connection(self) -> Any:
        ldap3 = _load_ldap3()
        server = ldap3.Server(self.settings.url, connect_timeout=self.settings.timeout)
        return ldap3.Connection(
            server,
            user=self.settings.bind_dn,
            password=self.settings.bind_password,
            receive_timeout=self.settings.timeout,
        )


def _check_result(conn: Any, operation: str, target: str) -> None:
    result = conn.result or {}
    if result.get("result", 0) != 0:
        raise DirectoryError(operation, target, _describe(conn))


def _describe(conn: Any) -> str:
    result = conn.result or {}
    parts = [str(result.get("description") or "error"), f"({result.get('result')})"]
    message = str(result.get("message") or "").strip()
    if message:
        parts.append(message)
    return " ".join(parts)


def _values(attributes: Any, name: str) -> list[str]:
    value = None
    for key in attributes:
        if str(key).lower() == name.lower():
            value = attributes[key]
            break
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def _escape_filter(value: str) -> str:
    import importlib

    return importlib.import_module("ldap3.utils.conv").escape_filter_chars(value)


def _escape_rdn(value: str) -> str:
    import importlib

    return importlib.import_module("ldap3.utils.dn").escape_rdn(value)


def _load_ldap3() -> Any:
    import importlib

    return importlib.import_module("ldap3")


def _load_ldap_exceptions() -> Any:
    import importlib

    return importlib.import_module("ldap3.core.exceptions")
