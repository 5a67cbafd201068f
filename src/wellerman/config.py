from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_STORE_DIR = "./data/resources"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_GITLAB_TIMEOUT = 30.0
DEFAULT_LDAP_TIMEOUT = 10
DEFAULT_GROUP_SEARCH_SCOPE = "single"
DEFAULT_GROUP_SEARCH_FILTER = "(&(objectClass=groupOfUniqueNames)(cn=%s))"
DEFAULT_GROUP_NAME_PROPERTY = "cn"
DEFAULT_GROUP_SEARCH_ATTRIBUTES = ("description", "uniqueMember")

SEARCH_SCOPES = ("base", "single", "sub")


@dataclass(frozen=True)
class GitLabSettings:
    url: str
    token: str
    timeout: float = DEFAULT_GITLAB_TIMEOUT


@dataclass(frozen=True)
class LdapSettings:
    url: str
    bind_dn: str
    bind_password: str
    group_search_base: str
    group_search_scope: str = DEFAULT_GROUP_SEARCH_SCOPE
    group_search_filter: str = DEFAULT_GROUP_SEARCH_FILTER
    group_name_property: str = DEFAULT_GROUP_NAME_PROPERTY
    group_search_attributes: tuple[str, ...] = DEFAULT_GROUP_SEARCH_ATTRIBUTES
    timeout: int = DEFAULT_LDAP_TIMEOUT

    def __post_init__(self) -> None:
        if self.group_search_scope not in SEARCH_SCOPES:
            raise ValueError(
                f"group search scope must be one of {', '.join(SEARCH_SCOPES)}, "
                f"got {self.group_search_scope!r}"
            )
        if "%s" not in self.group_search_filter:
            raise ValueError("group search filter must contain a %s placeholder")


def store_dir() -> str:
    return os.environ.get("WELLERMAN_STORE_DIR", "").strip() or DEFAULT_STORE_DIR


def log_level() -> str:
    raw = os.environ.get("WELLERMAN_LOG_LEVEL", "").strip().upper()
    if raw in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        return raw
    return DEFAULT_LOG_LEVEL


def gitlab_settings() -> GitLabSettings:
    return GitLabSettings(
        url=_require_env("GITLAB_URL").rstrip("/"),
        token=_require_env("GITLAB_TOKEN"),
        timeout=_float_env("WELLERMAN_GITLAB_TIMEOUT", DEFAULT_GITLAB_TIMEOUT),
    )


def ldap_settings() -> LdapSettings:
    return LdapSettings(
        url=_require_env("LDAP_URL"),
        bind_dn=_require_env("LDAP_BIND_DN"),
        bind_password=_require_env("LDAP_BIND_PASSWORD"),
        group_search_base=_require_env("LDAP_GROUP_SEARCH_BASE"),
        group_search_scope=(
            os.environ.get("LDAP_GROUP_SEARCH_SCOPE", "").strip() or DEFAULT_GROUP_SEARCH_SCOPE
        ),
        group_search_filter=(
            os.environ.get("LDAP_GROUP_SEARCH_FILTER", "").strip() or DEFAULT_GROUP_SEARCH_FILTER
        ),
        group_name_property=(
            os.environ.get("LDAP_GROUP_NAME_PROPERTY", "").strip() or DEFAULT_GROUP_NAME_PROPERTY
        ),
        group_search_attributes=_list_env(
            "LDAP_GROUP_SEARCH_ATTRIBUTES", DEFAULT_GROUP_SEARCH_ATTRIBUTES
        ),
        timeout=int(_float_env("WELLERMAN_LDAP_TIMEOUT", DEFAULT_LDAP_TIMEOUT)),
    )


def _require_env(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise ValueError(f"Missing {name}")
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name)
    if not raw:
        return default
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or default
