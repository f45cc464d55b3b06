"""Adapters for directory payloads — employee profiles, teams, search results.

The backend has renamed these fields over time and different endpoints still
return different generations. Every "try these names in order" rule for the
directory lives in this module and nowhere else.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Optional

# Ordered by preference: current names first, legacy names after.
TEAM_ID_FIELDS = ("team_id", "teamId")
TEAM_OBJECT_FIELDS = ("team",)
TEAM_LIST_FIELDS = ("teams",)
TEAM_MEMBERSHIP_FIELDS = ("team_member", "teamMember")
MANAGER_ID_FIELDS = ("manager_id", "managerId")
MANAGER_OBJECT_FIELDS = ("manager",)
IDENTITY_FIELDS = ("id", "user_id", "userId")


def as_identity(value: Any) -> Optional[str]:
    """Coerce an id-ish value (str / int / UUID) to a non-empty string."""
    if value is None or isinstance(value, (bool, Mapping, list, tuple)):
        return None
    text = str(value).strip()
    return text or None


def _nested_id(value: Any) -> Optional[str]:
    """An id given either directly or as ``{"id": ...}``."""
    if isinstance(value, Mapping):
        return as_identity(value.get("id"))
    return as_identity(value)


def extract_team_id(profile: Any) -> Optional[str]:
    """Team reference from an employee profile, or ``None``."""
    if not isinstance(profile, Mapping):
        return None

    for key in TEAM_ID_FIELDS:
        team_id = as_identity(profile.get(key))
        if team_id:
            return team_id

    for key in TEAM_OBJECT_FIELDS:
        team_id = _nested_id(profile.get(key))
        if team_id:
            return team_id

    for key in TEAM_LIST_FIELDS:
        teams = profile.get(key)
        if isinstance(teams, Sequence) and not isinstance(teams, str) and teams:
            team_id = _nested_id(teams[0])
            if team_id:
                return team_id

    for key in TEAM_MEMBERSHIP_FIELDS:
        membership = profile.get(key)
        if isinstance(membership, Mapping):
            team_id = as_identity(membership.get("team_id")) or _nested_id(
                membership.get("team")
            )
            if team_id:
                return team_id

    return None


def extract_manager_id(team: Any) -> Optional[str]:
    """Manager id from a team, direct field first, nested object second."""
    if not isinstance(team, Mapping):
        return None

    for key in MANAGER_ID_FIELDS:
        manager_id = as_identity(team.get(key))
        if manager_id:
            return manager_id

    for key in MANAGER_OBJECT_FIELDS:
        manager_id = _nested_id(team.get(key))
        if manager_id:
            return manager_id

    return None


def extract_identity(item: Any) -> Optional[str]:
    """User id from a search hit or a manager entry."""
    if not isinstance(item, Mapping):
        return as_identity(item)
    for key in IDENTITY_FIELDS:
        identity = as_identity(item.get(key))
        if identity:
            return identity
    metadata = item.get("metadata")
    if isinstance(metadata, Mapping):
        for key in IDENTITY_FIELDS[1:]:
            identity = as_identity(metadata.get(key))
            if identity:
                return identity
    return None


def extract_identity_list(payload: Any, *result_keys: str) -> list[str]:
    """Ids from a bare list, ``results.<key>``, ``<key>`` or an ``items``/``data`` envelope."""
    entries: Any = payload
    if isinstance(payload, Mapping):
        entries = None
        results = payload.get("results")
        for source in (results, payload):
            if not isinstance(source, Mapping):
                continue
            for key in result_keys:
                if isinstance(source.get(key), Sequence):
                    entries = source[key]
                    break
            if entries is not None:
                break
        if entries is None:
            entries = payload.get("items", payload.get("data", []))

    if not isinstance(entries, Sequence) or isinstance(entries, str):
        return []

    ids: list[str] = []
    for entry in entries:
        identity = extract_identity(entry)
        if identity and identity not in ids:
            ids.append(identity)
    return ids
