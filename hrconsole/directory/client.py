"""Directory and admin-search clients for the remote HR backend."""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

from hrconsole.common.http import RemoteApi, unwrap_record
from hrconsole.directory.schemas import extract_identity_list


class DirectoryClient(RemoteApi):
    """Employee profiles and teams."""

    EMPLOYEE_PATH = "/employees/{employee_id}"
    TEAM_PATH = "/teams/{team_id}"
    AVAILABLE_MANAGERS_PATH = "/teams/available-managers"

    async def get_employee(
        self, employee_id: str, *, timeout: Optional[float] = None,
    ) -> Any:
        payload = await self._request(
            "GET",
            self.EMPLOYEE_PATH.format(employee_id=quote(employee_id, safe="")),
            timeout=timeout,
        )
        return unwrap_record(payload)

    async def get_team(
        self, team_id: str, *, timeout: Optional[float] = None,
    ) -> Any:
        payload = await self._request(
            "GET",
            self.TEAM_PATH.format(team_id=quote(team_id, safe="")),
            timeout=timeout,
        )
        return unwrap_record(payload)

    async def get_available_managers(
        self, *, timeout: Optional[float] = None,
    ) -> list[str]:
        """Ids of users holding the manager role, in backend order."""
        payload = await self._request(
            "GET", self.AVAILABLE_MANAGERS_PATH, timeout=timeout,
        )
        return extract_identity_list(payload, "managers", "users")


class AdminSearchClient(RemoteApi):
    """Capability-filtered user search used to find administrative recipients."""

    SEARCH_PATH = "/search/admin"

    async def search_users(
        self,
        capability: str,
        limit: int,
        *,
        timeout: Optional[float] = None,
    ) -> list[str]:
        payload = await self._request(
            "GET",
            self.SEARCH_PATH,
            params={"module": "users", "capability": capability, "limit": limit},
            timeout=timeout,
        )
        return extract_identity_list(payload, "users", "employees")[:limit]
