"""Manager resolution chain: employee → team → manager.

Used only to pick notification recipients, never to gate a lifecycle
transition, so every hop degrades to "no manager" instead of raising.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Optional

import httpx
from pydantic import ValidationError

from hrconsole.directory.client import DirectoryClient
from hrconsole.directory.schemas import as_identity, extract_manager_id, extract_team_id

logger = logging.getLogger(__name__)

# Failures absorbed at each hop.
LOOKUP_ERRORS = (httpx.HTTPError, ValueError, ValidationError)


class ManagerResolver:
    """Resolve an employee's manager id through the directory."""

    def __init__(
        self,
        directory: DirectoryClient,
        *,
        hop_timeout: Optional[float] = None,
    ) -> None:
        self._directory = directory
        self._hop_timeout = hop_timeout

    async def _hop(self, label: str, subject: str, call: Awaitable[Any]) -> Any:
        try:
            return await call
        except LOOKUP_ERRORS as exc:
            logger.warning("Manager lookup: %s %s failed: %s", label, subject, exc)
            return None

    async def resolve_manager_id(self, employee_id: Any) -> Optional[str]:
        """Return the manager's id, or ``None`` if any hop yields nothing."""
        subject = as_identity(employee_id)
        if subject is None:
            return None

        profile = await self._hop(
            "employee",
            subject,
            self._directory.get_employee(subject, timeout=self._hop_timeout),
        )
        team_id = extract_team_id(profile)
        if team_id is None:
            logger.debug("Employee %s has no team reference", subject)
            return None

        team = await self._hop(
            "team",
            team_id,
            self._directory.get_team(team_id, timeout=self._hop_timeout),
        )
        manager_id = extract_manager_id(team)
        if manager_id is None:
            logger.debug("Team %s has no manager", team_id)
        return manager_id
