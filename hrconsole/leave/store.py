"""Remote leave store client — every call returns canonical ``LeaveRequest`` data."""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

from hrconsole.common.http import RemoteApi, unwrap_record
from hrconsole.common.pagination import Page, normalize_page
from hrconsole.leave.schemas import LeaveRequest, TenantLeaveSummary

SYSTEM_LEAVES = "/system/leaves"
SYSTEM_TENANTS = "/system/tenants"
TENANT_LOOKUP_LIMIT = 1000


class LeaveStoreClient(RemoteApi):
    """CRUD, decision and document endpoints of the backend's leave store.

    Errors are not translated: ``httpx.HTTPStatusError`` / ``httpx.TransportError``
    reach the caller as raised.
    """

    COLLECTION = "/leaves"

    @staticmethod
    def _item(leave_id: str, suffix: str = "") -> str:
        return f"/leaves/{quote(str(leave_id), safe='')}{suffix}"

    async def _record(self, method: str, path: str, *, json: Any = None) -> LeaveRequest:
        payload = await self._request(method, path, json=json)
        return LeaveRequest.from_wire(unwrap_record(payload))

    async def _page(
        self,
        path: str,
        page: int,
        limit: int,
        filters: Optional[dict[str, Any]] = None,
    ) -> Page[LeaveRequest]:
        params = {"page": page, "limit": limit, **(filters or {})}
        payload = await self._request("GET", path, params=params)
        return normalize_page(payload, page, limit, parse=LeaveRequest.from_wire)

    # ── Create / read ───────────────────────────────────────────────

    async def create(self, body: dict[str, Any]) -> LeaveRequest:
        return await self._record("POST", self.COLLECTION, json=body)

    async def create_for_employee(
        self, employee_id: str, body: dict[str, Any],
    ) -> LeaveRequest:
        path = f"{self.COLLECTION}/on-behalf/{quote(str(employee_id), safe='')}"
        return await self._record("POST", path, json=body)

    async def get(self, leave_id: str) -> LeaveRequest:
        return await self._record("GET", self._item(leave_id))

    async def list_own(
        self, page: int, limit: int, filters: Optional[dict[str, Any]] = None,
    ) -> Page[LeaveRequest]:
        return await self._page(self.COLLECTION, page, limit, filters)

    async def list_team(
        self, page: int, limit: int, filters: Optional[dict[str, Any]] = None,
    ) -> Page[LeaveRequest]:
        return await self._page(f"{self.COLLECTION}/team", page, limit, filters)

    async def list_all(
        self, page: int, limit: int, filters: Optional[dict[str, Any]] = None,
    ) -> Page[LeaveRequest]:
        return await self._page(f"{self.COLLECTION}/all", page, limit, filters)

    # ── Cross-tenant (system) ───────────────────────────────────────

    async def list_system(
        self, page: int, limit: int, filters: Optional[dict[str, Any]] = None,
    ) -> Page[LeaveRequest]:
        return await self._page(SYSTEM_LEAVES, page, limit, filters)

    async def system_summary(
        self, filters: Optional[dict[str, Any]] = None,
    ) -> list[TenantLeaveSummary]:
        payload = await self._request("GET", f"{SYSTEM_LEAVES}/summary", params=filters)
        return TenantLeaveSummary.from_wire_list(payload)

    async def tenant_names(self) -> dict[str, str]:
        """Map of active tenant id to display name."""
        payload = await self._request(
            "GET",
            SYSTEM_TENANTS,
            params={"page": 1, "includeDeleted": "false", "limit": TENANT_LOOKUP_LIMIT},
        )
        if not isinstance(payload, list):
            return {}
        names: dict[str, str] = {}
        for tenant in payload:
            if isinstance(tenant, dict) and tenant.get("id") is not None and tenant.get("name"):
                names[str(tenant["id"])] = str(tenant["name"])
        return names

    # ── Edit / documents ────────────────────────────────────────────

    async def update(self, leave_id: str, changes: dict[str, Any]) -> LeaveRequest:
        return await self._record("PATCH", self._item(leave_id), json=changes)

    async def attach_documents(
        self, leave_id: str, document_ids: list[str],
    ) -> LeaveRequest:
        return await self._record(
            "POST", self._item(leave_id, "/documents"), json={"documents": document_ids},
        )

    async def detach_documents(
        self, leave_id: str, document_ids: list[str],
    ) -> LeaveRequest:
        return await self._record(
            "DELETE", self._item(leave_id, "/documents"), json={"document_ids": document_ids},
        )

    # ── Admin tier ──────────────────────────────────────────────────

    async def approve(self, leave_id: str, approver_id: str) -> LeaveRequest:
        return await self._record(
            "PATCH",
            self._item(leave_id, "/approve"),
            json={"status": "approved", "approvedBy": approver_id},
        )

    async def reject(self, leave_id: str, remarks: str, approver_id: str) -> LeaveRequest:
        return await self._record(
            "PATCH",
            self._item(leave_id, "/reject"),
            json={"status": "rejected", "remarks": remarks, "approvedBy": approver_id},
        )

    # ── Manager tier ────────────────────────────────────────────────

    async def set_manager_remarks(self, leave_id: str, remarks: str) -> LeaveRequest:
        return await self._record(
            "PATCH",
            self._item(leave_id, "/manager-remarks"),
            json={"managerRemarks": remarks},
        )

    async def manager_approve(
        self, leave_id: str, approver_id: str, remarks: Optional[str] = None,
    ) -> LeaveRequest:
        body: dict[str, Any] = {"status": "approved", "approvedBy": approver_id}
        if remarks:
            body["managerRemarks"] = remarks
        return await self._record(
            "PATCH", self._item(leave_id, "/manager-approve"), json=body,
        )

    async def manager_reject(
        self, leave_id: str, approver_id: str, remarks: str,
    ) -> LeaveRequest:
        return await self._record(
            "PATCH",
            self._item(leave_id, "/manager-reject"),
            json={
                "status": "rejected",
                "managerRemarks": remarks,
                "approvedBy": approver_id,
            },
        )

    # ── Owner ───────────────────────────────────────────────────────

    async def withdraw(self, leave_id: str) -> LeaveRequest:
        return await self._record(
            "PATCH", self._item(leave_id, "/withdraw"), json={"status": "withdrawn"},
        )
