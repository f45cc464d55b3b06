"""Leave lifecycle service — submission, edits, admin/manager decisions, withdrawal.

Business logic:
  - Local pre-flight validation (blank remarks) before any remote call
  - Status preconditions checked against the current remote record; the
    service never asks the backend to move a request out of a terminal state
  - Remote failures propagate unchanged; there is no retry and no masking
  - Notifications are scheduled as detached background tasks after the
    remote store has answered, so they can neither delay nor fail the call

State machine:
    pending ──admin/manager approve──▶ approved
    pending ──admin/manager reject───▶ rejected
    pending ──owner withdraw─────────▶ withdrawn
    (cancelled is set by the backend only)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Optional

import httpx
from pydantic import ValidationError

from hrconsole.auth.schemas import Actor
from hrconsole.common.constants import LeaveDecision
from hrconsole.common.exceptions import (
    ForbiddenException,
    LeaveStateException,
    MissingInputException,
    ValidationException,
)
from hrconsole.common.pagination import Page
from hrconsole.common.tasks import BackgroundTaskRunner
from hrconsole.leave.schemas import (
    LeaveListFilters,
    LeaveRequest,
    LeaveRequestCreate,
    LeaveRequestUpdate,
    SystemLeaveFilters,
    TenantLeaveSummary,
)
from hrconsole.leave.store import LeaveStoreClient
from hrconsole.notifications.service import NotificationFanout

logger = logging.getLogger(__name__)

REQUEST = "leave:request"
SUBMIT_ON_BEHALF = "leave:submit_on_behalf"
ADMIN_DECIDE = "leave:approve"
MANAGER_REVIEW = "leave:manager_review"
READ_TEAM = "leave:read_team"
READ_ALL = "leave:read_all"
READ_SYSTEM = "leave:read_system"

UNKNOWN_TENANT = "Unknown"
LOOKUP_ERRORS = (httpx.HTTPError, ValueError, ValidationError)


def _required_text(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise MissingInputException(field)
    return text


def _optional_text(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    return text or None


# ═════════════════════════════════════════════════════════════════════
# LeaveLifecycleService
# ═════════════════════════════════════════════════════════════════════


class LeaveLifecycleService:
    """Drive leave requests through the remote store and fan out notifications."""

    def __init__(
        self,
        store: LeaveStoreClient,
        notifier: NotificationFanout,
        tasks: BackgroundTaskRunner,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._tasks = tasks

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    def _schedule(self, coro: Coroutine[Any, Any, Any], name: str) -> None:
        """Start *coro* detached. Nothing here can fail the lifecycle call."""
        try:
            self._tasks.spawn(coro, name=name)
        except Exception:
            coro.close()
            logger.exception("Could not schedule background task %s", name)

    async def _load_pending(self, leave_id: str, action: str) -> LeaveRequest:
        leave = await self._store.get(leave_id)
        if not leave.is_pending:
            raise LeaveStateException(leave.id, leave.status.value, action)
        return leave

    @staticmethod
    def _require(actor: Actor, capability: str, detail: str) -> None:
        if not actor.can(capability):
            raise ForbiddenException(detail)

    async def _load_for_review(self, actor: Actor, leave_id: str, action: str) -> LeaveRequest:
        """Manager-tier precondition: reviewer capability, not the owner, still pending."""
        self._require(
            actor, MANAGER_REVIEW, "Only managers can review leave requests.",
        )
        leave = await self._store.get(leave_id)
        if leave.employee_id == actor.id:
            raise ForbiddenException("You cannot review your own leave request.")
        if not leave.is_pending:
            raise LeaveStateException(leave.id, leave.status.value, action)
        return leave

    # ─────────────────────────────────────────────────────────────────
    # Read
    # ─────────────────────────────────────────────────────────────────

    async def get(self, leave_id: str) -> LeaveRequest:
        return await self._store.get(leave_id)

    async def list_my_leaves(
        self,
        page: int = 1,
        limit: int = 10,
        filters: Optional[LeaveListFilters] = None,
    ) -> Page[LeaveRequest]:
        query = filters.as_query() if filters else None
        return await self._store.list_own(page, limit, query)

    async def list_team_leaves(
        self,
        actor: Actor,
        page: int = 1,
        limit: int = 10,
        filters: Optional[LeaveListFilters] = None,
    ) -> Page[LeaveRequest]:
        self._require(actor, READ_TEAM, "Only managers can view team leave requests.")
        query = filters.as_query() if filters else None
        return await self._store.list_team(page, limit, query)

    async def list_all_leaves(
        self,
        actor: Actor,
        page: int = 1,
        limit: int = 10,
        filters: Optional[LeaveListFilters] = None,
    ) -> Page[LeaveRequest]:
        self._require(actor, READ_ALL, "Only HR admins can view all leave requests.")
        query = filters.as_query() if filters else None
        return await self._store.list_all(page, limit, query)

    async def _tenant_names(self) -> dict[str, str]:
        try:
            return await self._store.tenant_names()
        except LOOKUP_ERRORS as exc:
            logger.warning("Tenant lookup for system leave listing failed: %s", exc)
            return {}

    async def list_system_leaves(
        self,
        actor: Actor,
        page: int = 1,
        limit: int = 10,
        filters: Optional[SystemLeaveFilters] = None,
    ) -> Page[LeaveRequest]:
        """Leave requests across every tenant, labelled with the tenant's name."""
        self._require(
            actor, READ_SYSTEM, "Only system administrators can view leave across tenants.",
        )
        query = filters.as_query() if filters else None
        result, names = await asyncio.gather(
            self._store.list_system(page, limit, query),
            self._tenant_names(),
        )
        for leave in result.items:
            if not leave.tenant_name:
                leave.tenant_name = names.get(leave.tenant_id or "", UNKNOWN_TENANT)
        return result

    async def system_leave_summary(
        self,
        actor: Actor,
        filters: Optional[SystemLeaveFilters] = None,
    ) -> list[TenantLeaveSummary]:
        """Per-tenant counts. A failed lookup yields an empty summary."""
        self._require(
            actor, READ_SYSTEM, "Only system administrators can view leave across tenants.",
        )
        query = filters.as_query() if filters else None
        try:
            return await self._store.system_summary(query)
        except LOOKUP_ERRORS as exc:
            logger.warning("System leave summary unavailable: %s", exc)
            return []

    # ─────────────────────────────────────────────────────────────────
    # Submit
    # ─────────────────────────────────────────────────────────────────

    async def submit(self, actor: Actor, data: LeaveRequestCreate) -> LeaveRequest:
        """Create a pending request for the actor; notify their manager (or admins)."""
        self._require(actor, REQUEST, "You are not allowed to request leave.")
        leave = await self._store.create(data.to_wire())
        logger.info("Leave %s submitted by %s", leave.id, actor.id)
        self._schedule(
            self._notifier.leave_submitted(leave, actor.id),
            name=f"notify-leave-submitted-{leave.id}",
        )
        return leave

    async def submit_for_employee(
        self,
        actor: Actor,
        employee_id: str,
        data: LeaveRequestCreate,
    ) -> LeaveRequest:
        """Create a pending request owned by *employee_id* (proxy submission)."""
        target = _required_text(employee_id, "employee_id")
        self._require(
            actor,
            SUBMIT_ON_BEHALF,
            "You are not allowed to submit leave on behalf of other employees.",
        )
        leave = await self._store.create_for_employee(target, data.to_wire())
        logger.info("Leave %s submitted by %s on behalf of %s", leave.id, actor.id, target)
        self._schedule(
            self._notifier.leave_submitted_on_behalf(leave, actor.id),
            name=f"notify-leave-on-behalf-{leave.id}",
        )
        return leave

    # ─────────────────────────────────────────────────────────────────
    # Edit
    # ─────────────────────────────────────────────────────────────────

    async def edit(
        self,
        actor: Actor,
        leave_id: str,
        changes: LeaveRequestUpdate,
    ) -> LeaveRequest:
        """Patch supplied fields, attach new documents, detach marked ones.

        Allowed only while pending, for the owner or a proxy-capable user.
        """
        leave = await self._load_pending(leave_id, "edit")
        if leave.employee_id != actor.id and not actor.can(SUBMIT_ON_BEHALF):
            raise ForbiddenException("You can only edit your own leave requests.")

        if changes.is_empty:
            return leave

        start = changes.start_date or leave.start_date
        end = changes.end_date or leave.end_date
        if start > end:
            raise ValidationException(
                {"end_date": ["end_date must be on or after start_date."]}
            )

        stored_ids = {a.id for a in leave.attachments}
        to_detach = [i for i in dict.fromkeys(changes.remove_attachment_ids) if i in stored_ids]
        to_attach = [i for i in dict.fromkeys(changes.add_attachments) if i]

        fields = changes.field_changes()
        if fields:
            leave = await self._store.update(leave.id, fields)
        if to_attach:
            leave = await self._store.attach_documents(leave.id, to_attach)
        if to_detach:
            leave = await self._store.detach_documents(leave.id, to_detach)
        return leave

    # ─────────────────────────────────────────────────────────────────
    # Admin tier
    # ─────────────────────────────────────────────────────────────────

    async def admin_approve(self, actor: Actor, leave_id: str) -> LeaveRequest:
        self._require(actor, ADMIN_DECIDE, "Only HR admins can approve at the admin tier.")
        await self._load_pending(leave_id, "approve")
        leave = await self._store.approve(leave_id, actor.id)
        self._schedule(
            self._notifier.leave_decided(leave, LeaveDecision.approved, actor.id),
            name=f"notify-leave-approved-{leave.id}",
        )
        return leave

    async def admin_reject(
        self, actor: Actor, leave_id: str, reason: Optional[str],
    ) -> LeaveRequest:
        """Reject with a required reason, stored as the admin ``remarks``."""
        text = _required_text(reason, "reason")
        self._require(actor, ADMIN_DECIDE, "Only HR admins can reject at the admin tier.")
        await self._load_pending(leave_id, "reject")
        leave = await self._store.reject(leave_id, text, actor.id)
        self._schedule(
            self._notifier.leave_decided(
                leave, LeaveDecision.rejected, actor.id, remarks=text,
            ),
            name=f"notify-leave-rejected-{leave.id}",
        )
        return leave

    # ─────────────────────────────────────────────────────────────────
    # Manager tier
    # ─────────────────────────────────────────────────────────────────

    async def add_manager_remarks(
        self, actor: Actor, leave_id: str, remarks: Optional[str],
    ) -> LeaveRequest:
        """Comment without deciding. Status stays pending."""
        text = _required_text(remarks, "remarks")
        await self._load_for_review(actor, leave_id, "comment on")
        leave = await self._store.set_manager_remarks(leave_id, text)
        self._schedule(
            self._notifier.leave_decided(
                leave, LeaveDecision.manager_remarks, actor.id, remarks=text,
            ),
            name=f"notify-leave-remarks-{leave.id}",
        )
        return leave

    async def manager_approve(
        self, actor: Actor, leave_id: str, remarks: Optional[str] = None,
    ) -> LeaveRequest:
        text = _optional_text(remarks)
        await self._load_for_review(actor, leave_id, "approve")
        leave = await self._store.manager_approve(leave_id, actor.id, text)
        self._schedule(
            self._notifier.leave_decided(
                leave, LeaveDecision.approved, actor.id, remarks=text,
            ),
            name=f"notify-leave-approved-{leave.id}",
        )
        return leave

    async def manager_reject(
        self, actor: Actor, leave_id: str, remarks: Optional[str],
    ) -> LeaveRequest:
        """Reject with required remarks, stored as ``manager_remarks`` only."""
        text = _required_text(remarks, "remarks")
        await self._load_for_review(actor, leave_id, "reject")
        leave = await self._store.manager_reject(leave_id, actor.id, text)
        self._schedule(
            self._notifier.leave_decided(
                leave, LeaveDecision.rejected, actor.id, remarks=text,
            ),
            name=f"notify-leave-rejected-{leave.id}",
        )
        return leave

    # ─────────────────────────────────────────────────────────────────
    # Owner
    # ─────────────────────────────────────────────────────────────────

    async def withdraw(self, actor: Actor, leave_id: str) -> LeaveRequest:
        """Withdraw own pending request. No notification."""
        leave = await self._store.get(leave_id)
        if leave.employee_id != actor.id:
            raise ForbiddenException("You can only withdraw your own leave requests.")
        if not leave.is_pending:
            raise LeaveStateException(leave.id, leave.status.value, "withdraw")
        leave = await self._store.withdraw(leave.id)
        logger.info("Leave %s withdrawn by %s", leave.id, actor.id)
        return leave
