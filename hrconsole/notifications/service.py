"""Notification fan-out — recipient selection, push dispatch, local UI events.

Delivery is advisory. Nothing in this module raises to its caller: lookup
failures shrink the recipient set, push failures are logged with their
correlation id, and the leave record is never affected.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import httpx
from pydantic import ValidationError

from hrconsole.common.constants import (
    LEAVE_ENTITY_TYPE,
    LeaveDecision,
    NotificationType,
)
from hrconsole.common.events import LocalEventBus, NotificationEvent
from hrconsole.directory.client import AdminSearchClient, DirectoryClient
from hrconsole.directory.resolver import ManagerResolver
from hrconsole.directory.schemas import as_identity
from hrconsole.leave.schemas import LeaveRequest
from hrconsole.notifications.client import PushNotificationClient
from hrconsole.notifications.schemas import NotificationIntent, PushOutcome

logger = logging.getLogger(__name__)

LOOKUP_ERRORS = (httpx.HTTPError, ValueError, ValidationError)


# ── Message builders ────────────────────────────────────────────────


def _period(leave: LeaveRequest) -> str:
    return f"{leave.start_date.isoformat()} to {leave.end_date.isoformat()}"


def _owner_label(leave: LeaveRequest) -> str:
    return leave.employee_name or f"Employee {leave.employee_id}"


def submitted_intent(leave: LeaveRequest) -> NotificationIntent:
    return NotificationIntent(
        type=NotificationType.action_required,
        title="New Leave Request",
        message=(
            f"{_owner_label(leave)} requested leave from {_period(leave)} "
            f"and it requires your approval."
        ),
        leave_id=leave.id,
        leave_status=leave.status.value,
    )


def submitted_on_behalf_intent(leave: LeaveRequest) -> NotificationIntent:
    return NotificationIntent(
        type=NotificationType.action_required,
        title="New Leave Request",
        message=(
            f"A leave request from {_period(leave)} was submitted on behalf of "
            f"{_owner_label(leave)} and requires your approval."
        ),
        leave_id=leave.id,
        leave_status=leave.status.value,
    )


def decision_intent(
    leave: LeaveRequest,
    decision: LeaveDecision,
    remarks: Optional[str] = None,
) -> NotificationIntent:
    if decision == LeaveDecision.approved:
        title = "Leave Request Approved"
        kind = NotificationType.approval
        message = f"Your leave request from {_period(leave)} has been approved."
    elif decision == LeaveDecision.rejected:
        title = "Leave Request Rejected"
        kind = NotificationType.alert
        message = f"Your leave request from {_period(leave)} was rejected."
    else:
        title = "Manager Remarks Added"
        kind = NotificationType.info
        message = f"Your manager commented on your leave request from {_period(leave)}."
    if remarks:
        label = "Reason" if decision == LeaveDecision.rejected else "Remarks"
        message = f"{message} {label}: {remarks}"

    return NotificationIntent(
        recipient_ids=[leave.employee_id],
        type=kind,
        title=title,
        message=message,
        leave_id=leave.id,
        leave_status=leave.status.value,
    )


def filter_recipients(
    recipient_ids: Iterable[object],
    actor_id: Optional[str] = None,
) -> list[str]:
    """Dedupe (keeping order), drop blanks and the acting user."""
    actor = as_identity(actor_id)
    recipients: list[str] = []
    for raw in recipient_ids:
        identity = as_identity(raw)
        if identity and identity != actor and identity not in recipients:
            recipients.append(identity)
    return recipients


# ── Core service ────────────────────────────────────────────────────


class NotificationFanout:
    """Best-effort notification dispatch for leave lifecycle events."""

    def __init__(
        self,
        push: PushNotificationClient,
        resolver: ManagerResolver,
        directory: DirectoryClient,
        admin_search: AdminSearchClient,
        events: LocalEventBus,
        *,
        fallback_limit: int = 5,
        admin_capability: str = "leave:approve",
        lookup_timeout: Optional[float] = None,
    ) -> None:
        self._push = push
        self._resolver = resolver
        self._directory = directory
        self._admin_search = admin_search
        self._events = events
        self._fallback_limit = fallback_limit
        self._admin_capability = admin_capability
        self._lookup_timeout = lookup_timeout

    # ── Dispatch ────────────────────────────────────────────────────

    async def notify(
        self,
        recipient_ids: Iterable[object],
        message: str,
        type: NotificationType = NotificationType.alert,
        *,
        actor_id: Optional[str] = None,
        title: str = "Notification",
        leave_id: Optional[str] = None,
        leave_status: Optional[str] = None,
    ) -> PushOutcome:
        """Push *message* to the recipients and raise a local UI event on success."""
        try:
            recipients = filter_recipients(recipient_ids, actor_id)
            if not recipients:
                logger.debug("No recipients for %r; skipping push", title)
                return PushOutcome(ok=True, skipped=True)

            outcome = await self._push.send(recipients, message, type)
            if not outcome.ok:
                logger.warning(
                    "Push notification %r failed (status=%s, correlation_id=%s): %s",
                    title,
                    outcome.status,
                    outcome.correlation_id or "n/a",
                    outcome.message or "no message",
                )
                return outcome

            logger.info(
                "Sent %r to %d recipient(s) (correlation_id=%s)",
                title,
                len(recipients),
                outcome.correlation_id or "n/a",
            )
            self._events.publish(
                NotificationEvent(
                    title=title,
                    message=outcome.message or message,
                    type=type,
                    correlation_id=outcome.correlation_id,
                    data={
                        "entity_type": LEAVE_ENTITY_TYPE,
                        "entity_id": leave_id,
                        "status": leave_status,
                        "recipient_ids": recipients,
                    },
                )
            )
            return outcome
        except Exception:
            logger.exception("Notification dispatch for %r failed", title)
            return PushOutcome(ok=False, message="dispatch failed")

    async def dispatch(
        self,
        intent: NotificationIntent,
        actor_id: Optional[str] = None,
    ) -> PushOutcome:
        return await self.notify(
            intent.recipient_ids,
            intent.message,
            intent.type,
            actor_id=actor_id,
            title=intent.title,
            leave_id=intent.leave_id,
            leave_status=intent.leave_status,
        )

    # ── Fallback recipient sources ──────────────────────────────────

    async def _admin_recipients(self) -> list[str]:
        try:
            return await self._admin_search.search_users(
                self._admin_capability,
                self._fallback_limit,
                timeout=self._lookup_timeout,
            )
        except LOOKUP_ERRORS as exc:
            logger.warning("Admin search for notification recipients failed: %s", exc)
            return []

    async def _available_managers(self) -> list[str]:
        try:
            managers = await self._directory.get_available_managers(
                timeout=self._lookup_timeout,
            )
        except LOOKUP_ERRORS as exc:
            logger.warning("Available-managers lookup failed: %s", exc)
            return []
        return managers[: self._fallback_limit]

    async def _manager_of(self, employee_id: str, actor_id: Optional[str]) -> list[str]:
        manager_id = await self._resolver.resolve_manager_id(employee_id)
        return filter_recipients([manager_id], actor_id) if manager_id else []

    # ── Lifecycle events ────────────────────────────────────────────

    async def leave_submitted(
        self,
        leave: LeaveRequest,
        actor_id: Optional[str] = None,
    ) -> PushOutcome:
        """Tell the submitter's manager, or up to N admins when there is none."""
        try:
            recipients = await self._manager_of(leave.employee_id, actor_id)
            if not recipients:
                recipients = await self._admin_recipients()
            intent = submitted_intent(leave)
            intent.recipient_ids = recipients
        except Exception:
            logger.exception("Recipient selection for leave %s failed", leave.id)
            return PushOutcome(ok=False, message="recipient selection failed")
        return await self.dispatch(intent, actor_id)

    async def leave_submitted_on_behalf(
        self,
        leave: LeaveRequest,
        actor_id: Optional[str] = None,
    ) -> PushOutcome:
        """Tell the target employee's manager, or up to N available managers."""
        try:
            recipients = await self._manager_of(leave.employee_id, actor_id)
            if not recipients:
                recipients = await self._available_managers()
            intent = submitted_on_behalf_intent(leave)
            intent.recipient_ids = recipients
        except Exception:
            logger.exception("Recipient selection for leave %s failed", leave.id)
            return PushOutcome(ok=False, message="recipient selection failed")
        return await self.dispatch(intent, actor_id)

    async def leave_decided(
        self,
        leave: LeaveRequest,
        decision: LeaveDecision,
        actor_id: Optional[str] = None,
        *,
        remarks: Optional[str] = None,
    ) -> PushOutcome:
        """Tell the owner about a decision or manager remark. No fallback."""
        return await self.dispatch(decision_intent(leave, decision, remarks), actor_id)
