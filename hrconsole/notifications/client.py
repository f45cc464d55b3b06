"""Push notification API client and the user's notification inbox.

``send`` never raises: every failure is folded into a ``PushOutcome`` with
``ok=False`` so the fan-out can log it. The inbox calls behave like the other
backend clients and raise ``httpx`` errors to the caller.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx

from hrconsole.common.constants import NotificationType
from hrconsole.common.http import RemoteApi
from hrconsole.notifications.schemas import (
    NotificationAck,
    NotificationInbox,
    PushOutcome,
)

CORRELATION_HEADERS = ("x-correlation-id", "x-request-id")


def _correlation_id(response: httpx.Response, body: Any) -> Optional[str]:
    for header in CORRELATION_HEADERS:
        value = response.headers.get(header)
        if value:
            return value
    if isinstance(body, dict):
        value = body.get("correlationId") or body.get("correlation_id")
        if value:
            return str(value)
    return None


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class PushNotificationClient(RemoteApi):
    """``POST /notifications/send`` with ``{user_ids, message, type}``, plus inbox reads."""

    BASE_PATH = "/notifications"
    SEND_PATH = "/notifications/send"
    READ_ALL_PATH = "/notifications/read-all"

    async def send(
        self,
        recipient_ids: list[str],
        message: str,
        notification_type: NotificationType = NotificationType.alert,
    ) -> PushOutcome:
        payload = {
            "user_ids": list(recipient_ids),
            "message": message,
            "type": notification_type.value,
        }
        try:
            response = await self._send("POST", self.SEND_PATH, json=payload)
        except httpx.HTTPError as exc:
            return PushOutcome(
                ok=False,
                message=str(exc) or type(exc).__name__,
                recipient_ids=list(recipient_ids),
            )

        body = _decode(response)
        ok = response.is_success
        message_text: Optional[str] = None
        if isinstance(body, dict):
            message_text = body.get("message") or (None if ok else body.get("error"))
        data = body.get("data", body) if isinstance(body, dict) else body

        return PushOutcome(
            ok=ok,
            status=response.status_code,
            message=message_text,
            correlation_id=_correlation_id(response, body),
            data=data,
            recipient_ids=list(recipient_ids),
        )

    # ── Inbox ───────────────────────────────────────────────────────

    async def list_notifications(
        self,
        *,
        status: Optional[str] = None,
        notification_type: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> NotificationInbox:
        payload = await self._request(
            "GET",
            self.BASE_PATH,
            params={"status": status, "type": notification_type, "limit": limit},
        )
        return NotificationInbox.from_wire(payload)

    async def mark_read(self, notification_id: str) -> NotificationAck:
        path = f"{self.BASE_PATH}/{quote(str(notification_id), safe='')}/read"
        return NotificationAck.from_wire(await self._request("PATCH", path))

    async def mark_all_read(self) -> NotificationAck:
        return NotificationAck.from_wire(await self._request("PATCH", self.READ_ALL_PATH))
