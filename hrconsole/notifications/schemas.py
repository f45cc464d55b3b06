"""Notification Pydantic schemas — push outcomes, fan-out intents, inbox items."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from hrconsole.common.constants import NotificationType
from hrconsole.directory.schemas import as_identity


class NotificationIntent(BaseModel):
    """Who to tell what about a leave transition. Never persisted."""

    recipient_ids: list[str] = Field(default_factory=list)
    message: str
    type: NotificationType = NotificationType.info
    title: str
    leave_id: Optional[str] = None
    leave_status: Optional[str] = None


class PushOutcome(BaseModel):
    """Normalized result of one push API call."""

    ok: bool
    status: int = 0
    message: Optional[str] = None
    correlation_id: Optional[str] = None
    data: Any = None
    recipient_ids: list[str] = Field(default_factory=list)
    skipped: bool = False


# ── Inbox ───────────────────────────────────────────────────────────


class NotificationItem(BaseModel):
    """One stored notification in a user's inbox."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    user_id: Optional[str] = Field(None, validation_alias=AliasChoices("user_id", "userId"))
    tenant_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("tenant_id", "tenantId"),
    )
    message: str = ""
    type: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("created_at", "createdAt"),
    )
    updated_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("updated_at", "updatedAt"),
    )

    @field_validator("id", "user_id", "tenant_id", mode="before")
    @classmethod
    def _coerce_identity(cls, value: Any) -> Any:
        if value is None:
            return None
        return as_identity(value) or value

    @property
    def is_read(self) -> bool:
        return self.status == "read"


class NotificationInbox(BaseModel):
    """A slice of the inbox plus the backend's unread badge count."""

    notifications: list[NotificationItem] = Field(default_factory=list)
    unread_count: int = 0

    @classmethod
    def from_wire(cls, payload: Any) -> "NotificationInbox":
        if isinstance(payload, list):
            return cls(notifications=[NotificationItem.model_validate(i) for i in payload])
        if not isinstance(payload, dict):
            return cls()
        items = payload.get("notifications") or payload.get("data") or []
        unread = payload.get("unread_count")
        if unread is None:
            unread = payload.get("unreadCount", 0)
        return cls(
            notifications=[
                NotificationItem.model_validate(i) for i in items if isinstance(i, dict)
            ],
            unread_count=unread or 0,
        )


class NotificationAck(BaseModel):
    """Backend acknowledgement of a read-state change."""

    message: Optional[str] = None
    data: Any = None

    @classmethod
    def from_wire(cls, payload: Any) -> "NotificationAck":
        if isinstance(payload, dict):
            return cls(message=payload.get("message"), data=payload.get("data", payload))
        return cls(data=payload)
