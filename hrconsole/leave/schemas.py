"""Leave Pydantic v2 schemas — canonical record, wire adapter, request bodies.

Naming conventions:
  - *Create / *Update / *Request  → request bodies (write)
  - LeaveRequest                   → canonical record returned by every operation
  - *Brief                         → compact embedded representations

``LeaveRequest`` is the single adapter for the backend's leave shape: every
alternative field name the backend has used is declared here with
``AliasChoices`` and nowhere else.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from hrconsole.common.constants import LeaveStatus
from hrconsole.directory.schemas import as_identity


# ═════════════════════════════════════════════════════════════════════
# Embedded / shared
# ═════════════════════════════════════════════════════════════════════


class EmployeeBrief(BaseModel):
    """Denormalized owner snapshot for display."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        data["id"] = as_identity(data.get("id"))
        if not data.get("name"):
            parts = [
                data.get("first_name") or data.get("firstName"),
                data.get("last_name") or data.get("lastName"),
            ]
            full = " ".join(p.strip() for p in parts if isinstance(p, str) and p.strip())
            data["name"] = full or None
        return data


class Attachment(BaseModel):
    """Opaque document reference stored with a leave request."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "document_id", "documentId"))
    name: Optional[str] = Field(
        None, validation_alias=AliasChoices("name", "file_name", "fileName", "filename"),
    )
    url: Optional[str] = Field(None, validation_alias=AliasChoices("url", "file_url", "fileUrl"))

    @model_validator(mode="before")
    @classmethod
    def _bare_reference(cls, data: Any) -> Any:
        if isinstance(data, (str, int)):
            return {"id": str(data)}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return as_identity(value) or value


# ═════════════════════════════════════════════════════════════════════
# Leave Request — canonical record
# ═════════════════════════════════════════════════════════════════════


class LeaveRequest(BaseModel):
    """Canonical leave request, whatever wire shape the backend returned."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    employee_id: str = Field(
        validation_alias=AliasChoices("employee_id", "employeeId", "user_id", "userId"),
    )
    employee: Optional[EmployeeBrief] = Field(
        None, validation_alias=AliasChoices("employee", "user"),
    )
    leave_type_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("leave_type_id", "leaveTypeId", "type"),
    )
    start_date: date = Field(
        validation_alias=AliasChoices("start_date", "startDate", "from_date", "fromDate"),
    )
    end_date: date = Field(
        validation_alias=AliasChoices("end_date", "endDate", "to_date", "toDate"),
    )
    total_days: Optional[Decimal] = Field(
        None, validation_alias=AliasChoices("total_days", "totalDays", "number_of_days"),
    )
    reason: Optional[str] = None
    remarks: Optional[str] = None
    manager_remarks: Optional[str] = Field(
        None, validation_alias=AliasChoices("manager_remarks", "managerRemarks"),
    )
    status: LeaveStatus = LeaveStatus.pending
    approved_by: Optional[str] = Field(
        None, validation_alias=AliasChoices("approved_by", "approvedBy"),
    )
    approved_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("approved_at", "approvedAt"),
    )
    attachments: list[Attachment] = Field(
        default_factory=list, validation_alias=AliasChoices("attachments", "documents"),
    )
    created_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("created_at", "createdAt"),
    )
    updated_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("updated_at", "updatedAt"),
    )
    tenant_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("tenant_id", "tenantId"),
    )
    tenant_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("tenant_name", "tenantName"),
    )

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        # Owner id may only be present on the embedded user object.
        owner = data.get("employee") or data.get("user")
        has_owner_id = any(
            data.get(k) is not None
            for k in ("employee_id", "employeeId", "user_id", "userId")
        )
        if not has_owner_id and isinstance(owner, dict) and owner.get("id") is not None:
            data["employee_id"] = owner["id"]

        # Leave type may arrive as an embedded object.
        leave_type = data.get("leaveType") or data.get("leave_type")
        if isinstance(leave_type, dict) and leave_type.get("id") is not None:
            data.setdefault("leave_type_id", leave_type["id"])
        if isinstance(data.get("type"), dict):
            data["type"] = data["type"].get("id")

        # Approver may arrive as an embedded object.
        for key in ("approved_by", "approvedBy"):
            if isinstance(data.get(key), dict):
                data[key] = data[key].get("id")

        if isinstance(data.get("status"), str):
            data["status"] = data["status"].strip().lower()

        # Empty attachment lists come back as null from some endpoints.
        for key in ("attachments", "documents"):
            if key in data and data[key] is None:
                data[key] = []
        return data

    @field_validator(
        "id", "employee_id", "leave_type_id", "approved_by", "tenant_id", mode="before",
    )
    @classmethod
    def _coerce_identity(cls, value: Any) -> Any:
        if value is None:
            return None
        return as_identity(value) or value

    @classmethod
    def from_wire(cls, payload: Any) -> "LeaveRequest":
        return cls.model_validate(payload)

    @property
    def is_pending(self) -> bool:
        return not self.status.is_terminal

    @property
    def employee_name(self) -> Optional[str]:
        return self.employee.name if self.employee else None


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Create / Update
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for submitting a leave request."""

    leave_type_id: str = Field(..., min_length=1)
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    reason: str = Field(..., max_length=1000, description="Reason for leave")
    attachments: list[str] = Field(
        default_factory=list, description="Document references to attach",
    )

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reason cannot be blank.")
        return v.strip()

    @model_validator(mode="after")
    def validate_dates(self) -> "LeaveRequestCreate":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date.")
        return self

    def to_wire(self) -> dict[str, Any]:
        return {
            "leave_type_id": self.leave_type_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "reason": self.reason,
            "documents": list(self.attachments),
        }


class LeaveRequestUpdate(BaseModel):
    """Partial edit of a pending request. Only supplied fields are sent."""

    leave_type_id: Optional[str] = Field(None, min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = Field(None, max_length=1000)
    add_attachments: list[str] = Field(
        default_factory=list, description="New document references to attach",
    )
    remove_attachment_ids: list[str] = Field(
        default_factory=list, description="Stored attachments to detach",
    )

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("reason cannot be blank.")
        return v.strip() if v is not None else v

    @model_validator(mode="after")
    def validate_dates(self) -> "LeaveRequestUpdate":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date.")
        return self

    def field_changes(self) -> dict[str, Any]:
        """Explicitly supplied classification / interval / reason fields."""
        changes = self.model_dump(
            include={"leave_type_id", "start_date", "end_date", "reason"},
            exclude_unset=True,
            exclude_none=True,
            mode="json",
        )
        return changes

    @property
    def is_empty(self) -> bool:
        return not (
            self.field_changes() or self.add_attachments or self.remove_attachment_ids
        )


# ═════════════════════════════════════════════════════════════════════
# Decisions
# ═════════════════════════════════════════════════════════════════════


class LeaveApproveRequest(BaseModel):
    """Payload for approving a leave request (remarks optional)."""

    remarks: Optional[str] = Field(None, max_length=1000)


class LeaveRejectRequest(BaseModel):
    """Payload for rejecting a leave request. Blank reasons are refused by the service."""

    reason: str = Field("", max_length=1000)


class ManagerRemarksRequest(BaseModel):
    """Payload for a manager comment that does not decide the request."""

    remarks: str = Field("", max_length=1000)


class LeaveListFilters(BaseModel):
    """Query filters for listing leave requests."""

    status: Optional[LeaveStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    employee_id: Optional[str] = None

    def as_query(self) -> dict[str, Any]:
        return {
            "status": self.status.value if self.status else None,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "employeeId": self.employee_id,
        }


class SystemLeaveFilters(LeaveListFilters):
    """Cross-tenant listing filters (system administrators)."""

    tenant_id: Optional[str] = None

    def as_query(self) -> dict[str, Any]:
        return {**super().as_query(), "tenantId": self.tenant_id}


# ═════════════════════════════════════════════════════════════════════
# Cross-tenant summary
# ═════════════════════════════════════════════════════════════════════


class TenantLeaveSummary(BaseModel):
    """Per-tenant leave counts. Requests without a tenant roll up under ``system``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tenant_id: str = Field(
        "system", validation_alias=AliasChoices("tenant_id", "tenantId"),
    )
    tenant_name: str = Field(
        "System / Unassigned", validation_alias=AliasChoices("tenant_name", "tenantName"),
    )
    total_leaves: int = Field(0, validation_alias=AliasChoices("total_leaves", "totalLeaves"))
    approved_count: int = Field(
        0, validation_alias=AliasChoices("approved_count", "approvedCount"),
    )
    rejected_count: int = Field(
        0, validation_alias=AliasChoices("rejected_count", "rejectedCount"),
    )
    pending_count: int = Field(
        0, validation_alias=AliasChoices("pending_count", "pendingCount"),
    )
    cancelled_count: int = Field(
        0, validation_alias=AliasChoices("cancelled_count", "cancelledCount"),
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_empty(cls, data: Any) -> Any:
        # Missing, null and blank values fall back to the field defaults.
        if not isinstance(data, dict):
            return data
        return {k: v for k, v in data.items() if v not in (None, "")}

    @field_validator("tenant_id", mode="before")
    @classmethod
    def _coerce_tenant(cls, value: Any) -> Any:
        return as_identity(value) or value

    @classmethod
    def from_wire_list(cls, payload: Any) -> list["TenantLeaveSummary"]:
        if not isinstance(payload, list):
            return []
        return [cls.model_validate(item) for item in payload if isinstance(item, dict)]
