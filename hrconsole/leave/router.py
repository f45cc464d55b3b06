"""Leave router — submit, edit, admin/manager decisions, withdraw, listings.

All endpoints require authentication. Capability checks live in the service;
the HR backend stays the final authority for every remote write.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from hrconsole.auth.dependencies import get_current_actor
from hrconsole.auth.schemas import Actor
from hrconsole.common.constants import LeaveStatus
from hrconsole.common.pagination import Page, PaginationParams
from hrconsole.common.rate_limit import DECISION_LIMIT, limiter
from hrconsole.dependencies import get_leave_service
from hrconsole.leave.schemas import (
    LeaveApproveRequest,
    LeaveListFilters,
    LeaveRejectRequest,
    LeaveRequest,
    LeaveRequestCreate,
    LeaveRequestUpdate,
    ManagerRemarksRequest,
    SystemLeaveFilters,
    TenantLeaveSummary,
)
from hrconsole.leave.service import LeaveLifecycleService

router = APIRouter(prefix="", tags=["leave"])


def _list_filters(
    status: Optional[LeaveStatus] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    employee_id: Optional[str] = Query(None),
) -> LeaveListFilters:
    return LeaveListFilters(
        status=status,
        start_date=from_date,
        end_date=to_date,
        employee_id=employee_id,
    )


def _system_filters(
    status: Optional[LeaveStatus] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    tenant_id: Optional[str] = Query(None),
) -> SystemLeaveFilters:
    return SystemLeaveFilters(
        status=status,
        start_date=from_date,
        end_date=to_date,
        tenant_id=tenant_id,
    )


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=LeaveRequest, status_code=201)
async def submit_leave(
    body: LeaveRequestCreate,
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Submit a leave request. The approver is notified in the background."""
    return await service.submit(actor, body)


# ── POST /on-behalf/{employee_id} ───────────────────────────────────

@router.post("/on-behalf/{employee_id}", response_model=LeaveRequest, status_code=201)
async def submit_leave_on_behalf(
    employee_id: str,
    body: LeaveRequestCreate,
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Submit a leave request owned by another employee."""
    return await service.submit_for_employee(actor, employee_id, body)


# ── GET /my-leaves ──────────────────────────────────────────────────

@router.get("/my-leaves", response_model=Page[LeaveRequest])
async def my_leaves(
    pagination: PaginationParams = Depends(),
    filters: LeaveListFilters = Depends(_list_filters),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Get the authenticated user's leave requests with pagination."""
    return await service.list_my_leaves(pagination.page, pagination.limit, filters)


# ── GET /team-leaves ────────────────────────────────────────────────

@router.get("/team-leaves", response_model=Page[LeaveRequest])
async def team_leaves(
    pagination: PaginationParams = Depends(),
    filters: LeaveListFilters = Depends(_list_filters),
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Get leave requests of the manager's team."""
    return await service.list_team_leaves(
        actor, pagination.page, pagination.limit, filters,
    )


# ── GET /all ────────────────────────────────────────────────────────

@router.get("/all", response_model=Page[LeaveRequest])
async def all_leaves(
    pagination: PaginationParams = Depends(),
    filters: LeaveListFilters = Depends(_list_filters),
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Get every leave request (HR admins)."""
    return await service.list_all_leaves(
        actor, pagination.page, pagination.limit, filters,
    )


# ── GET /system ─────────────────────────────────────────────────────

@router.get("/system", response_model=Page[LeaveRequest])
async def system_leaves(
    pagination: PaginationParams = Depends(),
    filters: SystemLeaveFilters = Depends(_system_filters),
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Get leave requests across all tenants (system administrators)."""
    return await service.list_system_leaves(
        actor, pagination.page, pagination.limit, filters,
    )


# ── GET /system/summary ─────────────────────────────────────────────

@router.get("/system/summary", response_model=list[TenantLeaveSummary])
async def system_leave_summary(
    filters: SystemLeaveFilters = Depends(_system_filters),
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Per-tenant leave counts. Empty when the backend cannot answer."""
    return await service.system_leave_summary(actor, filters)


# ── GET /{id} ───────────────────────────────────────────────────────

@router.get("/{leave_id}", response_model=LeaveRequest)
async def get_leave(
    leave_id: str,
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    return await service.get(leave_id)


# ── PATCH /{id} ─────────────────────────────────────────────────────

@router.patch("/{leave_id}", response_model=LeaveRequest)
async def edit_leave(
    leave_id: str,
    body: LeaveRequestUpdate,
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Edit a pending request: changed fields, new attachments, removed attachments."""
    return await service.edit(actor, leave_id, body)


# ── PUT /{id}/approve ───────────────────────────────────────────────

@router.put("/{leave_id}/approve", response_model=LeaveRequest)
@limiter.limit(DECISION_LIMIT)
async def approve_leave(
    request: Request,
    leave_id: str,
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Approve a pending leave request at the admin tier."""
    return await service.admin_approve(actor, leave_id)


# ── PUT /{id}/reject ────────────────────────────────────────────────

@router.put("/{leave_id}/reject", response_model=LeaveRequest)
@limiter.limit(DECISION_LIMIT)
async def reject_leave(
    request: Request,
    leave_id: str,
    body: LeaveRejectRequest,
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Reject a pending leave request at the admin tier. A reason is required."""
    return await service.admin_reject(actor, leave_id, body.reason)


# ── PUT /{id}/manager-remarks ───────────────────────────────────────

@router.put("/{leave_id}/manager-remarks", response_model=LeaveRequest)
async def add_manager_remarks(
    leave_id: str,
    body: ManagerRemarksRequest,
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Comment on a pending request without deciding it."""
    return await service.add_manager_remarks(actor, leave_id, body.remarks)


# ── PUT /{id}/manager-approve ───────────────────────────────────────

@router.put("/{leave_id}/manager-approve", response_model=LeaveRequest)
@limiter.limit(DECISION_LIMIT)
async def manager_approve_leave(
    request: Request,
    leave_id: str,
    body: LeaveApproveRequest,
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    return await service.manager_approve(actor, leave_id, body.remarks)


# ── PUT /{id}/manager-reject ────────────────────────────────────────

@router.put("/{leave_id}/manager-reject", response_model=LeaveRequest)
@limiter.limit(DECISION_LIMIT)
async def manager_reject_leave(
    request: Request,
    leave_id: str,
    body: ManagerRemarksRequest,
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Reject a pending request at the manager tier. Remarks are required."""
    return await service.manager_reject(actor, leave_id, body.remarks)


# ── PUT /{id}/withdraw ──────────────────────────────────────────────

@router.put("/{leave_id}/withdraw", response_model=LeaveRequest)
async def withdraw_leave(
    leave_id: str,
    actor: Actor = Depends(get_current_actor),
    service: LeaveLifecycleService = Depends(get_leave_service),
):
    """Withdraw your own pending request."""
    return await service.withdraw(actor, leave_id)
