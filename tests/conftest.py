"""Shared test fixtures — fake HR backend, clients, actors, auth helpers.

Reusable across all test modules (pagination, directory, notifications,
leave lifecycle, API). The remote HR backend is an in-memory fake served
through ``httpx.MockTransport``; every request it receives is recorded.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Callable, Optional

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from jose import JWTError, jwt

from hrconsole.auth.schemas import Actor
from hrconsole.common.constants import UserRole
from hrconsole.common.events import LocalEventBus, NotificationEvent
from hrconsole.common.rate_limit import limiter
from hrconsole.common.tasks import BackgroundTaskRunner
from hrconsole.config import settings
from hrconsole.dependencies import build_leave_service
from hrconsole.leave.service import LeaveLifecycleService
from hrconsole.main import create_app

API_PREFIX = "/api"

EMPLOYEE_ID = "emp-1"
LONER_ID = "emp-2"
MANAGER_ID = "mgr-1"
ADMIN_ID = "adm-1"
SYSTEM_ADMIN_ID = "sys-1"
TEAM_ID = "team-1"
ACME_TENANT_ID = "t-acme"

ADMIN_IDS = [f"adm-{n}" for n in range(1, 8)]
AVAILABLE_MANAGER_IDS = [f"mgr-{n}" for n in range(1, 8)]


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    subject: str,
    role: UserRole = UserRole.employee,
    expired: bool = False,
    permissions: Optional[list[str]] = None,
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
    payload: dict[str, Any] = {
        "sub": subject,
        "role": role.value,
        "type": "access",
        "exp": exp,
    }
    if permissions is not None:
        payload["permissions"] = permissions
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def make_actor(subject: str, role: UserRole = UserRole.employee) -> Actor:
    return Actor(id=subject, role=role, token=create_access_token(subject, role))


def auth_header(actor: Actor) -> dict[str, str]:
    return {"Authorization": f"Bearer {actor.token}"}


# ═════════════════════════════════════════════════════════════════════
# Fake HR backend
# ═════════════════════════════════════════════════════════════════════


@dataclass
class RecordedCall:
    method: str
    path: str
    params: dict[str, str]
    body: Any
    actor_id: Optional[str]
    timeout: Optional[dict[str, Any]] = None


@dataclass
class FakeHRBackend:
    """In-memory stand-in for the remote HR REST API.

    Leave records are stored in the backend's camelCase/uppercase wire shape
    so the canonical adapter is exercised on every response. ``fail`` makes a
    named route answer with an error status; ``disconnect`` makes it raise a
    transport error and ``stall`` a read timeout.
    """

    employees: dict[str, dict[str, Any]] = field(default_factory=dict)
    teams: dict[str, dict[str, Any]] = field(default_factory=dict)
    admins: list[str] = field(default_factory=lambda: list(ADMIN_IDS))
    available_managers: list[str] = field(
        default_factory=lambda: list(AVAILABLE_MANAGER_IDS)
    )
    leaves: dict[str, dict[str, Any]] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)
    failures: dict[str, int] = field(default_factory=dict)
    disconnected: set[str] = field(default_factory=set)
    stalled: set[str] = field(default_factory=set)
    tenants: dict[str, str] = field(default_factory=dict)
    inbox: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    _seq: int = 0
    _ntf_seq: int = 0

    # ── Test controls ───────────────────────────────────────────────

    def fail(self, route: str, status: int = 500) -> None:
        self.failures[route] = status

    def disconnect(self, route: str) -> None:
        self.disconnected.add(route)

    def stall(self, route: str) -> None:
        self.stalled.add(route)

    def deliver(self, user_id: str, message: str, kind: str = "info") -> str:
        """Put a notification in a user's inbox; returns its id."""
        self._ntf_seq += 1
        item = {
            "id": f"ntf-{self._ntf_seq}",
            "userId": user_id,
            "message": message,
            "type": kind,
            "status": "unread",
            "createdAt": "2026-10-19T09:30:00Z",
        }
        self.inbox.setdefault(user_id, []).append(item)
        return item["id"]

    def requests_to(self, method: str, path_prefix: str = "") -> list[RecordedCall]:
        return [
            c for c in self.calls
            if c.method == method and c.path.startswith(path_prefix)
        ]

    @property
    def pushes(self) -> list[RecordedCall]:
        return self.requests_to("POST", "/notifications/send")

    @property
    def leave_writes(self) -> list[RecordedCall]:
        return [
            c for c in self.calls
            if c.method != "GET" and c.path.startswith("/leaves")
        ]

    def seed_leave(self, owner_id: str, status: str = "PENDING", **extra: Any) -> str:
        record = self._new_leave(
            owner_id,
            {
                "leave_type_id": "annual",
                "start_date": "2026-11-02",
                "end_date": "2026-11-04",
                "reason": "Family trip",
                "documents": [],
            },
        )
        record["status"] = status
        record.update(extra)
        return record["id"]

    # ── Transport entry point ───────────────────────────────────────

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        body = json.loads(request.content) if request.content else None
        self.calls.append(
            RecordedCall(
                method=request.method,
                path=path,
                params=dict(request.url.params),
                body=body,
                actor_id=self._actor_id(request),
                timeout=request.extensions.get("timeout"),
            )
        )

        route, handler, args = self._route(request.method, path)
        if route in self.disconnected:
            raise httpx.ConnectError("connection refused", request=request)
        if route in self.stalled:
            raise httpx.ReadTimeout("read timed out", request=request)
        if route in self.failures:
            return httpx.Response(
                self.failures[route],
                json={"message": f"{route} failed upstream"},
                headers={"x-correlation-id": f"corr-fail-{len(self.calls)}"},
            )
        if handler is None:
            return httpx.Response(404, json={"message": f"No route for {path}"})
        return handler(request, body, *args)

    def _actor_id(self, request: httpx.Request) -> Optional[str]:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        try:
            claims = jwt.decode(
                header[7:], settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM],
            )
        except JWTError:
            return None
        return claims.get("sub")

    def _route(
        self, method: str, path: str,
    ) -> tuple[str, Optional[Callable[..., httpx.Response]], tuple[str, ...]]:
        parts = [p for p in path.split("/") if p]
        if parts[:2] == ["notifications", "send"] and method == "POST":
            return "push", self._push, ()
        if parts[:2] == ["notifications", "read-all"]:
            return "inbox", self._inbox_read_all, ()
        if len(parts) == 3 and parts[0] == "notifications" and parts[2] == "read":
            return "inbox", self._inbox_read, (parts[1],)
        if parts == ["notifications"]:
            return "inbox", self._inbox_list, ()
        if parts == ["system", "leaves"]:
            return "system_leaves", self._system_leaves, ()
        if parts == ["system", "leaves", "summary"]:
            return "system_summary", self._system_summary, ()
        if parts == ["system", "tenants"]:
            return "tenants", self._tenants, ()
        if parts[:2] == ["search", "admin"]:
            return "admin_search", self._admin_search, ()
        if parts[:2] == ["teams", "available-managers"]:
            return "available_managers", self._available_managers, ()
        if len(parts) == 2 and parts[0] == "teams":
            return "team", self._team, (parts[1],)
        if len(parts) == 2 and parts[0] == "employees":
            return "employee", self._employee, (parts[1],)
        if parts and parts[0] == "leaves":
            return self._leave_route(method, parts[1:])
        return "unknown", None, ()

    def _leave_route(
        self, method: str, rest: list[str],
    ) -> tuple[str, Optional[Callable[..., httpx.Response]], tuple[str, ...]]:
        if not rest:
            if method == "POST":
                return "leave_write", self._create, ()
            return "leave_list", self._list_own, ()
        if rest == ["team"]:
            return "leave_list", self._list_team, ()
        if rest == ["all"]:
            return "leave_list", self._list_all, ()
        if rest[0] == "on-behalf" and len(rest) == 2:
            return "leave_write", self._create_on_behalf, (rest[1],)
        leave_id = rest[0]
        if len(rest) == 1:
            if method == "GET":
                return "leave_read", self._get, (leave_id,)
            return "leave_write", self._update, (leave_id,)
        action = rest[1]
        if action == "documents":
            return "leave_write", self._documents, (leave_id,)
        return "leave_write", self._transition, (leave_id, action)

    # ── Directory ───────────────────────────────────────────────────

    def _employee(self, request, body, employee_id):
        profile = self.employees.get(employee_id)
        if profile is None:
            return httpx.Response(404, json={"message": "Employee not found"})
        return httpx.Response(200, json={"data": profile})

    def _team(self, request, body, team_id):
        team = self.teams.get(team_id)
        if team is None:
            return httpx.Response(404, json={"message": "Team not found"})
        return httpx.Response(200, json=team)

    def _available_managers(self, request, body):
        return httpx.Response(
            200, json={"managers": [{"id": m} for m in self.available_managers]},
        )

    def _admin_search(self, request, body):
        return httpx.Response(
            200, json={"users": [{"userId": a, "role": "hr_admin"} for a in self.admins]},
        )

    # ── Push / inbox ────────────────────────────────────────────────

    def _push(self, request, body):
        for user_id in body["user_ids"]:
            self.deliver(user_id, body["message"], body.get("type", "alert"))
        return httpx.Response(
            200,
            json={"message": "Notification sent", "data": {"delivered": len(body["user_ids"])}},
            headers={"x-correlation-id": f"corr-{len(self.calls)}"},
        )

    def _inbox_list(self, request, body):
        mine = self.inbox.get(self._actor_id(request) or "", [])
        status = request.url.params.get("status")
        kind = request.url.params.get("type")
        limit = request.url.params.get("limit")
        items = [
            n for n in mine
            if (status is None or n["status"] == status) and (kind is None or n["type"] == kind)
        ]
        if limit is not None:
            items = items[: int(limit)]
        unread = sum(1 for n in mine if n["status"] == "unread")
        return httpx.Response(200, json={"notifications": items, "unreadCount": unread})

    def _inbox_read(self, request, body, notification_id):
        for item in self.inbox.get(self._actor_id(request) or "", []):
            if item["id"] == notification_id:
                item["status"] = "read"
                return httpx.Response(
                    200, json={"message": "Notification marked as read", "data": item},
                )
        return httpx.Response(404, json={"message": "Notification not found"})

    def _inbox_read_all(self, request, body):
        count = 0
        for item in self.inbox.get(self._actor_id(request) or "", []):
            if item["status"] == "unread":
                item["status"] = "read"
                count += 1
        return httpx.Response(200, json={"data": {"count": count}})

    # ── System (cross-tenant) ───────────────────────────────────────

    def _by_tenant(self, request) -> list[dict[str, Any]]:
        tenant = request.url.params.get("tenantId")
        return self._filtered(
            request, lambda r: tenant is None or r.get("tenantId") == tenant,
        )

    def _system_leaves(self, request, body):
        records = self._by_tenant(request)
        items, page, limit = self._slice(request, records)
        return httpx.Response(
            200,
            json={
                "items": items,
                "total": len(records),
                "page": page,
                "limit": limit,
                "totalPages": -(-len(records) // limit),
            },
        )

    def _system_summary(self, request, body):
        counts: dict[Optional[str], dict[str, Any]] = {}
        for record in self._by_tenant(request):
            tenant = record.get("tenantId")
            row = counts.setdefault(
                tenant,
                {"tenantId": tenant, "tenantName": self.tenants.get(tenant or ""),
                 "totalLeaves": 0, "approvedCount": 0, "rejectedCount": 0,
                 "pendingCount": 0, "cancelledCount": 0},
            )
            row["totalLeaves"] += 1
            key = f"{record['status'].lower()}Count"
            if key in row:
                row[key] += 1
        return httpx.Response(200, json=list(counts.values()))

    def _tenants(self, request, body):
        return httpx.Response(
            200, json=[{"id": tid, "name": name, "status": "active"} for tid, name in self.tenants.items()],
        )

    # ── Leaves ──────────────────────────────────────────────────────

    def _new_leave(self, owner_id: str, body: dict[str, Any]) -> dict[str, Any]:
        self._seq += 1
        profile = self.employees.get(owner_id, {})
        record = {
            "id": f"lv-{self._seq}",
            "userId": owner_id,
            "user": {
                "id": owner_id,
                "firstName": profile.get("firstName"),
                "lastName": profile.get("lastName"),
                "email": profile.get("email"),
            },
            "leaveType": {"id": body["leave_type_id"], "name": body["leave_type_id"].title()},
            "startDate": body["start_date"],
            "endDate": body["end_date"],
            "reason": body["reason"],
            "remarks": None,
            "managerRemarks": None,
            "status": "PENDING",
            "approvedBy": None,
            "documents": [{"id": d, "fileName": f"{d}.pdf"} for d in body.get("documents", [])],
            "createdAt": "2026-10-19T09:00:00Z",
        }
        self.leaves[record["id"]] = record
        return record

    def _create(self, request, body):
        record = self._new_leave(self._actor_id(request), body)
        return httpx.Response(201, json={"data": record})

    def _create_on_behalf(self, request, body, employee_id):
        record = self._new_leave(employee_id, body)
        return httpx.Response(201, json={"data": record})

    def _get(self, request, body, leave_id):
        record = self.leaves.get(leave_id)
        if record is None:
            return httpx.Response(404, json={"message": "Leave request not found"})
        return httpx.Response(200, json=record)

    def _update(self, request, body, leave_id):
        record = self.leaves.get(leave_id)
        if record is None:
            return httpx.Response(404, json={"message": "Leave request not found"})
        if "leave_type_id" in body:
            record["leaveType"] = {"id": body["leave_type_id"]}
        for src, dst in (("start_date", "startDate"), ("end_date", "endDate"), ("reason", "reason")):
            if src in body:
                record[dst] = body[src]
        return httpx.Response(200, json=record)

    def _documents(self, request, body, leave_id):
        record = self.leaves.get(leave_id)
        if record is None:
            return httpx.Response(404, json={"message": "Leave request not found"})
        if request.method == "POST":
            for doc in body["documents"]:
                record["documents"].append({"id": doc, "fileName": f"{doc}.pdf"})
        else:
            drop = set(body["document_ids"])
            record["documents"] = [d for d in record["documents"] if d["id"] not in drop]
        return httpx.Response(200, json={"data": record})

    def _transition(self, request, body, leave_id, action):
        record = self.leaves.get(leave_id)
        if record is None:
            return httpx.Response(404, json={"message": "Leave request not found"})
        if action not in ("manager-remarks",) and record["status"] != "PENDING":
            return httpx.Response(400, json={"message": "Leave request is not pending"})

        if action in ("approve", "manager-approve"):
            record["status"] = "APPROVED"
            record["approvedBy"] = {"id": body.get("approvedBy")}
            record["approvedAt"] = "2026-10-19T10:00:00Z"
        elif action in ("reject", "manager-reject"):
            record["status"] = "REJECTED"
            record["approvedBy"] = {"id": body.get("approvedBy")}
        elif action == "withdraw":
            record["status"] = "WITHDRAWN"
        elif action != "manager-remarks":
            return httpx.Response(404, json={"message": f"Unknown action {action}"})

        if "remarks" in body:
            record["remarks"] = body["remarks"]
        if "managerRemarks" in body:
            record["managerRemarks"] = body["managerRemarks"]
        return httpx.Response(200, json=record)

    def _filtered(self, request, predicate) -> list[dict[str, Any]]:
        status = request.url.params.get("status")
        return [
            r for r in self.leaves.values()
            if predicate(r) and (status is None or r["status"].lower() == status)
        ]

    def _slice(self, request, records):
        page = int(request.url.params.get("page", 1))
        limit = int(request.url.params.get("limit", 10))
        start = (page - 1) * limit
        return records[start:start + limit], page, limit

    def _list_own(self, request, body):
        actor = self._actor_id(request)
        records = self._filtered(request, lambda r: r["userId"] == actor)
        items, page, limit = self._slice(request, records)
        return httpx.Response(
            200,
            json={"items": items, "total": len(records), "page": page, "limit": limit},
        )

    def _list_team(self, request, body):
        actor = self._actor_id(request)
        members = {
            eid for eid, profile in self.employees.items()
            if self.teams.get(profile.get("teamId") or "", {}).get("managerId") == actor
        }
        records = self._filtered(request, lambda r: r["userId"] in members)
        items, _, _ = self._slice(request, records)
        return httpx.Response(200, json={"data": items})

    def _list_all(self, request, body):
        return httpx.Response(200, json=self._filtered(request, lambda r: True))


def _seed_backend() -> FakeHRBackend:
    backend = FakeHRBackend()
    backend.employees = {
        EMPLOYEE_ID: {
            "id": EMPLOYEE_ID,
            "firstName": "Ravi",
            "lastName": "Kumar",
            "email": "ravi.kumar@example.com",
            "teamId": TEAM_ID,
        },
        LONER_ID: {
            "id": LONER_ID,
            "firstName": "Meera",
            "lastName": "Iyer",
            "email": "meera.iyer@example.com",
        },
        MANAGER_ID: {
            "id": MANAGER_ID,
            "firstName": "Anita",
            "lastName": "Desai",
            "team": {"id": "team-leads"},
        },
    }
    backend.teams = {
        TEAM_ID: {"id": TEAM_ID, "name": "Platform", "managerId": MANAGER_ID},
        "team-leads": {"id": "team-leads", "name": "Leads", "manager": None},
    }
    backend.tenants = {ACME_TENANT_ID: "Acme Corp", "t-globex": "Globex"}
    return backend


# ═════════════════════════════════════════════════════════════════════
# Fixtures
# ═════════════════════════════════════════════════════════════════════


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    limiter.reset()
    yield


@pytest.fixture
def backend() -> FakeHRBackend:
    return _seed_backend()


@pytest.fixture
async def http_client(backend) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Backend client wired to the fake through ``MockTransport``."""
    async with httpx.AsyncClient(
        base_url=settings.HR_API_BASE_URL,
        transport=httpx.MockTransport(backend.handler),
    ) as client:
        yield client


@pytest.fixture
def events() -> LocalEventBus:
    return LocalEventBus()


@pytest.fixture
def received_events(events) -> list[NotificationEvent]:
    received: list[NotificationEvent] = []
    events.subscribe(received.append)
    return received


@pytest.fixture
async def runner() -> AsyncGenerator[BackgroundTaskRunner, None]:
    task_runner = BackgroundTaskRunner()
    yield task_runner
    await task_runner.drain(timeout=5)


@pytest.fixture
def employee() -> Actor:
    return make_actor(EMPLOYEE_ID)


@pytest.fixture
def manager() -> Actor:
    return make_actor(MANAGER_ID, UserRole.manager)


@pytest.fixture
def admin() -> Actor:
    return make_actor(ADMIN_ID, UserRole.hr_admin)


@pytest.fixture
def system_admin() -> Actor:
    return make_actor(SYSTEM_ADMIN_ID, UserRole.system_admin)


@pytest.fixture
def service_for(http_client, events, runner) -> Callable[[Actor], LeaveLifecycleService]:
    """Build a lifecycle service bound to an actor's token."""

    def _build(actor: Actor) -> LeaveLifecycleService:
        return build_leave_service(http_client, actor.token, events, runner)

    return _build


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app(backend):
    """Create a fresh app instance talking to the fake backend."""
    application = create_app(transport=httpx.MockTransport(backend.handler))
    yield application
    await application.state.task_runner.drain(timeout=5)
    await application.state.http_client.aclose()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
