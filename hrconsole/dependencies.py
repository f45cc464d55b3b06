"""Shared FastAPI dependencies — per-request service wiring."""

from __future__ import annotations

import httpx
from fastapi import Depends, Request

from hrconsole.auth.dependencies import get_current_actor
from hrconsole.auth.schemas import Actor
from hrconsole.common.events import LocalEventBus
from hrconsole.common.tasks import BackgroundTaskRunner
from hrconsole.config import Settings, settings
from hrconsole.directory.client import AdminSearchClient, DirectoryClient
from hrconsole.directory.resolver import ManagerResolver
from hrconsole.leave.service import LeaveLifecycleService
from hrconsole.leave.store import LeaveStoreClient
from hrconsole.notifications.client import PushNotificationClient
from hrconsole.notifications.service import NotificationFanout


def build_leave_service(
    client: httpx.AsyncClient,
    token: str | None,
    events: LocalEventBus,
    tasks: BackgroundTaskRunner,
    config: Settings = settings,
) -> LeaveLifecycleService:
    """Assemble the lifecycle service for one actor's bearer token."""
    directory = DirectoryClient(client, token)
    fanout = NotificationFanout(
        PushNotificationClient(client, token),
        ManagerResolver(directory, hop_timeout=config.DIRECTORY_LOOKUP_TIMEOUT_SECONDS),
        directory,
        AdminSearchClient(client, token),
        events,
        fallback_limit=config.NOTIFY_FALLBACK_LIMIT,
        admin_capability=config.NOTIFY_ADMIN_CAPABILITY,
        lookup_timeout=config.DIRECTORY_LOOKUP_TIMEOUT_SECONDS,
    )
    return LeaveLifecycleService(LeaveStoreClient(client, token), fanout, tasks)


async def get_leave_service(
    request: Request,
    actor: Actor = Depends(get_current_actor),
) -> LeaveLifecycleService:
    state = request.app.state
    return build_leave_service(
        state.http_client, actor.token, state.events, state.task_runner,
    )


async def get_notification_client(
    request: Request,
    actor: Actor = Depends(get_current_actor),
) -> PushNotificationClient:
    """Inbox access for the acting user's bearer token."""
    return PushNotificationClient(request.app.state.http_client, actor.token)
