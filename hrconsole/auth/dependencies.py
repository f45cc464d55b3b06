"""Auth dependencies — JWT decoding for the acting user.

Sessions are issued and stored by the HR backend; the console only decodes
the token it is handed to learn who is acting.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt

from hrconsole.auth.schemas import Actor
from hrconsole.common.constants import UserRole
from hrconsole.config import settings


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_actor(request: Request) -> Actor:
    """Validate the JWT and return the acting user."""
    token = _extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    if payload.get("type", "access") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type.")

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(status_code=401, detail="Token has no subject.")

    role_str = payload.get("role", UserRole.employee.value)
    try:
        role = UserRole(role_str)
    except ValueError:
        role = UserRole.employee

    permissions = payload.get("permissions") or []
    if not isinstance(permissions, list):
        permissions = []

    actor = Actor(
        id=str(subject),
        role=role,
        permissions=[str(p) for p in permissions],
        name=payload.get("name"),
        token=token,
    )
    request.state.actor = actor
    return actor

