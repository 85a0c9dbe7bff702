"""
Caller identity forwarded by the gateway.

The gateway authenticates the request and passes ``X-User-ID`` and
``X-User-Role`` through; this service trusts them.
"""
from __future__ import annotations

from dataclasses import dataclass

from orders.domain.errors import AuthorizationError

ROLE_CLIENT = "CLIENT"
ROLE_ADMIN = "ADMIN"


@dataclass(frozen=True)
class Caller:
    user_id: str | None
    role: str = ROLE_CLIENT

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def owner_scope(self) -> str | None:
        """Owner filter for lookups: none for admins, the caller otherwise."""
        return None if self.is_admin else self.user_id


def caller_from_request(request) -> Caller:
    user_id = (request.headers.get("X-User-ID") or "").strip() or None
    role = (request.headers.get("X-User-Role") or ROLE_CLIENT).strip().upper()
    return Caller(user_id=user_id, role=role)


def require_user(info) -> Caller:
    caller = info.context["caller"]
    if caller.user_id is None:
        raise AuthorizationError("Authentication required")
    return caller


def require_admin(info) -> Caller:
    caller = require_user(info)
    if not caller.is_admin:
        raise AuthorizationError("Admin role required")
    return caller
