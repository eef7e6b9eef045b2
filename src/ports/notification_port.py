"""Notification port — abstract interface for OS/chat-level alerts.

Core modules depend on this protocol, never on a specific messaging provider.
Delivery is best-effort: callers must not let a failed alert block state changes.
"""

from __future__ import annotations

from typing import Protocol

# Permission states, same vocabulary as browser notification APIs
PERMISSION_GRANTED = "granted"
PERMISSION_DENIED = "denied"
PERMISSION_DEFAULT = "default"


class NotificationPort(Protocol):
    """Abstract notification interface used by core modules."""

    async def request_permission(self) -> str: ...

    async def notify(self, title: str, body: str, tag: str) -> None: ...
