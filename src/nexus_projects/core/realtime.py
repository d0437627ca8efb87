"""Process-local registry of live real-time connections and their channels.

The registry is rebuilt from scratch on restart; clients reconnect and
re-subscribe. Business code never touches it directly and goes through
``services.notifier`` instead.
"""

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.nexus_projects.core.config import get_settings
from src.nexus_projects.core.logging import get_logger

logger = get_logger(__name__)


def tenant_channel(tenant_id: str) -> str:
    return f"projects:{tenant_id}"


def department_channel(tenant_id: str, department: str) -> str:
    return f"projects:{tenant_id}:{department}"


def faculty_applications_channel(user_id: str) -> str:
    return f"faculty:{user_id}:applications"


def user_channel(user_id: str) -> str:
    return f"user:{user_id}"


class JSONSender(Protocol):
    async def send_json(self, data: Any) -> None: ...


@dataclass(eq=False)
class Connection:
    """One live socket and the channels it joined at connect time."""

    sender: JSONSender
    user_id: str
    channels: frozenset[str] = field(default_factory=frozenset)
    # Faculty and admins see every project in their tenant
    sees_all: bool = False


ConnectionFilter = Callable[[Connection], bool]


class ChannelRegistry:
    """Maps channels to live connections and fans messages out to them."""

    def __init__(self, max_connections_per_user: int = 5) -> None:
        self.max_connections_per_user = max_connections_per_user
        self._channels: dict[str, set[Connection]] = {}
        self._by_user: dict[str, list[Connection]] = {}
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task[int]] = set()

    async def register(
        self,
        sender: JSONSender,
        user_id: str,
        channels: Iterable[str],
        sees_all: bool = False,
    ) -> Connection | None:
        """Join ``channels``. Returns None when the per-user cap is reached."""
        async with self._lock:
            slots = self._by_user.setdefault(user_id, [])
            if len(slots) >= self.max_connections_per_user:
                logger.warning(
                    "Realtime connection rejected",
                    user_id=user_id,
                    limit=self.max_connections_per_user,
                )
                return None

            connection = Connection(
                sender=sender,
                user_id=user_id,
                channels=frozenset(channels),
                sees_all=sees_all,
            )
            slots.append(connection)
            for channel in connection.channels:
                self._channels.setdefault(channel, set()).add(connection)

        logger.info(
            "Realtime connection registered",
            user_id=user_id,
            channels=sorted(connection.channels),
            connections=len(slots),
        )
        return connection

    async def unregister(self, connection: Connection, reason: str = "client_disconnected") -> None:
        async with self._lock:
            self._remove(connection)
        logger.info("Realtime connection removed", user_id=connection.user_id, reason=reason)

    def _remove(self, connection: Connection) -> None:
        slots = self._by_user.get(connection.user_id, [])
        if connection in slots:
            slots.remove(connection)
        if not slots:
            self._by_user.pop(connection.user_id, None)
        for channel in connection.channels:
            members = self._channels.get(channel)
            if members is None:
                continue
            members.discard(connection)
            if not members:
                self._channels.pop(channel, None)

    def audience(
        self, channels: Iterable[str], only: ConnectionFilter | None = None
    ) -> set[Connection]:
        """Union of subscribers; a connection in several channels appears once."""
        result: set[Connection] = set()
        for channel in channels:
            result |= self._channels.get(channel, set())
        if only is not None:
            result = {c for c in result if only(c)}
        return result

    async def deliver(
        self,
        channels: Iterable[str],
        message: dict[str, Any],
        only: ConnectionFilter | None = None,
    ) -> int:
        """Send ``message`` to every subscriber of ``channels`` accepted by ``only``.

        Returns:
            Number of connections that received the message. Broken
            connections are pruned; nothing is raised.
        """
        targets = list(self.audience(channels, only))
        delivered = 0
        broken: list[Connection] = []
        for connection in targets:
            try:
                await connection.sender.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(
                    "Realtime send failed",
                    user_id=connection.user_id,
                    event_type=message.get("type"),
                    error=str(e),
                )
                broken.append(connection)

        if broken:
            async with self._lock:
                for connection in broken:
                    self._remove(connection)
        return delivered

    def publish(
        self,
        channels: Iterable[str],
        message: dict[str, Any],
        only: ConnectionFilter | None = None,
    ) -> asyncio.Task[int]:
        """Schedule delivery in the background so the caller never waits on it."""
        task = asyncio.create_task(self.deliver(list(channels), message, only))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for scheduled deliveries. Used on shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def subscriber_count(self, channel: str) -> int:
        return len(self._channels.get(channel, ()))

    def metrics(self) -> dict[str, int]:
        return {
            "users": len(self._by_user),
            "connections": sum(len(v) for v in self._by_user.values()),
            "channels": len(self._channels),
        }

    def reset(self) -> None:
        """Drop every connection. For testing only."""
        self._channels.clear()
        self._by_user.clear()
        self._pending.clear()


_registry: ChannelRegistry | None = None


def get_registry() -> ChannelRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _registry
    if _registry is None:
        _registry = ChannelRegistry(get_settings().ws_max_connections_per_user)
    return _registry


def reset_registry() -> None:
    """Forget the process-wide registry. For testing only."""
    global _registry
    _registry = None
