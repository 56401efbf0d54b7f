"""
Service status, statistics and health reporting.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from auth.errors import StoreUnavailable
from auth.store import CredentialStore

logger = logging.getLogger(__name__)


def format_uptime(seconds: float) -> str:
    """Render an uptime as ``1d 2h 3m`` / ``2h 3m 4s`` / ``3m 4s`` / ``4s``."""
    seconds = int(seconds)
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400

    if days > 0:
        return f"{days}d {hours % 24}h {minutes % 60}m"
    if hours > 0:
        return f"{hours}h {minutes % 60}m {seconds % 60}s"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class StatusService:
    def __init__(
        self,
        store: CredentialStore,
        *,
        service_name: str,
        service_version: str,
        started_at: Optional[datetime] = None,
    ) -> None:
        self._store = store
        self._service_name = service_name
        self._service_version = service_version
        self._started_at = started_at or _now()

    def uptime(self) -> str:
        return format_uptime((_now() - self._started_at).total_seconds())

    def status(self) -> Dict[str, Any]:
        return {
            "message": "Authentication service is running",
            "version": self._service_version,
            "timestamp": _now().isoformat(),
        }

    def ping(self) -> Dict[str, Any]:
        return {
            "message": "pong",
            "timestamp": _now().isoformat(),
            "service": self._service_name,
            "version": self._service_version,
        }

    async def database_status(self) -> Dict[str, Any]:
        """Connection state plus a couple of cheap aggregates. Never raises."""
        try:
            total = await self._store.count_all()
            last = await self._store.most_recent()
        except StoreUnavailable:
            return {
                "status": "ERROR",
                "connected": False,
                "total_users": 0,
                "uptime": self.uptime(),
                "last_user_created": None,
            }
        return {
            "status": "CONNECTED",
            "connected": True,
            "total_users": total,
            "uptime": self.uptime(),
            "last_user_created": _iso(last.created_at if last else None),
        }

    async def system_stats(self) -> Dict[str, Any]:
        """Raises ``StoreUnavailable`` when the store cannot be queried."""
        db_status = await self.database_status()
        midnight = _now().replace(hour=0, minute=0, second=0, microsecond=0)
        registered_today = await self._store.count_since(midnight)
        total = await self._store.count_all()

        return {
            "total_users": total,
            "service_uptime": db_status["uptime"],
            "database_status": db_status["status"],
            "last_activity": db_status["last_user_created"],
            "users_registered_today": registered_today,
        }

    async def health(self) -> Dict[str, Any]:
        db_status, stats, probe = await asyncio.gather(
            self.database_status(),
            self._stats_or_none(),
            self._store.probe(),
        )
        healthy = db_status["connected"] and probe.can_read and probe.can_write
        if not healthy:
            logger.warning("Health check degraded: %s", probe.error or db_status["status"])

        return {
            "message": "System health check",
            "timestamp": _now().isoformat(),
            "status": "HEALTHY" if healthy else "DEGRADED",
            "services": {
                "database": {
                    "status": db_status["status"],
                    "connected": db_status["connected"],
                    "response_time": f"{probe.response_time_ms}ms",
                    "can_read": probe.can_read,
                    "can_write": probe.can_write,
                    "error": probe.error,
                },
                "authentication": {
                    "status": "ACTIVE",
                    "uptime": self.uptime(),
                },
                "user_management": {
                    "status": "ACTIVE" if stats is not None else "UNAVAILABLE",
                    "total_users": stats["total_users"] if stats else 0,
                    "registered_today": stats["users_registered_today"] if stats else 0,
                },
            },
            "last_activity": stats["last_activity"] if stats else None,
        }

    async def _stats_or_none(self) -> Optional[Dict[str, Any]]:
        try:
            return await self.system_stats()
        except StoreUnavailable:
            return None
