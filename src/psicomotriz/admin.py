"""Audit trail of administrative actions on liquidations and fees."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import AuditEvent


class AuditLog:
    """Keep the admin actions taken on fees, commissions and liquidations."""

    def __init__(self, *, clock=datetime.utcnow, max_entries: int = 1000) -> None:
        self._clock = clock
        self._max_entries = max_entries
        self._events: List[AuditEvent] = []

    def record(self, actor: str, action: str, target: str, **details: Any) -> AuditEvent:
        event = AuditEvent(actor=actor, action=action, target=target, timestamp=self._clock(), details=details)
        self._events.append(event)
        if len(self._events) > self._max_entries:
            del self._events[: len(self._events) - self._max_entries]
        return event

    def entries(
        self,
        *,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        target: Optional[str] = None,
    ) -> tuple[AuditEvent, ...]:
        return tuple(
            event
            for event in self._events
            if (actor is None or event.actor == actor)
            and (action is None or event.action == action)
            and (target is None or event.target == target)
        )

    def as_dicts(self, limit: int = 100) -> List[Dict[str, Any]]:
        return [
            {
                "actor": event.actor,
                "action": event.action,
                "target": event.target,
                "timestamp": event.timestamp.isoformat(),
                "details": {key: str(value) for key, value in event.details.items()},
            }
            for event in self._events[-limit:]
        ]

    def clear(self) -> None:
        self._events.clear()


__all__ = ["AuditLog"]
