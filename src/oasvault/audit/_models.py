# pyright: reportAny=false, reportExplicitAny=false
"""Audit record model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Self

__all__ = ["AuditRecord"]


@dataclass(frozen=True, slots=True)
class AuditRecord:
    """One append-only audit trail entry.

    Attributes:
        api_id: API the event applies to.
        timestamp: When the event occurred (timezone-aware).
        event: Event name, e.g. ``version_created``.
        actor: Identity of the acting user or agent.
        version: Version tag the event applies to, if any.
        rationale: Optional free-text reason given by the actor.
        details: Structured event details.
    """

    # Required
    api_id: str
    timestamp: datetime
    event: str
    actor: str
    # Optional
    version: str | None = None
    rationale: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict, omitting empty optional fields."""
        data: dict[str, Any] = {
            "api_id": self.api_id,
            "timestamp": self.timestamp.isoformat(),
            "event": self.event,
            "actor": self.actor,
        }
        if self.version is not None:
            data["version"] = self.version
        if self.rationale is not None:
            data["rationale"] = self.rationale
        if self.details:
            data["details"] = self.details
        return data

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Self:
        """Parse a record read back from the audit file.

        Raises:
            ValueError: If the timestamp is not timezone-aware.
            KeyError: If a required field is missing.
        """
        timestamp = raw["timestamp"]
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)

        # Naive timestamps would break ordering against aware ones
        if timestamp.tzinfo is None:
            msg = f"Timestamp must include timezone information: {timestamp}"
            raise ValueError(msg)

        return cls(
            api_id=raw["api_id"],
            timestamp=timestamp,
            event=raw["event"],
            actor=raw["actor"],
            version=raw.get("version"),
            rationale=raw.get("rationale"),
            details=dict(raw.get("details") or {}),
        )
