import logging

from django.utils import timezone

from .aggregation import ALL_TIME, Period
from .models import ActivityLog
from .persistence import LocalState
from .store import EntityStore

logger = logging.getLogger(__name__)


class ActivityLogger:
    """Append-only audit trail; newest entries come first when listed."""

    def __init__(self, store: EntityStore, state: LocalState) -> None:
        self.store = store
        self.state = state
        self.current_username: str | None = None

    def resolve_actor(self, actor: str | None = None) -> str | None:
        if actor:
            return actor
        if self.current_username:
            return self.current_username
        # Logout clears the in-memory user before the entry is written.
        persisted = self.state.load_user()
        return persisted["username"] if persisted else None

    def record(
        self,
        action: ActivityLog.Action,
        entity: ActivityLog.Entity,
        details: str,
        actor: str | None = None,
    ) -> ActivityLog | None:
        username = self.resolve_actor(actor)
        if not username:
            return None
        entry = self.store.logs.insert(
            id=self.store.logs.count() + 1,
            timestamp=timezone.now(),
            username=username,
            action=action,
            entity=entity,
            details=details,
        )
        logger.info("[%s] %s %s: %s", username, action, entity, details)
        return entry

    def entries(
        self,
        period: Period = ALL_TIME,
        username: str | None = None,
        action: str | None = None,
        entity: str | None = None,
    ) -> list[ActivityLog]:
        """Newest first; ``period`` bounds the local calendar date of each entry."""
        lookups = period.lookups("timestamp__date")
        if username:
            lookups["username"] = username
        if action:
            lookups["action"] = action
        if entity:
            lookups["entity"] = entity
        return list(self.store.logs.filter(**lookups).order_by("-id"))
