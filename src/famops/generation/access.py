"""
Famops - Generation entitlement gate.

Generation requires family membership plus an active subscription (or the
force-pro override). Non-production overrides arrive as an explicit
AccessConfig; nothing here looks at environment variables or request URLs.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from famops.db.adapter import RecordStore
from famops.db.ids import new_id
from famops.errors import (
    NotAMemberError,
    NotAuthenticatedError,
    NotFoundError,
    PermissionDeniedError,
    ProRequiredError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessConfig:
    """Authorization overrides for QA/demo contexts."""

    qa_bypass: bool = False
    force_pro: bool = False
    demo_user_id: str = "qa-demo-user"

    @classmethod
    def from_settings(cls, settings: Any) -> "AccessConfig":
        return cls(
            qa_bypass=settings.qa_auth_bypass,
            force_pro=settings.features_force_pro,
            demo_user_id=settings.demo_user_id,
        )


def _parse_ts(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


class AccessGate:
    """Membership and subscription checks against the record store."""

    def __init__(
        self,
        store: RecordStore,
        config: AccessConfig | None = None,
        *,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self.store = store
        self.config = config or AccessConfig()
        self._now = now

    def resolve_user(self, user_id: str | None) -> str:
        if user_id:
            return user_id
        if self.config.qa_bypass or self.config.force_pro:
            return self.config.demo_user_id
        raise NotAuthenticatedError("Not authenticated")

    async def assert_membership(self, user_id: str, family_id: str) -> dict[str, Any]:
        members = await self.store.list("family_members", {"user_id": user_id, "family_id": family_id}, limit=1)
        if members:
            return members[0]
        if self.config.qa_bypass:
            logger.info(f"QA bypass: adding {user_id} as owner of family {family_id}")
            return await self.store.create(
                "family_members",
                {"id": new_id("member"), "family_id": family_id, "user_id": user_id, "role": "owner"},
            )
        raise NotAMemberError("User is not a member of this family")

    async def subscription_active(self, family_id: str) -> bool:
        subs = await self.store.list(
            "subscriptions", {"family_id": family_id}, order_by="created_at", desc=True, limit=1
        )
        if not subs:
            return False
        sub = subs[0]
        now = self._now()
        trial_end = _parse_ts(sub.get("trial_ends_at"))
        if trial_end and now < trial_end:
            return True
        period_end = _parse_ts(sub.get("current_period_end"))
        return sub.get("status") == "active" and period_end is not None and now < period_end

    async def is_pro(self, family_id: str) -> bool:
        return self.config.force_pro or await self.subscription_active(family_id)

    async def require(self, family_id: str, user_id: str | None = None) -> dict[str, Any]:
        """
        Precondition for generation requests.

        Returns the membership record.

        Raises:
            NotAuthenticatedError, NotAMemberError, ProRequiredError
        """
        uid = self.resolve_user(user_id)
        member = await self.assert_membership(uid, family_id)
        if not await self.is_pro(family_id):
            raise ProRequiredError("Pro subscription required for this feature")
        return member

    async def require_adult(self, family_id: str, user_id: str | None = None, action: str = "change") -> dict[str, Any]:
        """Membership with a non-child role (routine edits)."""
        member = await self.assert_membership(self.resolve_user(user_id), family_id)
        if member.get("role") == "child":
            raise PermissionDeniedError(f"Only adults can {action} routines")
        return member

    async def family_of_child(self, child_id: str) -> str:
        children = await self.store.list("children", {"id": child_id}, limit=1)
        if not children:
            raise NotFoundError("Child not found")
        return children[0]["family_id"]
