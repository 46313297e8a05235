from typing import FrozenSet, Iterable, Optional
from pydantic import BaseModel, ConfigDict, Field


class Principal(BaseModel):
    """The requesting subject: an optional user id plus the groups it belongs to."""
    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    group_ids: FrozenSet[str] = Field(default_factory=frozenset)

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls()

    @classmethod
    def from_headers(cls, user_id: Optional[str], group_ids: Optional[str]) -> "Principal":
        """Build a principal from ``X-User-Id`` and comma separated ``X-Group-Ids`` values."""
        groups = [g.strip() for g in (group_ids or "").split(",") if g.strip()]
        return cls(user_id=(user_id or "").strip() or None, group_ids=frozenset(groups))

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None and not self.group_ids

    def with_groups(self, group_ids: Iterable[str]) -> "Principal":
        return Principal(user_id=self.user_id, group_ids=self.group_ids | frozenset(group_ids))
