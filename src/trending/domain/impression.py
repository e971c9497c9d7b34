from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class Impression:
    """
    A single view of an entity (a token), as recorded by the ingestion path.
    Immutable once written. actor_id is None for anonymous viewers.
    """
    impression_id: UUID
    entity_id: str
    observed_at: datetime
    actor_id: Optional[str] = None

    def __post_init__(self):
        if not self.entity_id:
            raise ValueError("Impression.entity_id must be non-empty")
        if self.observed_at.tzinfo is None:
            raise ValueError("Impression.observed_at must be timezone-aware")

    @property
    def is_anonymous(self) -> bool:
        return self.actor_id is None
