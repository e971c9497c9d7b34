from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.trending.domain.scores import RankedEntity
from src.trending.domain.time_period import TimePeriod
from src.trending.domain.token_metadata import TokenMetadata


@dataclass(frozen=True)
class JoinedEntity:
    ranked: RankedEntity
    metadata: Optional[TokenMetadata] = None

    @property
    def image_url(self) -> Optional[str]:
        return self.metadata.image_url if self.metadata else None


@dataclass(frozen=True)
class TrendingResult:
    period: TimePeriod
    limit: int
    generated_at: datetime
    entries: List[JoinedEntity]
    metadata_degraded: bool = False

    def entity_ids(self) -> List[str]:
        return [e.ranked.entity_id for e in self.entries]

    def token_images(self) -> Dict[str, str]:
        return {
            e.ranked.entity_id: e.image_url
            for e in self.entries
            if e.image_url
        }

    def to_payload(self) -> Dict[str, Any]:
        tokens = []
        for entry in self.entries:
            meta = entry.metadata
            tokens.append({
                "token_address": entry.ranked.entity_id,
                "rank": entry.ranked.rank,
                "trending_score": entry.ranked.score,
                "impression_count": entry.ranked.count,
                "token_symbol": meta.token_symbol if meta else None,
                "token_name": meta.token_name if meta else None,
                "dex_screener_url": meta.dex_screener_url if meta else None,
                "image_url": entry.image_url,
            })
        return {
            "tokens": tokens,
            "tokenImages": self.token_images(),
            "timePeriod": self.period.value,
            "limit": self.limit,
            "generatedAt": self.generated_at.isoformat(),
            "metadataDegraded": self.metadata_degraded,
        }
