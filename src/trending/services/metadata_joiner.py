from typing import List, Optional, Sequence

from src.observability.structured_logger import StructuredRuntimeLogger
from src.trending.domain.exceptions import MetadataUnavailable
from src.trending.domain.scores import RankedEntity
from src.trending.domain.token_metadata import MetadataBatch
from src.trending.domain.trending_result import JoinedEntity
from src.trending.interfaces.token_metadata_source import TokenMetadataSource
from src.trending.services.bounded_caller import BoundedCaller


class MetadataJoiner:
    """
    Attaches display metadata to a ranked list with one batch lookup.
    The output always has the same entities, in the same order, as the input.
    """

    def __init__(
        self,
        source: TokenMetadataSource,
        caller: Optional[BoundedCaller] = None,
        timeout_seconds: Optional[float] = None,
        logger: Optional[StructuredRuntimeLogger] = None,
    ):
        self.source = source
        self.caller = caller
        self.timeout_seconds = timeout_seconds
        self.logger = logger or StructuredRuntimeLogger()

    def join(self, ranked: Sequence[RankedEntity]) -> List[JoinedEntity]:
        if not ranked:
            return []

        batch = self._fetch([r.entity_id for r in ranked])
        if batch.failed:
            self.logger.warning(
                "METADATA_PARTIAL_FAILURE",
                operation="join",
                failed=sorted(batch.failed),
            )
        return [
            JoinedEntity(ranked=r, metadata=batch.found.get(r.entity_id))
            for r in ranked
        ]

    def _fetch(self, entity_ids: List[str]) -> MetadataBatch:
        try:
            if self.caller is not None:
                return self.caller.call(
                    self.source.fetch_many,
                    entity_ids,
                    timeout=self.timeout_seconds,
                    on_timeout=lambda: MetadataUnavailable(
                        f"metadata lookup exceeded {self.timeout_seconds}s"
                    ),
                )
            return self.source.fetch_many(entity_ids)
        except MetadataUnavailable:
            raise
        except Exception as e:
            raise MetadataUnavailable(f"metadata lookup failed: {e.__class__.__name__}") from e
