from typing import Optional, Union

from src.core.time.time_source import TimeSource
from src.observability.structured_logger import StructuredRuntimeLogger
from src.trending.domain.exceptions import (
    InvalidInput,
    MetadataUnavailable,
    StoreTimeout,
    StoreUnavailable,
)
from src.trending.domain.time_period import TimePeriod, parse_time_period
from src.trending.domain.trending_result import JoinedEntity, TrendingResult
from src.trending.services.bounded_caller import BoundedCaller
from src.trending.services.metadata_joiner import MetadataJoiner
from src.trending.services.trend_ranker import TrendRanker
from src.trending.services.trending_result_cache import TrendingResultCache
from src.trending.services.window_aggregator import WindowAggregator


class TrendingQueryFacade:
    """
    Read path: aggregate -> rank -> join, cached per (limit, period).

    Limits are clamped to [0, max_limit] before ranking. A metadata outage
    either degrades to a ranking without metadata or propagates, depending on
    degrade_on_metadata_outage. Degraded results are cached like any other;
    every entry leaves the cache by TTL expiry only.
    """

    def __init__(
        self,
        aggregator: WindowAggregator,
        ranker: TrendRanker,
        joiner: MetadataJoiner,
        time_source: TimeSource,
        max_limit: int = 50,
        cache_ttl_seconds: float = 30.0,
        caller: Optional[BoundedCaller] = None,
        store_timeout_seconds: Optional[float] = None,
        degrade_on_metadata_outage: bool = True,
        logger: Optional[StructuredRuntimeLogger] = None,
    ):
        if max_limit < 0:
            raise ValueError("max_limit must be >= 0")
        shortest = TimePeriod.shortest()
        if cache_ttl_seconds >= shortest.duration.total_seconds():
            raise ValueError(
                f"cache TTL of {cache_ttl_seconds}s must be shorter than the '{shortest.value}' window"
            )
        self.aggregator = aggregator
        self.ranker = ranker
        self.joiner = joiner
        self.time_source = time_source
        self.max_limit = max_limit
        self.cache: TrendingResultCache[TrendingResult] = TrendingResultCache(time_source, cache_ttl_seconds)
        self.caller = caller
        self.store_timeout_seconds = store_timeout_seconds
        self.degrade_on_metadata_outage = degrade_on_metadata_outage
        self.logger = logger or StructuredRuntimeLogger()

    def clamp_limit(self, limit: int) -> int:
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise InvalidInput("limit must be an integer")
        return max(0, min(limit, self.max_limit))

    def trending(self, limit: int, period: Union[TimePeriod, str]) -> TrendingResult:
        period = parse_time_period(period)
        limit = self.clamp_limit(limit)
        return self.cache.get_or_load(
            (limit, period),
            lambda: self._compute(limit, period),
        )

    def _compute(self, limit: int, period: TimePeriod) -> TrendingResult:
        generated_at = self.time_source.now()
        if limit == 0:
            return TrendingResult(period=period, limit=limit, generated_at=generated_at, entries=[])

        scores = self._aggregate(period)
        ranked = self.ranker.rank(scores, limit)

        degraded = False
        try:
            entries = self.joiner.join(ranked)
        except MetadataUnavailable as e:
            self.logger.error(
                "METADATA_UNAVAILABLE",
                operation="trending",
                period=period.value,
                limit=limit,
                degraded=self.degrade_on_metadata_outage,
                cause=repr(e),
            )
            if not self.degrade_on_metadata_outage:
                raise
            entries = [JoinedEntity(ranked=r) for r in ranked]
            degraded = True

        self.logger.emit(
            "TRENDING_COMPUTED",
            period=period.value,
            limit=limit,
            candidates=len(scores),
            returned=len(entries),
            metadata_degraded=degraded,
        )
        return TrendingResult(
            period=period,
            limit=limit,
            generated_at=generated_at,
            entries=entries,
            metadata_degraded=degraded,
        )

    def _aggregate(self, period: TimePeriod):
        try:
            if self.caller is not None:
                return self.caller.call(
                    self.aggregator.aggregate,
                    period,
                    timeout=self.store_timeout_seconds,
                    on_timeout=lambda: StoreTimeout(
                        f"aggregation exceeded {self.store_timeout_seconds}s"
                    ),
                )
            return self.aggregator.aggregate(period)
        except StoreUnavailable as e:
            self.logger.error(
                "TRENDING_STORE_FAILED",
                operation="aggregate",
                period=period.value,
                cause=repr(e),
            )
            raise
