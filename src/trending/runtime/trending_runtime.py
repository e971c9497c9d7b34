import logging
from dataclasses import dataclass
from typing import Optional

from src.config.settings import Settings
from src.core.time.system_time_source import SystemTimeSource
from src.core.time.time_source import TimeSource
from src.observability.structured_logger import StructuredRuntimeLogger
from src.trending.adapters.dexscreener_metadata_source import DexScreenerTokenMetadataSource
from src.trending.adapters.in_memory_metadata_source import InMemoryTokenMetadataSource
from src.trending.domain.retention_policy import ImpressionRetentionPolicy
from src.trending.domain.scores import ScoringMode
from src.trending.interfaces.impression_store import ImpressionStore
from src.trending.interfaces.token_metadata_source import TokenMetadataSource
from src.trending.services.bounded_caller import BoundedCaller
from src.trending.services.impression_ingestion import ImpressionIngestionService
from src.trending.services.metadata_joiner import MetadataJoiner
from src.trending.services.retention_pruner import RetentionPruner
from src.trending.services.score_decay import ExponentialScoreDecay
from src.trending.services.trend_ranker import TrendRanker
from src.trending.services.trending_query_facade import TrendingQueryFacade
from src.trending.services.window_aggregator import WindowAggregator
from src.trending.store.in_memory_impression_store import InMemoryImpressionStore
from src.trending.store.sql_impression_store import SqlImpressionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrendingRuntimeConfig:
    default_limit: int = 5
    max_limit: int = 50
    cache_ttl_seconds: float = 30.0
    scoring_mode: ScoringMode = ScoringMode.COUNT
    decay_lambda_per_hour: float = 0.1
    store_timeout_seconds: Optional[float] = 2.0
    metadata_timeout_seconds: Optional[float] = 2.0
    degrade_on_metadata_outage: bool = True
    retention: ImpressionRetentionPolicy = ImpressionRetentionPolicy()
    start_pruner: bool = True
    io_workers: int = 8

    @classmethod
    def from_settings(cls, settings: Settings) -> "TrendingRuntimeConfig":
        return cls(
            default_limit=settings.TRENDING_DEFAULT_LIMIT,
            max_limit=settings.TRENDING_MAX_LIMIT,
            cache_ttl_seconds=settings.TRENDING_CACHE_TTL_SECONDS,
            scoring_mode=ScoringMode(settings.TRENDING_SCORING_MODE.strip().lower()),
            decay_lambda_per_hour=settings.TRENDING_DECAY_LAMBDA_PER_HOUR,
            store_timeout_seconds=settings.STORE_TIMEOUT_SECONDS,
            metadata_timeout_seconds=settings.METADATA_TIMEOUT_SECONDS,
            degrade_on_metadata_outage=settings.DEGRADE_ON_METADATA_OUTAGE,
            retention=ImpressionRetentionPolicy(
                max_age_days=settings.IMPRESSION_RETENTION_DAYS,
                prune_interval_seconds=settings.RETENTION_PRUNE_INTERVAL_SECONDS,
            ),
        )


class TrendingRuntime:
    """
    Process-level wiring: store -> ingestion, store -> aggregator -> ranker -> joiner -> facade.
    Owns the lifecycle of the store, the metadata client, the I/O pool and the pruner thread.
    """

    def __init__(
        self,
        store: ImpressionStore,
        metadata_source: TokenMetadataSource,
        time_source: Optional[TimeSource] = None,
        config: Optional[TrendingRuntimeConfig] = None,
        structured_logger: Optional[StructuredRuntimeLogger] = None,
    ):
        self.store = store
        self.metadata_source = metadata_source
        self.time_source = time_source or SystemTimeSource()
        self.config = config or TrendingRuntimeConfig()
        self.structured_logger = structured_logger or StructuredRuntimeLogger()
        self.caller = BoundedCaller(max_workers=self.config.io_workers)

        self.ingestion = ImpressionIngestionService(
            store=self.store,
            time_source=self.time_source,
            caller=self.caller,
            timeout_seconds=self.config.store_timeout_seconds,
            logger=self.structured_logger,
        )
        decay = None
        if self.config.scoring_mode == ScoringMode.DECAY:
            decay = ExponentialScoreDecay.per_hour(self.config.decay_lambda_per_hour)
        self.aggregator = WindowAggregator(
            store=self.store,
            time_source=self.time_source,
            mode=self.config.scoring_mode,
            decay=decay,
        )
        self.joiner = MetadataJoiner(
            source=self.metadata_source,
            caller=self.caller,
            timeout_seconds=self.config.metadata_timeout_seconds,
            logger=self.structured_logger,
        )
        self.facade = TrendingQueryFacade(
            aggregator=self.aggregator,
            ranker=TrendRanker(),
            joiner=self.joiner,
            time_source=self.time_source,
            max_limit=self.config.max_limit,
            cache_ttl_seconds=self.config.cache_ttl_seconds,
            caller=self.caller,
            store_timeout_seconds=self.config.store_timeout_seconds,
            degrade_on_metadata_outage=self.config.degrade_on_metadata_outage,
            logger=self.structured_logger,
        )
        self.pruner = RetentionPruner(
            store=self.store,
            time_source=self.time_source,
            policy=self.config.retention,
            structured_logger=self.structured_logger,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "TrendingRuntime":
        if settings.DATABASE_URL:
            store: ImpressionStore = SqlImpressionStore.from_dsn(
                settings.DATABASE_URL,
                statement_timeout_ms=settings.DB_STATEMENT_TIMEOUT_MS,
            )
        else:
            logger.warning("DATABASE_URL not set; impressions are kept in memory only")
            store = InMemoryImpressionStore()

        provider = settings.METADATA_PROVIDER.strip().lower()
        if provider == "dexscreener":
            metadata_source: TokenMetadataSource = DexScreenerTokenMetadataSource(
                base_url=settings.DEXSCREENER_BASE_URL,
                timeout=settings.METADATA_TIMEOUT_SECONDS,
            )
        elif provider == "memory":
            metadata_source = InMemoryTokenMetadataSource()
        else:
            raise ValueError(f"Unknown METADATA_PROVIDER: {settings.METADATA_PROVIDER!r}")

        return cls(store=store, metadata_source=metadata_source, config=TrendingRuntimeConfig.from_settings(settings))

    def start(self) -> None:
        if self.config.start_pruner:
            self.pruner.start()
        self.structured_logger.emit("TRENDING_RUNTIME_STARTED", store=type(self.store).__name__)

    def stop(self) -> None:
        self.pruner.stop()
        self.caller.shutdown()
        self.store.close()
        self.metadata_source.close()
        self.structured_logger.emit("TRENDING_RUNTIME_STOPPED")
