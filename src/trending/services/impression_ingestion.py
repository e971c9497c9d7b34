import logging
from typing import Optional
from uuid import uuid4

from src.core.time.time_source import TimeSource
from src.observability.structured_logger import StructuredRuntimeLogger
from src.trending.domain.exceptions import InvalidInput, StoreTimeout, StoreUnavailable
from src.trending.domain.impression import Impression
from src.trending.interfaces.impression_store import ImpressionStore
from src.trending.services.bounded_caller import BoundedCaller


class ImpressionIngestionService:
    """
    Write path: validates, stamps with the server clock, appends.
    Failures are logged and propagated; retrying is left to the client.
    """

    def __init__(
        self,
        store: ImpressionStore,
        time_source: TimeSource,
        caller: Optional[BoundedCaller] = None,
        timeout_seconds: Optional[float] = None,
        logger: Optional[StructuredRuntimeLogger] = None,
    ):
        self.store = store
        self.time_source = time_source
        self.caller = caller
        self.timeout_seconds = timeout_seconds
        self.logger = logger or StructuredRuntimeLogger()

    def record(self, entity_id: Optional[str], actor_id: Optional[str] = None) -> Impression:
        entity_id = self._normalize_entity_id(entity_id)
        impression = Impression(
            impression_id=uuid4(),
            entity_id=entity_id,
            actor_id=self._normalize_actor_id(actor_id),
            observed_at=self.time_source.now(),
        )

        try:
            if self.caller is not None:
                self.caller.call(
                    self.store.append,
                    impression,
                    timeout=self.timeout_seconds,
                    on_timeout=lambda: StoreTimeout(
                        f"impression append exceeded {self.timeout_seconds}s"
                    ),
                )
            else:
                self.store.append(impression)
        except StoreUnavailable as e:
            self.logger.error(
                "IMPRESSION_STORE_FAILED",
                operation="record",
                entity_id=entity_id,
                cause=repr(e),
            )
            raise
        except Exception as e:
            self.logger.error(
                "IMPRESSION_STORE_FAILED",
                operation="record",
                entity_id=entity_id,
                cause=repr(e),
            )
            raise StoreUnavailable("impression append failed") from e

        self.logger.emit(
            "IMPRESSION_RECORDED",
            level=logging.DEBUG,
            entity_id=entity_id,
            anonymous=impression.is_anonymous,
        )
        return impression

    @staticmethod
    def _normalize_entity_id(entity_id) -> str:
        if entity_id is None:
            raise InvalidInput("entity_id is required")
        if not isinstance(entity_id, str):
            raise InvalidInput("entity_id must be a string")
        entity_id = entity_id.strip()
        if not entity_id:
            raise InvalidInput("entity_id is required")
        return entity_id

    @staticmethod
    def _normalize_actor_id(actor_id) -> Optional[str]:
        # "" and whitespace collapse to anonymous
        if actor_id is None:
            return None
        if not isinstance(actor_id, str):
            raise InvalidInput("actor_id must be a string")
        actor_id = actor_id.strip()
        return actor_id or None
