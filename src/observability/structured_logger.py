import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class StructuredRuntimeLogger:
    """
    JSON-lines event logger for ingestion, query and HTTP paths.
    One line per event; fields are serialized with str() as a fallback.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("trending.runtime")

    def emit(self, event_type: str, level: int = logging.INFO, **fields: Any) -> None:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
        }
        payload.update(fields)
        self._logger.log(level, json.dumps(payload, default=str, ensure_ascii=True))

    def error(self, event_type: str, **fields: Any) -> None:
        self.emit(event_type, level=logging.ERROR, **fields)

    def warning(self, event_type: str, **fields: Any) -> None:
        self.emit(event_type, level=logging.WARNING, **fields)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
