import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from src.trending.domain.exceptions import MetadataUnavailable
from src.trending.domain.token_metadata import MetadataBatch, TokenMetadata
from src.trending.interfaces.token_metadata_source import TokenMetadataSource

logger = logging.getLogger(__name__)


class DexScreenerTokenMetadataSource(TokenMetadataSource):
    """
    Token images and names from the public DexScreener API.
    Addresses are looked up in batches; a failed batch only blanks its own tokens.
    """

    TOKENS_PATH = "/latest/dex/tokens/{addresses}"
    MAX_BATCH = 30  # API limit on comma-separated addresses

    def __init__(
        self,
        base_url: str = "https://api.dexscreener.com",
        timeout: float = 2.0,
        max_retries: int = 1,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or self._create_session(max_retries)

    def _create_session(self, max_retries: int) -> requests.Session:
        session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=0.2,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def fetch_many(self, token_addresses: Sequence[str]) -> MetadataBatch:
        addresses = list(dict.fromkeys(token_addresses))
        if not addresses:
            return MetadataBatch()

        found: Dict[str, TokenMetadata] = {}
        failed = set()
        batches = [
            addresses[i:i + self.MAX_BATCH]
            for i in range(0, len(addresses), self.MAX_BATCH)
        ]
        for batch in batches:
            try:
                pairs = self._get_pairs(batch)
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"DexScreener lookup failed for {len(batch)} tokens: {e}")
                failed.update(batch)
                continue
            wanted = set(batch)
            for address, metadata in self._index_pairs(pairs).items():
                if address in wanted:
                    found[address] = metadata

        if len(failed) == len(addresses):
            raise MetadataUnavailable("DexScreener unreachable for every requested token")
        return MetadataBatch(found=found, failed=failed)

    def _get_pairs(self, batch: List[str]) -> List[Dict[str, Any]]:
        url = self.base_url + self.TOKENS_PATH.format(addresses=",".join(batch))
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        try:
            payload = response.json()
        except json.JSONDecodeError as e:
            raise ValueError("Invalid JSON response") from e
        if not isinstance(payload, dict):
            raise ValueError("Unexpected DexScreener payload")
        return payload.get("pairs") or []

    @staticmethod
    def _index_pairs(pairs: List[Dict[str, Any]]) -> Dict[str, TokenMetadata]:
        # A token trades in many pairs; keep the first one that carries an image.
        indexed: Dict[str, TokenMetadata] = {}
        for pair in pairs:
            base = pair.get("baseToken") or {}
            address = base.get("address")
            if not address:
                continue
            image_url = (pair.get("info") or {}).get("imageUrl")
            existing = indexed.get(address)
            if existing and (existing.image_url or not image_url):
                continue
            indexed[address] = TokenMetadata(
                token_address=address,
                image_url=image_url,
                token_symbol=base.get("symbol"),
                token_name=base.get("name"),
                dex_screener_url=pair.get("url"),
            )
        return indexed

    def close(self) -> None:
        self.session.close()
