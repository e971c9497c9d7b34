from dataclasses import dataclass, field
from typing import Dict, Optional, Set


@dataclass(frozen=True)
class TokenMetadata:
    """
    Display data for a token. Every field except the address may be missing.
    """
    token_address: str
    image_url: Optional[str] = None
    token_symbol: Optional[str] = None
    token_name: Optional[str] = None
    dex_screener_url: Optional[str] = None


@dataclass(frozen=True)
class MetadataBatch:
    """
    Result of one batch lookup.
    Ids in `found` resolved; ids in `failed` errored individually;
    any other requested id simply has no metadata.
    """
    found: Dict[str, TokenMetadata] = field(default_factory=dict)
    failed: Set[str] = field(default_factory=set)
