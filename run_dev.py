import sys
import os

# Ensure src is in python path
sys.path.append(os.path.join(os.path.dirname(__file__), "src"))

from src.config.settings import settings
from src.observability.structured_logger import configure_logging
from src.trending.adapters.in_memory_metadata_source import InMemoryTokenMetadataSource
from src.trending.api.trending_api import run_server
from src.trending.domain.token_metadata import TokenMetadata
from src.trending.runtime.trending_runtime import TrendingRuntime

DEMO_TOKENS = [
    TokenMetadata(
        token_address="So11111111111111111111111111111111111111112",
        image_url="https://dd.dexscreener.com/ds-data/tokens/solana/So11111111111111111111111111111111111111112.png",
        token_symbol="SOL",
        token_name="Wrapped SOL",
        dex_screener_url="https://dexscreener.com/solana/so11111111111111111111111111111111111111112",
    ),
    TokenMetadata(
        token_address="DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
        image_url="https://dd.dexscreener.com/ds-data/tokens/solana/DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263.png",
        token_symbol="BONK",
        token_name="Bonk",
        dex_screener_url="https://dexscreener.com/solana/dezxaz8z7pnrnrjjz3wxborgixca6xjnb7yab1ppb263",
    ),
]


def main():
    configure_logging(settings.LOG_LEVEL)
    print("Initializing DEV environment...")

    runtime = TrendingRuntime.from_settings(settings)

    # Seed display data and a few views so /trending-tokens has something to show
    if isinstance(runtime.metadata_source, InMemoryTokenMetadataSource):
        for token in DEMO_TOKENS:
            runtime.metadata_source.put(token)
    for token, views in zip(DEMO_TOKENS, (3, 1)):
        for _ in range(views):
            runtime.ingestion.record(token.token_address)

    print(f"Serving on http://{settings.HOST}:{settings.PORT}")
    run_server(runtime, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
