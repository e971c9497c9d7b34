import pytest
import requests

from src.trending.adapters.dexscreener_metadata_source import DexScreenerTokenMetadataSource
from src.trending.domain.exceptions import MetadataUnavailable


class _Response:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")

    def json(self):
        return self._payload


class _Session:
    def __init__(self, handler):
        self.handler = handler
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        return self.handler(url)

    def close(self):
        return


def _pair(address, image=None, symbol="TKN"):
    pair = {
        "url": f"https://dexscreener.com/solana/{address.lower()}",
        "baseToken": {"address": address, "symbol": symbol, "name": f"{symbol} token"},
    }
    if image:
        pair["info"] = {"imageUrl": image}
    return pair


def test_maps_pairs_to_token_metadata():
    session = _Session(lambda url: _Response({"pairs": [
        _pair("AAA"),
        _pair("AAA", image="https://img/aaa.png"),
        _pair("ZZZ", image="https://img/zzz.png"),
    ]}))
    source = DexScreenerTokenMetadataSource(base_url="https://api.test/", session=session)

    batch = source.fetch_many(["AAA", "BBB"])

    assert session.urls == ["https://api.test/latest/dex/tokens/AAA,BBB"]
    assert set(batch.found) == {"AAA"}
    assert batch.found["AAA"].image_url == "https://img/aaa.png"
    assert batch.found["AAA"].token_symbol == "TKN"
    assert batch.failed == set()


def test_failed_batch_only_blanks_its_tokens():
    addresses = [f"T{i:02d}" for i in range(35)]

    def handler(url):
        if "T00" in url:
            raise requests.ConnectionError("reset")
        return _Response({"pairs": [_pair(a, image=f"https://img/{a}.png") for a in addresses[30:]]})

    source = DexScreenerTokenMetadataSource(session=_Session(handler))
    batch = source.fetch_many(addresses)

    assert batch.failed == set(addresses[:30])
    assert set(batch.found) == set(addresses[30:])


def test_every_batch_failing_is_an_outage():
    source = DexScreenerTokenMetadataSource(session=_Session(lambda url: _Response({}, status_code=503)))
    with pytest.raises(MetadataUnavailable):
        source.fetch_many(["AAA"])


def test_no_addresses_no_request():
    session = _Session(lambda url: _Response({"pairs": []}))
    assert DexScreenerTokenMetadataSource(session=session).fetch_many([]).found == {}
    assert session.urls == []
