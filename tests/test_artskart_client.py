import httpx
import pytest

from agdermap.config.settings import get_settings
from agdermap.core.cache import FileCache
from agdermap.ingestion.artskart_client import ArtskartClient, parse_coordinate

RECORDS = [
    {
        "Latitude": "58,1467",
        "Longitude": "7,9956",
        "ScientificName": "Cantharellus cibarius",
        "Name": "kantarell",
        "CollectedDate": "2025-08-30",
        "Locality": "Baneheia",
        "Municipality": "Kristiansand",
        "Status": "",
        "Habitat": "blandingsskog",
        "Institution": "Artsobservasjoner",
    },
    {
        "Latitude": "58.4612",
        "Longitude": "8.7724",
        "ScientificName": "Hygrocybe punicea",
        "Name": "skarlagen vokssopp",
        "CollectedDate": "2025-09-14",
        "Status": "NT",
    },
    {"Latitude": "", "Longitude": "8.1", "ScientificName": "no position"},
    {"Longitude": "8.1"},
    {"Latitude": "abc", "Longitude": "8.1"},
]


def test_get_observations_parses_comma_decimals_and_drops_unplaced(monkeypatch, tmp_path):
    settings = get_settings()
    seen: list[dict] = []

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=15):  # noqa: ARG001
        seen.append(dict(params or {}))
        return {"Observations": RECORDS}

    monkeypatch.setattr("agdermap.ingestion.artskart_client.get_json", fake_get_json)
    client = ArtskartClient(settings, FileCache(tmp_path, enabled=False))

    batch = client.get_observations()

    assert seen == [{"countys[]": 10, "kingdom": "Fungi", "PageSize": 200}]
    assert len(batch.observations) == 2
    assert batch.dropped == 3
    assert batch.source_mode == "live"

    first = batch.observations[0]
    assert (first.lat, first.lon) == (58.1467, 7.9956)
    assert first.status is None
    assert batch.observations[1].status == "NT"
    assert batch.observations[1].locality == ""

    feature = first.to_feature()
    assert feature["geometry"] == {"type": "Point", "coordinates": [7.9956, 58.1467]}
    assert feature["properties"]["name"] == "kantarell"


def test_get_observations_accepts_list_root(monkeypatch, tmp_path):
    monkeypatch.setattr("agdermap.ingestion.artskart_client.get_json", lambda *a, **k: RECORDS[:1])
    client = ArtskartClient(get_settings(), FileCache(tmp_path, enabled=False))
    collection = client.get_observations().to_feature_collection()
    assert collection["type"] == "FeatureCollection"
    assert len(collection["features"]) == 1


def test_get_observations_serves_stale_copy_when_api_is_down(monkeypatch, tmp_path):
    cache = FileCache(tmp_path, enabled=True)
    client = ArtskartClient(get_settings(), cache)

    monkeypatch.setattr("agdermap.core.cache.time.time", lambda: 0)
    monkeypatch.setattr("agdermap.ingestion.artskart_client.get_json", lambda *a, **k: {"observations": RECORDS})
    assert client.get_observations().source_mode == "live"

    def down(*_args, **_kwargs):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr("agdermap.core.cache.time.time", lambda: 10**9)
    monkeypatch.setattr("agdermap.ingestion.artskart_client.get_json", down)

    batch = client.get_observations()
    assert batch.source_mode == "stale"
    assert batch.as_of_unix == 0
    assert len(batch.observations) == 2


def test_get_observations_raises_without_cache(monkeypatch, tmp_path):
    def down(*_args, **_kwargs):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr("agdermap.ingestion.artskart_client.get_json", down)
    client = ArtskartClient(get_settings(), FileCache(tmp_path, enabled=True))
    with pytest.raises(httpx.HTTPError):
        client.get_observations()


@pytest.mark.parametrize(
    "raw,expected",
    [("58,16", 58.16), ("7.99", 7.99), (8.5, 8.5), (" 58,1 ", 58.1), ("", None), (None, None), ("n/a", None)],
)
def test_parse_coordinate(raw, expected):
    assert parse_coordinate(raw) == expected
