import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from conftest import png_bytes

from utils.errors import FetchError
from utils.osu_api import BeatmapMetadata, OsuAPI

API_KEY = "secret-key"
OSU_FILE = b"osu file format v14\n\n[General]\nMode: 0\n"
BEATMAP_JSON = [
    {
        "beatmap_id": "67890",
        "beatmapset_id": "12345",
        "artist": "xi",
        "title": "FREEDOM DiVE",
        "version": "FOUR DIMENSIONS",
        "diff_approach": "10",
        "diff_overall": "8",
        "diff_size": "4",
        "diff_drain": "6",
        "difficultyrating": "7.63",
        "bpm": "222.22",
        "max_combo": "2385",
    }
]


async def cover(request: web.Request) -> web.Response:
    if request.match_info["mapset_id"] != "12345":
        return web.Response(status=404, text="Not Found")
    return web.Response(body=png_bytes((1, 2, 3)), content_type="image/jpeg")


async def osu_file(request: web.Request) -> web.Response:
    beatmap_id = request.match_info["beatmap_id"]
    if beatmap_id == "67890":
        return web.Response(body=OSU_FILE)
    if beatmap_id == "999":
        await asyncio.sleep(2)
        return web.Response(body=OSU_FILE)
    if beatmap_id == "500":
        return web.Response(status=500)
    return web.Response(body=b"")


async def get_beatmaps(request: web.Request) -> web.Response:
    if request.query.get("k") != API_KEY:
        return web.json_response({"error": "Please provide a valid API key."}, status=401)
    beatmap_id = request.query.get("b")
    if beatmap_id == "67890":
        return web.json_response(BEATMAP_JSON)
    if beatmap_id == "2":
        return web.Response(text="<html>oops</html>", content_type="text/html")
    return web.json_response([])


@pytest.fixture
async def server():
    app = web.Application()
    app.router.add_get("/beatmaps/{mapset_id}/covers/cover.jpg", cover)
    app.router.add_get("/osu/{beatmap_id}", osu_file)
    app.router.add_get("/api/get_beatmaps", get_beatmaps)
    test_server = TestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


def make_client(server: TestServer, api_key: str = API_KEY, timeout: float = 5.0) -> OsuAPI:
    base = str(server.make_url("/")).rstrip("/")
    return OsuAPI(api_key, timeout=timeout, assets_url=base, web_url=base, api_url=f"{base}/api")


@pytest.fixture
async def client(server):
    api = make_client(server)
    await api.setup()
    yield api
    await api.close()


def test_cover_url_uses_assets_host():
    api = OsuAPI("k")
    assert api.cover_url(12345) == "https://assets.ppy.sh/beatmaps/12345/covers/cover.jpg"


async def test_get_cover_image(client):
    assert await client.get_cover_image(12345) == png_bytes((1, 2, 3))


async def test_cover_not_found(client):
    with pytest.raises(FetchError) as excinfo:
        await client.get_cover_image(1)
    assert excinfo.value.status == 404


async def test_get_osu_file(client):
    assert await client.get_osu_file(67890) == OSU_FILE


async def test_osu_file_empty_body_is_a_failure(client):
    with pytest.raises(FetchError, match="empty"):
        await client.get_osu_file(1)


async def test_osu_file_server_error(client):
    with pytest.raises(FetchError) as excinfo:
        await client.get_osu_file(500)
    assert excinfo.value.status == 500


async def test_timeout_is_a_fetch_error(server):
    api = make_client(server, timeout=0.2)
    try:
        with pytest.raises(FetchError, match="timed out"):
            await api.get_osu_file(999)
    finally:
        await api.close()


async def test_connection_refused_is_a_fetch_error():
    api = OsuAPI(API_KEY, timeout=2, web_url="http://127.0.0.1:9")
    try:
        with pytest.raises(FetchError):
            await api.get_osu_file(67890)
    finally:
        await api.close()


async def test_get_beatmap(client):
    meta = await client.get_beatmap(67890)
    assert meta == BeatmapMetadata(
        beatmap_id=67890,
        beatmapset_id=12345,
        artist="xi",
        title="FREEDOM DiVE",
        version="FOUR DIMENSIONS",
        approach_rate=10.0,
        overall_difficulty=8.0,
        circle_size=4.0,
        health_drain=6.0,
        star_rating=7.63,
        bpm=222.22,
        max_combo=2385,
    )
    assert meta.display_name == "xi - FREEDOM DiVE\n[FOUR DIMENSIONS]"


async def test_unknown_beatmap(client):
    with pytest.raises(FetchError, match="not found"):
        await client.get_beatmap(1)


async def test_non_json_metadata(client):
    with pytest.raises(FetchError):
        await client.get_beatmap(2)


async def test_bad_key_does_not_leak_into_error(server):
    api = make_client(server, api_key="wrong-key")
    try:
        with pytest.raises(FetchError) as excinfo:
            await api.get_beatmap(67890)
    finally:
        await api.close()
    assert excinfo.value.status == 401
    assert "wrong-key" not in str(excinfo.value)
    assert "wrong-key" not in (excinfo.value.url or "")


def test_metadata_tolerates_missing_stats():
    meta = BeatmapMetadata.from_api_v1({"beatmap_id": "5", "diff_approach": None, "max_combo": None})
    assert meta.approach_rate is None
    assert meta.max_combo is None
    assert meta.display_name == "Unknown Artist - Unknown Title\n[Unknown Version]"
