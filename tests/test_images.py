import asyncio
import json

import pytest

from processor import images
from processor.images import (
    ImageFetchError,
    download_image,
    download_images,
    extract_image_urls,
    get_local_path,
    localize_images,
    rewrite_image_urls,
)

URL_A = "https://nanoreview.net/common/images/laptop/macbook-air-m3.jpeg"
URL_B = "https://nanoreview.net/common/images/gpu/rtx-4060.png"
URL_MISSING = "https://nanoreview.net/common/images/cpu/missing.jpeg"


class FakeResponse:
    def __init__(self, status, body=b""):
        self.status = status
        self._body = body

    async def read(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Minimal stand-in for aiohttp.ClientSession.get()."""

    def __init__(self, responses):
        self.responses = responses
        self.requested = []

    def get(self, url, **kwargs):
        self.requested.append(url)
        result = self.responses.get(url, FakeResponse(404))
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture(autouse=True)
def no_delay(monkeypatch):
    monkeypatch.setattr(images, "DELAY_BETWEEN_BATCHES", 0)


def test_get_local_path(tmp_path):
    target = get_local_path(URL_A, tmp_path)
    assert target.filename == "laptop-macbook-air-m3.jpeg"
    assert target.local_path == tmp_path / "laptop-macbook-air-m3.jpeg"
    assert target.local_url == "/images/laptop-macbook-air-m3.jpeg"


def test_get_local_path_ignores_query_and_trailing_slash(tmp_path):
    target = get_local_path("https://nanoreview.net/common/images/cpu/m3.jpeg/?w=200", tmp_path)
    assert target.filename == "cpu-m3.jpeg"


def test_get_local_path_too_short(tmp_path):
    assert get_local_path("https://nanoreview.net/logo.png", tmp_path) is None


def test_extract_image_urls_unique_in_order():
    data = [
        [{"id": "1", "images": {"main": URL_A}}, {"id": "2", "images": {"main": URL_B}}],
        [{"id": "3", "images": {"main": URL_A}}, {"id": "4", "images": {"main": "/images/local.png"}}],
        [{"id": "5", "images": {}}, {"id": "6", "images": {"main": None}}],
    ]
    assert extract_image_urls(data) == [URL_A, URL_B]


def test_rewrite_image_urls():
    data = [{"images": {"main": URL_A}}, {"images": {"main": URL_B}}, {"images": {"main": URL_A}}]
    replaced = rewrite_image_urls(data, {URL_A: "/images/laptop-macbook-air-m3.jpeg"})

    assert replaced == 2
    assert data[0]["images"]["main"] == "/images/laptop-macbook-air-m3.jpeg"
    assert data[1]["images"]["main"] == URL_B


def test_download_image_writes_file(tmp_path):
    session = FakeSession({URL_A: FakeResponse(200, b"jpeg-bytes")})
    path = tmp_path / "sub" / "a.jpeg"

    assert asyncio.run(download_image(session, URL_A, path)) is True
    assert path.read_bytes() == b"jpeg-bytes"


def test_download_image_skips_existing(tmp_path):
    path = tmp_path / "a.jpeg"
    path.write_bytes(b"old")
    session = FakeSession({URL_A: FakeResponse(200, b"new")})

    assert asyncio.run(download_image(session, URL_A, path)) is False
    assert path.read_bytes() == b"old"
    assert session.requested == []


def test_download_image_http_error(tmp_path):
    session = FakeSession({URL_A: FakeResponse(503)})
    path = tmp_path / "a.jpeg"

    with pytest.raises(ImageFetchError):
        asyncio.run(download_image(session, URL_A, path))
    assert not path.exists()


def test_download_images_counts_failures_without_aborting(tmp_path):
    (tmp_path / "gpu-rtx-4060.png").write_bytes(b"cached")
    session = FakeSession({
        URL_A: FakeResponse(200, b"a"),
        URL_MISSING: OSError("connection reset"),
    })

    urls = [URL_A, URL_B, URL_MISSING, "https://nanoreview.net/x.png"]
    stats, url_map = asyncio.run(download_images(urls, tmp_path, session))

    assert stats == {"total": 4, "downloaded": 1, "skipped": 1, "failed": 2}
    assert url_map == {
        URL_A: "/images/laptop-macbook-air-m3.jpeg",
        URL_B: "/images/gpu-rtx-4060.png",
    }
    assert (tmp_path / "laptop-macbook-air-m3.jpeg").read_bytes() == b"a"


def test_download_images_is_idempotent(tmp_path):
    session = FakeSession({URL_A: FakeResponse(200, b"a")})
    asyncio.run(download_images([URL_A], tmp_path, session))
    stats, _ = asyncio.run(download_images([URL_A], tmp_path, session))

    assert stats["skipped"] == 1
    assert session.requested == [URL_A]


def test_download_images_fetches_shared_file_once(tmp_path):
    plain = "https://nanoreview.net/common/images/cpu/m3.jpeg"
    sized = "https://nanoreview.net/common/images/cpu/m3.jpeg/?w=200"
    session = FakeSession({plain: FakeResponse(200, b"m3"), sized: FakeResponse(200, b"m3-small")})

    stats, url_map = asyncio.run(download_images([plain, sized], tmp_path, session))

    assert session.requested == [plain]
    assert stats == {"total": 2, "downloaded": 1, "skipped": 1, "failed": 0}
    assert url_map == {plain: "/images/cpu-m3.jpeg", sized: "/images/cpu-m3.jpeg"}
    assert (tmp_path / "cpu-m3.jpeg").read_bytes() == b"m3"


def test_download_images_shared_file_failure_counts_every_url(tmp_path):
    plain = "https://nanoreview.net/common/images/cpu/m3.jpeg"
    sized = "https://nanoreview.net/common/images/cpu/m3.jpeg/?w=200"
    session = FakeSession({plain: FakeResponse(500)})

    stats, url_map = asyncio.run(download_images([plain, sized], tmp_path, session))

    assert session.requested == [plain]
    assert stats["failed"] == 2
    assert url_map == {}


def test_localize_images(tmp_path):
    data_dir = tmp_path / "data"
    images_dir = tmp_path / "images"
    data_dir.mkdir()
    (data_dir / "laptops.json").write_text(json.dumps([
        {"id": "1", "images": {"main": URL_A}},
        {"id": "2", "images": {"main": URL_MISSING}},
    ]), encoding="utf-8")
    (data_dir / "gpus.json").write_text(json.dumps([{"id": "3", "images": {"main": URL_B}}]), encoding="utf-8")

    session = FakeSession({URL_A: FakeResponse(200, b"a"), URL_B: FakeResponse(200, b"b")})
    stats = localize_images(data_dir, images_dir, ["laptops.json", "gpus.json", "cpus.json"], session)

    assert stats["downloaded"] == 2
    assert stats["failed"] == 1
    assert stats["rewritten"] == 2

    laptops = json.loads((data_dir / "laptops.json").read_text(encoding="utf-8"))
    assert laptops[0]["images"]["main"] == "/images/laptop-macbook-air-m3.jpeg"
    # Failed downloads keep their remote URL
    assert laptops[1]["images"]["main"] == URL_MISSING
    gpus = json.loads((data_dir / "gpus.json").read_text(encoding="utf-8"))
    assert gpus[0]["images"]["main"] == "/images/gpu-rtx-4060.png"
    assert not (data_dir / "cpus.json").exists()
