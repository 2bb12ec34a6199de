"""
test_assets.py - asset manifest 빌더 테스트

DoD:
- files[0] = JS entry, .css / .css?query = CSS
- 전체 css는 첫 등장 순서로 중복 제거
- hash 활성화 시 chunk 파일 / manifest / favicon에 query 추가
- .appcache asset 자동 탐지
"""

from src.domain.schemas import AssetManifest, Chunk
from src.render.assets import (
    asset_files,
    build_asset_manifest,
    detect_offline_manifest,
    is_hot_update,
)


class TestBuildAssetManifest:
    """build_asset_manifest 테스트."""

    def test_entry_and_css(self):
        chunks = [Chunk(name="main", files=("main.js", "main.css", "main.js.map"), initial=True, size=7, hash="h1")]
        manifest = build_asset_manifest(chunks)

        assert manifest.js == ("main.js",)
        assert manifest.css == ("main.css",)
        assert manifest.chunks["main"].entry == "main.js"
        assert manifest.chunks["main"].size == 7
        assert manifest.chunks["main"].hash == "h1"
        assert manifest.manifest is None

    def test_css_with_query_detected(self):
        chunks = [Chunk(name="main", files=("main.js", "main.css?1e7cac4e"), initial=True)]
        assert build_asset_manifest(chunks).css == ("main.css?1e7cac4e",)

    def test_css_deduplicated_first_occurrence(self):
        chunks = [
            Chunk(name="a", files=("a.js", "shared.css", "a.css"), initial=True),
            Chunk(name="b", files=("b.js", "b.css", "shared.css"), initial=True),
        ]
        manifest = build_asset_manifest(chunks)

        assert manifest.css == ("shared.css", "a.css", "b.css")
        assert manifest.chunks["b"].css == ("b.css", "shared.css")

    def test_hash_busting(self):
        chunks = [Chunk(name="main", files=("main.js", "main.css?v=1"), initial=True)]
        manifest = build_asset_manifest(
            chunks,
            asset_names=["offline.appcache"],
            compilation_hash="abc",
            hash_enabled=True,
            favicon="favicon.ico",
        )

        assert manifest.js == ("main.js?abc",)
        assert manifest.css == ("main.css?v=1&abc",)
        assert manifest.manifest == "offline.appcache?abc"
        assert manifest.favicon == "favicon.ico?abc"

    def test_hash_disabled_leaves_paths(self):
        chunks = [Chunk(name="main", files=("main.js",), initial=True)]
        manifest = build_asset_manifest(chunks, compilation_hash="abc", hash_enabled=False)

        assert manifest.js == ("main.js",)

    def test_chunk_without_files(self):
        manifest = build_asset_manifest([Chunk(name="empty", initial=True)])

        assert manifest.js == ()
        assert manifest.chunks["empty"].entry is None


class TestManifestHelpers:
    """manifest 탐지 / 파일 목록 / hot update."""

    def test_detect_first_appcache(self):
        names = ["main.js", "a.appcache", "b.appcache"]
        assert detect_offline_manifest(names) == "a.appcache"

    def test_detect_none(self):
        assert detect_offline_manifest(["main.js"]) is None

    def test_asset_files_sorted_unique(self):
        manifest = AssetManifest(
            js=("b.js", "a.js"),
            css=("a.css",),
            manifest="x.appcache",
            favicon="favicon.ico",
        )
        assert asset_files(manifest) == ["a.css", "a.js", "b.js", "favicon.ico", "x.appcache"]

    def test_hot_update(self):
        assert is_hot_update(AssetManifest(js=("0.abc.hot-update.js",)))
        assert is_hot_update(AssetManifest(js=("0.abc.hot-update.js?h",)))
        assert not is_hot_update(AssetManifest(js=("0.abc.hot-update.js", "main.js")))
        assert not is_hot_update(AssetManifest())
