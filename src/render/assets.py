"""
Asset manifest 빌더: 정렬된 chunk → js/css/chunk별 정보.

규칙:
- chunk의 files[0] = JS entry (sourcemap 등 나머지 파일은 entry 아님)
- ".css" 로 끝나거나 ".css?..." 인 파일 = CSS
- 전체 css 목록은 첫 등장 순서 유지하며 중복 제거
- hash 활성화 시 manifest, favicon, chunk 파일 모두 cache-busting query 추가
- offline manifest: 첫 번째 ".appcache" asset (없으면 None)
"""

import posixpath
from collections.abc import Iterable, Sequence

from src.core.hashing import append_hash
from src.domain.constants import (
    CSS_FILE_PATTERN,
    HOT_UPDATE_PATTERN,
    OFFLINE_MANIFEST_EXTENSIONS,
)
from src.domain.schemas import AssetManifest, Chunk, ChunkAssets


def detect_offline_manifest(asset_names: Iterable[str]) -> str | None:
    """build asset 중 첫 번째 offline manifest 파일."""
    for name in asset_names:
        if posixpath.splitext(name)[1] in OFFLINE_MANIFEST_EXTENSIONS:
            return name
    return None


def _unique(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def build_asset_manifest(
    chunks: Sequence[Chunk],
    asset_names: Iterable[str] = (),
    compilation_hash: str = "",
    hash_enabled: bool = False,
    favicon: str | None = None,
) -> AssetManifest:
    """
    AssetManifest 생성.

    Args:
        chunks: 선택/정렬된 chunk 목록
        asset_names: host build의 asset 이름 목록 (manifest 탐지용)
        compilation_hash: cache-busting에 사용할 compilation hash
        hash_enabled: cache-busting 활성화 여부
        favicon: favicon asset 경로

    Returns:
        AssetManifest
    """
    manifest = detect_offline_manifest(asset_names)

    if hash_enabled:
        manifest = append_hash(manifest, compilation_hash)
        favicon = append_hash(favicon, compilation_hash)

    js: list[str] = []
    css: list[str] = []
    per_chunk: dict[str, ChunkAssets] = {}

    for chunk in chunks:
        files = list(chunk.files)
        if hash_enabled:
            files = [append_hash(f, compilation_hash) for f in files]

        entry = files[0] if files else None
        chunk_css = [f for f in files if CSS_FILE_PATTERN.search(f)]

        per_chunk[chunk.name] = ChunkAssets(
            entry=entry,
            hash=chunk.hash,
            size=chunk.size,
            css=tuple(chunk_css),
        )
        if entry is not None:
            js.append(entry)
        css.extend(chunk_css)

    # 여러 chunk가 같은 css를 require 하는 경우 중복 발생
    return AssetManifest(
        js=tuple(js),
        css=tuple(_unique(css)),
        chunks=per_chunk,
        manifest=manifest,
        favicon=favicon,
    )


def asset_files(manifest: AssetManifest) -> list[str]:
    """manifest가 참조하는 모든 파일 (정렬, 중복 제거)."""
    files = [*manifest.js, *manifest.css]
    if manifest.manifest:
        files.append(manifest.manifest)
    if manifest.favicon:
        files.append(manifest.favicon)
    return sorted(set(files))


def is_hot_update(manifest: AssetManifest) -> bool:
    """모든 JS entry가 *.hot-update.js 인 경우 (HMR 업데이트 cycle)."""
    return bool(manifest.js) and all(
        HOT_UPDATE_PATTERN.search(name.split("?", 1)[0]) for name in manifest.js
    )
