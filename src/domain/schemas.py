"""
Data schemas for the pipeline.

소유권 규칙:
- WatchQueue 외의 모든 값은 cycle마다 새로 생성 (cycle 간 공유 금지)
- Chunk는 host build가 제공, 읽기 전용
- AssetManifest / TagDescriptor는 생성 후 변경 금지 (frozen)
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.domain.constants import LOADER_SEPARATOR

# =============================================================================
# Template Schemas
# =============================================================================

@dataclass(frozen=True)
class TemplateSource:
    """
    감시 대상 템플릿 소스.

    identity = resolve된 절대 경로
    """
    path: Path
    loader: str

    @property
    def request(self) -> str:
        """loader prefix가 붙은 모듈 참조 (예: html!/abs/index.html)."""
        return f"{self.loader}{LOADER_SEPARATOR}{self.path}"


@dataclass(frozen=True)
class WatchSnapshot:
    """drain 시점의 watch queue 스냅샷. 두 목록은 서로 disjoint."""
    pending_compile: tuple[Path, ...] = ()
    pending_unlink: tuple[Path, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.pending_compile and not self.pending_unlink


@dataclass(frozen=True)
class CompiledTemplate:
    """child compile 결과. content는 렌더된 HTML이 아니라 실행 가능한 모듈 소스."""
    output_name: str
    content: str
    source_path: Path | None = None


# =============================================================================
# Chunk / Asset Schemas
# =============================================================================

@dataclass(frozen=True)
class Chunk:
    """
    host build의 chunk.

    name: names[0] (이름 없는 chunk는 선택 대상에서 제외)
    files: 출력 파일 경로 (files[0] = JS entry)
    """
    name: str | None
    files: tuple[str, ...] = ()
    initial: bool = False
    size: int = 0
    hash: str = ""

    @classmethod
    def from_stats(cls, data: Mapping[str, Any]) -> "Chunk":
        """stats JSON 형태 dict → Chunk. ('names' 또는 'name' 둘 다 허용)"""
        names = data.get("names")
        if names is None:
            name = data.get("name")
        else:
            name = names[0] if names else None

        initial = data.get("initial", data.get("isInitial", False))
        if callable(initial):
            initial = initial()

        return cls(
            name=name,
            files=tuple(data.get("files", ())),
            initial=bool(initial),
            size=int(data.get("size", 0)),
            hash=str(data.get("hash", "")),
        )


@dataclass(frozen=True)
class ChunkAssets:
    """chunk별 asset 정보."""
    entry: str | None
    hash: str
    size: int
    css: tuple[str, ...] = ()


@dataclass(frozen=True)
class AssetManifest:
    """
    cycle마다 새로 계산되는 asset manifest.

    js: chunk 순서대로의 entry 목록
    css: 첫 등장 순서를 유지한 중복 제거 목록
    """
    js: tuple[str, ...] = ()
    css: tuple[str, ...] = ()
    chunks: Mapping[str, ChunkAssets] = field(default_factory=dict)
    manifest: str | None = None
    favicon: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """callable 템플릿 파라미터 / 로그용."""
        return {
            "js": list(self.js),
            "css": list(self.css),
            "chunks": {
                name: {
                    "entry": c.entry,
                    "hash": c.hash,
                    "size": c.size,
                    "css": list(c.css),
                }
                for name, c in self.chunks.items()
            },
            "manifest": self.manifest,
            "favicon": self.favicon,
        }


# =============================================================================
# Tag Schemas
# =============================================================================

@dataclass(frozen=True)
class TagDescriptor:
    """
    주입할 HTML 요소 하나.

    attributes 값:
    - str → name="value"
    - True → bare name
    - False → 생략
    """
    tag_name: str
    attributes: Mapping[str, str | bool] = field(default_factory=dict)
    self_closing: bool = False
    void: bool = False
    inner_html: str | None = None


@dataclass(frozen=True)
class AssetTags:
    """주입 대상별 태그 목록."""
    head: tuple[TagDescriptor, ...] = ()
    body: tuple[TagDescriptor, ...] = ()


# =============================================================================
# Output Schemas
# =============================================================================

@dataclass(frozen=True)
class OutputArtifact:
    """최종 HTML artifact. host asset map에 output_name 키로 등록."""
    output_name: str
    html: str

    def source(self) -> str:
        return self.html

    def size(self) -> int:
        return len(self.html.encode("utf-8"))
