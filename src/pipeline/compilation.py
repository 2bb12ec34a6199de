"""
Host build handle: asset map, chunk 통계, file dependency, lifecycle hook.

host build 시스템 (bundling, chunk graph, content hash)은 외부 협력자.
이 모듈은 그 경계만 표현한다:
- assets: {경로: source()/size()} (플러그인이 쓰고 지움)
- chunks: 현재 chunk graph 통계
- hash: compilation hash (없으면 asset 내용으로 계산)
- plugin_state: make hook이 emit hook에 넘기는 cycle 상태 (플러그인 이름 키)
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from filelock import FileLock

from src.core.fileio import atomic_write_text
from src.core.hashing import compute_compilation_hash
from src.domain.schemas import Chunk

logger = logging.getLogger(__name__)

OUTPUT_LOCK_FILENAME = ".html-watch.lock"


class Asset(Protocol):
    def source(self) -> str | bytes: ...

    def size(self) -> int: ...


@dataclass(frozen=True)
class RawAsset:
    """host build가 만든 일반 asset."""
    content: str | bytes

    def source(self) -> str | bytes:
        return self.content

    def size(self) -> int:
        if isinstance(self.content, bytes):
            return len(self.content)
        return len(self.content.encode("utf-8"))


@dataclass
class Compilation:
    """
    build cycle 하나의 host compilation.

    Usage:
        compilation = Compilation(chunks=[...], assets={"main.js": RawAsset("...")})
        await hooks.run(compilation)
        compilation.write_assets(output_dir)
    """
    chunks: list[Chunk] = field(default_factory=list)
    assets: dict[str, Asset] = field(default_factory=dict)
    hash: str = ""
    output_path: Path | None = None
    file_dependencies: list[str] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)
    # 플러그인별 make → emit 전달 상태 (compilation 수명과 동일)
    plugin_state: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_stats(
        cls,
        stats: Mapping[str, Any],
        assets: Mapping[str, Asset] | None = None,
        **kwargs: Any,
    ) -> "Compilation":
        """stats JSON ({"chunks": [...], "hash": ...}) 기반 생성."""
        chunks = [Chunk.from_stats(c) for c in stats.get("chunks", [])]
        return cls(
            chunks=chunks,
            assets=dict(assets or {}),
            hash=stats.get("hash", ""),
            **kwargs,
        )

    def get_chunks(self) -> list[Chunk]:
        """현재 chunk graph (복사본)."""
        return list(self.chunks)

    def get_hash(self) -> str:
        if not self.hash:
            self.hash = compute_compilation_hash(self.assets)
        return self.hash

    def set_asset(self, name: str, asset: Asset) -> None:
        self.assets[name] = asset

    def delete_asset(self, name: str) -> bool:
        """asset 삭제. 존재했으면 True."""
        return self.assets.pop(name, None) is not None

    def add_file_dependency(self, path: str) -> None:
        if path not in self.file_dependencies:
            self.file_dependencies.append(path)

    def remove_file_dependency(self, path: str) -> None:
        if path in self.file_dependencies:
            self.file_dependencies.remove(path)

    def write_assets(self, output_dir: Path, names: Iterable[str] | None = None) -> list[Path]:
        """
        asset을 디스크에 기록 (출력 디렉터리 락 + 원자적 쓰기).

        Args:
            output_dir: 출력 디렉터리
            names: 기록할 asset 이름 (None이면 전체)

        Returns:
            기록된 파일 경로 목록
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        selected = list(self.assets) if names is None else list(names)
        written = []

        with FileLock(str(output_dir / OUTPUT_LOCK_FILENAME)):
            for name in selected:
                source = self.assets[name].source()
                target = output_dir / name
                if isinstance(source, bytes):
                    target.parent.mkdir(parents=True, exist_ok=True)
                    target.write_bytes(source)
                else:
                    atomic_write_text(target, source)
                written.append(target)

        logger.info(f"Wrote {len(written)} asset(s) to {output_dir}")
        return written


Hook = Callable[[Compilation], Awaitable[Any]]


@dataclass
class BuildHooks:
    """
    host lifecycle hook 등록부.

    make: 모든 child compilation이 끝나야 완료
    emit: 모든 artifact가 등록돼야 완료
    """
    make: list[Hook] = field(default_factory=list)
    emit: list[Hook] = field(default_factory=list)

    async def run(self, compilation: Compilation) -> Compilation:
        """make hook 전부 → emit hook 전부 (등록 순서)."""
        for hook in self.make:
            await hook(compilation)
        for hook in self.emit:
            await hook(compilation)
        return compilation
