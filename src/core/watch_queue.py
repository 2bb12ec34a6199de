"""
Watch queue: cycle 사이에 쌓인 add/change/unlink 경로 관리.

규칙:
- pending_compile (add/change) 와 pending_unlink (remove)는 항상 disjoint
- 같은 경로의 마지막 이벤트가 이김 (unlink 후 add → compile)
- drain()은 atomic read-and-clear, cycle마다 한 번
- 시작 시 glob 매칭된 모든 파일이 pending_compile (첫 cycle에서 전부 compile)

watchdog 콜백은 백그라운드 스레드에서 호출되므로 threading.Lock으로 보호.
"""

import glob
import logging
import threading
from collections.abc import Iterable
from pathlib import Path

from src.domain.schemas import WatchSnapshot

logger = logging.getLogger(__name__)


def _identity(path: str | Path) -> Path:
    """템플릿 identity = resolve된 절대 경로."""
    return Path(path).resolve()


def match_templates(patterns: Iterable[str]) -> list[Path]:
    """
    glob 패턴 목록에 매칭되는 파일 목록 (패턴 순서, 중복 제거).

    Args:
        patterns: glob 패턴 목록 (** 지원)

    Returns:
        resolve된 파일 경로 목록
    """
    seen: set[Path] = set()
    matched: list[Path] = []
    for pattern in patterns:
        for hit in sorted(glob.glob(str(pattern), recursive=True)):
            path = _identity(hit)
            if path.is_file() and path not in seen:
                seen.add(path)
                matched.append(path)
    return matched


class WatchQueue:
    """
    add/change/unlink 이벤트 큐.

    Usage:
        queue = WatchQueue.from_patterns(["src/views/**/*.html"])
        queue.enqueue_changed(path)
        snapshot = queue.drain()
    """

    def __init__(self, initial: Iterable[str | Path] = ()):
        self._lock = threading.Lock()
        self._compile: list[Path] = []
        self._unlink: list[Path] = []
        for path in initial:
            self.enqueue_changed(path)

    @classmethod
    def from_patterns(cls, patterns: Iterable[str]) -> "WatchQueue":
        """1회 glob 매칭 결과로 초기화."""
        matched = match_templates(patterns)
        logger.info(f"Initial template snapshot: {len(matched)} file(s)")
        return cls(matched)

    def enqueue_changed(self, path: str | Path) -> None:
        """add/change 이벤트."""
        key = _identity(path)
        with self._lock:
            if key in self._unlink:
                self._unlink.remove(key)
            if key not in self._compile:
                self._compile.append(key)

    def enqueue_unlinked(self, path: str | Path) -> None:
        """unlink 이벤트. 같은 경로의 pending compile은 취소."""
        key = _identity(path)
        with self._lock:
            if key in self._compile:
                self._compile.remove(key)
            if key not in self._unlink:
                self._unlink.append(key)

    def drain(self) -> WatchSnapshot:
        """스냅샷 반환 후 내부 큐 비움."""
        with self._lock:
            snapshot = WatchSnapshot(
                pending_compile=tuple(self._compile),
                pending_unlink=tuple(self._unlink),
            )
            self._compile = []
            self._unlink = []
        return snapshot

    def __len__(self) -> int:
        with self._lock:
            return len(self._compile) + len(self._unlink)
