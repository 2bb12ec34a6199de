"""Filesystem watcher: watchdog 이벤트를 WatchQueue로 전달.

Event mapping:
- created  → add    (enqueue_changed + rebuild)
- modified → change (enqueue_changed + rebuild)
- deleted  → unlink (enqueue_unlinked, rebuild 없음)
- moved    → unlink(src) + add(dest)

CRITICAL: watchdog 콜백은 Observer 스레드에서 실행됨.
WatchQueue는 스레드 안전하고, rebuild 콜백은 호출자가 스레드 안전하게 처리해야 함.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable, Iterable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from src.core.watch_queue import WatchQueue

logger = logging.getLogger(__name__)

_MAGIC_CHARS = re.compile(r"[*?\[]")


def _class_end(pattern: str, start: int) -> int | None:
    # "[" 또는 "[!" 바로 뒤의 "]"는 클래스 멤버
    j = start + 1
    if j < len(pattern) and pattern[j] == "!":
        j += 1
    if j < len(pattern) and pattern[j] == "]":
        j += 1
    end = pattern.find("]", j)
    return None if end == -1 else end


def _translate_class(body: str) -> str:
    body = body.replace("\\", r"\\")
    body = re.sub(r"([&~|\[])", r"\\\1", body)
    if body.startswith("!"):
        return f"(?!/)[^{body[1:]}]"
    if body.startswith("^"):
        body = "\\" + body
    return f"(?!/)[{body}]"


def pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """
    glob 패턴 → 정규식 (전체 경로 매칭).

    - "**/" → 0개 이상의 디렉터리
    - "*"   → "/" 제외 임의 문자열
    - "?"   → "/" 제외 한 글자
    - "[...]" / "[!...]" → 문자 클래스 (glob.glob와 동일, 닫는 "]" 없으면 문자 그대로)
    """
    pattern = os.path.abspath(pattern).replace(os.sep, "/")
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        elif pattern[i] == "[":
            end = _class_end(pattern, i)
            if end is None:
                parts.append(re.escape("["))
                i += 1
            else:
                parts.append(_translate_class(pattern[i + 1:end]))
                i = end + 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts) + r"\Z")


def watch_root(pattern: str) -> Path:
    """패턴의 magic 문자 이전까지의 디렉터리 (Observer 등록 위치)."""
    root: list[str] = []
    for part in Path(os.path.abspath(pattern)).parts:
        if _MAGIC_CHARS.search(part):
            break
        root.append(part)
    path = Path(*root) if root else Path.cwd()
    return path if path.is_dir() else path.parent


class TemplateEventHandler(FileSystemEventHandler):
    """템플릿 패턴에 매칭되는 파일 이벤트만 WatchQueue로 전달."""

    def __init__(
        self,
        queue: WatchQueue,
        patterns: Iterable[str],
        rebuild: Callable[[str, Path], None] | None = None,
    ):
        super().__init__()
        self.queue = queue
        self.matchers = [pattern_to_regex(p) for p in patterns]
        self.rebuild = rebuild

    def matches(self, path: str | Path) -> bool:
        normalized = os.path.abspath(str(path)).replace(os.sep, "/")
        return any(m.match(normalized) for m in self.matchers)

    def on_created(self, event: FileSystemEvent) -> None:
        self._changed("add", event.src_path, event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._changed("change", event.src_path, event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._unlinked(event.src_path, event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._unlinked(event.src_path, event)
        self._changed("add", event.dest_path, event)

    def _changed(self, kind: str, raw_path: str | bytes, event: FileSystemEvent) -> None:
        if event.is_directory or not self.matches(os.fsdecode(raw_path)):
            return
        path = Path(os.fsdecode(raw_path))
        self.queue.enqueue_changed(path)
        logger.info(f"{kind.capitalize()} file {path}")
        if self.rebuild is not None:
            self.rebuild(kind, path)

    def _unlinked(self, raw_path: str | bytes, event: FileSystemEvent) -> None:
        if event.is_directory or not self.matches(os.fsdecode(raw_path)):
            return
        path = Path(os.fsdecode(raw_path))
        self.queue.enqueue_unlinked(path)
        logger.info(f"Unlink file {path}")


class TemplateWatcher:
    """
    패턴별 루트 디렉터리에 watchdog Observer 등록.

    Usage:
        watcher = TemplateWatcher(queue, ["src/views/**/*.html"], rebuild=cb)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        queue: WatchQueue,
        patterns: Iterable[str],
        rebuild: Callable[[str, Path], None] | None = None,
    ):
        self.patterns = list(patterns)
        self.handler = TemplateEventHandler(queue, self.patterns, rebuild)
        self._observer: Observer | None = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        roots = {watch_root(p) for p in self.patterns}
        for root in sorted(roots):
            if not root.exists():
                logger.warning(f"Watch root does not exist: {root}")
                continue
            observer.schedule(self.handler, str(root), recursive=True)
            logger.info(f"Watching templates under {root}")
        observer.start()
        self._observer = observer

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._observer = None
