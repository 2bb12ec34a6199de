"""
Core layer: cycle 사이 상태와 운영 기반 모듈.

역할:
- watch queue / watchdog 감시 (watch_queue.py, watcher.py)
- cache-busting 해시 (hashing.py)
- cycle log, 원자적 쓰기 (logging.py, fileio.py)
- 설정 로드 (config.py, render 의존 때문에 여기서 re-export 하지 않음)
"""

from .fileio import atomic_write_json, atomic_write_text
from .hashing import append_hash, compute_compilation_hash
from .logging import complete_cycle_log, create_cycle_log, emit_failure, save_cycle_log
from .watch_queue import WatchQueue, match_templates

__all__ = [
    # watch_queue
    "WatchQueue",
    "match_templates",
    # hashing
    "append_hash",
    "compute_compilation_hash",
    # logging
    "create_cycle_log",
    "emit_failure",
    "complete_cycle_log",
    "save_cycle_log",
    # fileio
    "atomic_write_text",
    "atomic_write_json",
]
