"""
Chunk 선택/정렬.

선택 규칙 (모두 만족해야 유지):
- 이름이 있음
- initial entrypoint chunk (lazy/async chunk 제외)
- include 목록이 있으면 그 안에 있음
- exclude 목록이 있으면 그 안에 없음

정렬 모드 (설정 시점에 한 번 resolve, 알 수 없는 이름은 즉시 ConfigError):
- none   → 선택 결과 순서 그대로
- auto   → 기본값, 선택 결과의 안정 순서 (재정렬 없음)
- manual → include 목록 순서, 목록에 없는 chunk는 원래 순서로 뒤에
- custom → 호출자 comparator (a, b) -> int
"""

import functools
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from src.domain.constants import (
    NAMED_SORT_MODES,
    SORT_MODE_AUTO,
    SORT_MODE_MANUAL,
    SORT_MODE_NONE,
)
from src.domain.errors import ConfigError, ErrorCodes
from src.domain.schemas import Chunk

ChunkComparator = Callable[[Chunk, Chunk], int]


class SortKind(str, Enum):
    """정렬 모드 종류."""
    NONE = "none"
    AUTO = "auto"
    NAMED = "named"
    CUSTOM = "custom"


@dataclass(frozen=True)
class SortMode:
    """resolve된 정렬 모드 (tagged variant)."""
    kind: SortKind
    name: str | None = None
    comparator: ChunkComparator | None = None


def resolve_sort_mode(mode: str | ChunkComparator | SortMode | None) -> SortMode:
    """
    설정값 → SortMode.

    Args:
        mode: None, "none", "auto", 이름 있는 모드, comparator 함수

    Returns:
        SortMode

    Raises:
        ConfigError: INVALID_SORT_MODE
    """
    if isinstance(mode, SortMode):
        return mode
    if mode is None or mode == SORT_MODE_AUTO:
        return SortMode(SortKind.AUTO)
    if mode == SORT_MODE_NONE:
        return SortMode(SortKind.NONE)
    if callable(mode):
        return SortMode(SortKind.CUSTOM, comparator=mode)
    if isinstance(mode, str) and mode in NAMED_SORT_MODES:
        return SortMode(SortKind.NAMED, name=mode)

    raise ConfigError(
        ErrorCodes.INVALID_SORT_MODE,
        f'"{mode}" is not a valid chunk sort mode',
        mode=mode,
    )


def filter_chunks(
    chunks: Sequence[Chunk],
    included: Sequence[str] | None = None,
    excluded: Sequence[str] | None = None,
) -> list[Chunk]:
    """
    주입 대상 chunk 선택 (입력 순서 유지).

    Args:
        chunks: host build의 chunk 목록
        included: include 목록 (None 또는 "all"이면 전체)
        excluded: exclude 목록

    Returns:
        선택된 chunk 목록
    """
    include_set = None if included is None or isinstance(included, str) else set(included)
    exclude_set = set(excluded) if excluded else set()

    selected = []
    for chunk in chunks:
        # 이름 없는 chunk는 처리 불가
        if chunk.name is None:
            continue
        # lazy load chunk
        if not chunk.initial:
            continue
        if include_set is not None and chunk.name not in include_set:
            continue
        if chunk.name in exclude_set:
            continue
        selected.append(chunk)
    return selected


def _sort_manual(chunks: Sequence[Chunk], order: Sequence[str] | None) -> list[Chunk]:
    if not order or isinstance(order, str):
        return list(chunks)
    position = {name: i for i, name in enumerate(order)}
    # sorted()는 안정 정렬: 목록에 없는 chunk는 원래 순서대로 뒤에
    return sorted(chunks, key=lambda c: position.get(c.name, len(position)))


def sort_chunks(
    chunks: Sequence[Chunk],
    mode: SortMode,
    included: Sequence[str] | None = None,
) -> list[Chunk]:
    """
    선택된 chunk 정렬.

    Args:
        chunks: filter_chunks 결과
        mode: resolve_sort_mode 결과
        included: manual 모드의 기준 순서 (include 목록)

    Returns:
        정렬된 새 목록 (입력은 변경하지 않음)
    """
    if mode.kind in (SortKind.NONE, SortKind.AUTO):
        return list(chunks)
    if mode.kind is SortKind.CUSTOM and mode.comparator is not None:
        return sorted(chunks, key=functools.cmp_to_key(mode.comparator))
    if mode.kind is SortKind.NAMED and mode.name == SORT_MODE_MANUAL:
        return _sort_manual(chunks, included)

    raise ConfigError(
        ErrorCodes.INVALID_SORT_MODE,
        f'"{mode.name or mode.kind.value}" is not a valid chunk sort mode',
    )
