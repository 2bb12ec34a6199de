"""
해시 계산: cache-busting query, compilation hash

규칙:
- append_hash: query 없으면 "?hash", 있으면 "&hash" (정확히 한 번)
- 경로 없음(None/"") → 그대로 반환
- compilation hash: 정렬된 asset 이름 + 내용으로 직렬화, SHA-256
"""

import hashlib
from collections.abc import Mapping
from typing import Any

COMPILATION_HASH_LENGTH = 20


def append_hash(url: str | None, hash_value: str) -> str | None:
    """
    cache-busting query 파라미터 추가.

    Args:
        url: 파일 경로/URL (None 허용)
        hash_value: 추가할 해시

    Returns:
        해시가 붙은 URL (url이 없으면 그대로)
    """
    if not url:
        return url

    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{hash_value}"


def compute_compilation_hash(assets: Mapping[str, Any]) -> str:
    """
    asset map 전체 해시 (host가 hash를 주지 않을 때 사용).

    - 이름 정렬 후 이름 + source() 내용 누적
    - SHA-256 앞 20자

    Args:
        assets: {이름: source()/size()를 가진 asset}

    Returns:
        해시 문자열
    """
    h = hashlib.sha256()
    for name in sorted(assets):
        source = assets[name].source()
        if isinstance(source, str):
            source = source.encode("utf-8")
        h.update(name.encode("utf-8"))
        h.update(b"\0")
        h.update(source)
        h.update(b"\0")
    return h.hexdigest()[:COMPILATION_HASH_LENGTH]

