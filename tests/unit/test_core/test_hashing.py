"""
test_hashing.py - 해시 계산 테스트

DoD:
- append_hash: 경로 없으면 그대로, "?" 없으면 "?hash", 있으면 "&hash"
- compilation hash: 동일 입력 → 동일 해시 (재현성), 내용 변경 → 해시 변경
"""

import pytest

from src.core.hashing import (
    COMPILATION_HASH_LENGTH,
    append_hash,
    compute_compilation_hash,
)
from src.pipeline.compilation import RawAsset

# =============================================================================
# append_hash 테스트
# =============================================================================

class TestAppendHash:
    """append_hash 함수 테스트."""

    @pytest.mark.parametrize("url", [None, ""])
    def test_absent_url_unchanged(self, url):
        assert append_hash(url, "abc") == url

    def test_question_mark_when_no_query(self):
        assert append_hash("main.js", "abc") == "main.js?abc"

    def test_ampersand_when_query_exists(self):
        assert append_hash("main.css?v=1", "abc") == "main.css?v=1&abc"

    def test_separator_appended_once(self):
        result = append_hash("a/b.js", "h")
        assert result.count("?") == 1
        assert result.count("&") == 0


# =============================================================================
# compute_compilation_hash 테스트
# =============================================================================

class TestCompilationHash:
    """compute_compilation_hash 함수 테스트."""

    def test_reproducible(self):
        assets = {"a.js": RawAsset("a"), "b.css": RawAsset("b")}
        reordered = {"b.css": RawAsset("b"), "a.js": RawAsset("a")}

        assert compute_compilation_hash(assets) == compute_compilation_hash(reordered)

    def test_content_change_changes_hash(self):
        before = compute_compilation_hash({"a.js": RawAsset("a")})
        after = compute_compilation_hash({"a.js": RawAsset("A")})

        assert before != after

    def test_bytes_content_supported(self):
        digest = compute_compilation_hash({"logo.png": RawAsset(b"\x89PNG")})
        assert len(digest) == COMPILATION_HASH_LENGTH
