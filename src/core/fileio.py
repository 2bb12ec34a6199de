"""
원자적 파일 쓰기: 출력 artifact, cycle log

동작:
- 중간 상태 없음: temp → os.replace
- 가능한 환경에서 내구성 강화: 파일 fsync
- fsync 실패 시 경고 남기고 계속 진행
- 실패 시 cleanup: temp 파일 삭제
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, content: str) -> None:
    """
    원자적 텍스트 쓰기.

    Args:
        path: 저장할 파일 경로
        content: 파일 내용 (UTF-8)
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            temp_path = Path(f.name)
            f.write(content)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(f"File fsync failed for {path}: {e}")

        os.replace(temp_path, path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise


def atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    """원자적 JSON 쓰기 (indent=2, ensure_ascii=False)."""
    atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False))
