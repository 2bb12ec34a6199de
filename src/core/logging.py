"""
Cycle logging: build cycle 기록, 실패 이벤트

규칙:
- cycle마다 새 CycleLog (cycle 간 누적 없음)
- 실패 이벤트 필수 컨텍스트: stage, template, code, message
- 실패가 하나라도 있으면 result = "partial" (cycle 자체는 항상 완료)
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.core.fileio import atomic_write_json
from src.domain.errors import PipelineError

# =============================================================================
# Schemas
# =============================================================================


@dataclass
class FailureLog:
    """템플릿 단위 실패 기록."""
    stage: str  # compile | evaluate
    template: str
    code: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "template": self.template,
            "code": self.code,
            "message": self.message,
        }


@dataclass
class CycleLog:
    """build cycle 하나의 기록."""
    cycle_id: str
    started_at: str
    result: str = "pending"  # pending | success | partial
    finished_at: str | None = None
    compiled: list[str] = field(default_factory=list)
    emitted: list[str] = field(default_factory=list)
    unlinked: list[str] = field(default_factory=list)
    failures: list[FailureLog] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycle_id": self.cycle_id,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "compiled": list(self.compiled),
            "emitted": list(self.emitted),
            "unlinked": list(self.unlinked),
            "failures": [f.to_dict() for f in self.failures],
        }


# =============================================================================
# Cycle Log Management
# =============================================================================


def generate_cycle_id() -> str:
    """
    Cycle ID 생성.

    포맷: CYCLE-{timestamp}-{uuid[:8]}
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    return f"CYCLE-{timestamp}-{uuid.uuid4().hex[:8]}"


def create_cycle_log() -> CycleLog:
    """새 CycleLog 생성."""
    return CycleLog(
        cycle_id=generate_cycle_id(),
        started_at=datetime.now(UTC).isoformat(),
    )


def emit_failure(
    cycle_log: CycleLog,
    stage: str,
    template: str,
    error: BaseException,
) -> None:
    """
    실패 이벤트 기록.

    Args:
        cycle_log: CycleLog 인스턴스
        stage: "compile" 또는 "evaluate"
        template: 템플릿 경로 또는 output 이름
        error: 발생한 예외 (PipelineError면 code 사용)
    """
    if isinstance(error, PipelineError):
        code = error.code
        message = error.message
    else:
        code = type(error).__name__
        message = str(error)

    cycle_log.failures.append(
        FailureLog(stage=stage, template=template, code=code, message=message)
    )


def complete_cycle_log(cycle_log: CycleLog) -> None:
    """CycleLog 완료 처리."""
    cycle_log.finished_at = datetime.now(UTC).isoformat()
    cycle_log.result = "partial" if cycle_log.failures else "success"


def save_cycle_log(cycle_log: CycleLog, logs_dir: Path) -> Path:
    """
    CycleLog를 파일로 저장.

    Args:
        cycle_log: CycleLog 인스턴스
        logs_dir: logs/ 디렉터리 경로

    Returns:
        저장된 파일 경로
    """
    log_path = logs_dir / f"cycle_{cycle_log.cycle_id}.json"
    atomic_write_json(log_path, cycle_log.to_dict())
    return log_path


def load_cycle_log(log_path: Path) -> dict[str, Any]:
    """CycleLog 파일 로드."""
    data: dict[str, Any] = json.loads(log_path.read_text(encoding="utf-8"))
    return data
