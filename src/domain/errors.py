"""
Error definitions for the pipeline.

분류 규칙:
- ConfigError → 설정 시점 즉시 실패 (fatal)
- ChildCompileError → 템플릿 단위 복구 (로그 후 이번 cycle에서 제외)
- EvaluationError → 템플릿 단위 복구 (artifact 미생성)
- 한 템플릿의 실패가 다른 템플릿이나 cycle 완료에 영향 주지 않음
"""

from typing import Any


class PipelineError(Exception):
    """
    파이프라인 에러 베이스.

    Usage:
        raise ConfigError("INVALID_SORT_MODE", "...", mode="foo")
    """

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        if ctx_str:
            return f"[{self.code}] {self.message} ({ctx_str})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **{k: str(v) for k, v in self.context.items()},
        }


class ConfigError(PipelineError):
    """잘못된 설정 (sort mode, inject mode 등). 사용 시점에서 즉시 발생."""


class ChildCompileError(PipelineError):
    """
    템플릿 child compilation 실패.

    diagnostic: 사람이 읽을 수 있는 진단 메시지
    """

    def __init__(
        self,
        code: str,
        message: str,
        diagnostic: str = "",
        **context: Any,
    ) -> None:
        self.diagnostic = diagnostic
        super().__init__(code, message, **context)


class EvaluationError(PipelineError):
    """
    sandbox 평가 실패.

    하위 종류 (code):
    - EMPTY_RESULT: 소스 없음
    - NOT_HTML: 문자열/callable 아닌 결과
    - RUNTIME_ERROR: 실행 중 예외 (cause에 원본 예외)
    """

    def __init__(
        self,
        code: str,
        message: str,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        self.cause = cause
        super().__init__(code, message, **context)


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Config ===
    INVALID_SORT_MODE = "INVALID_SORT_MODE"
    INVALID_INJECT_MODE = "INVALID_INJECT_MODE"
    INVALID_OPTION = "INVALID_OPTION"

    # === Child compile ===
    COMPILE_FAILED = "COMPILE_FAILED"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    UNKNOWN_LOADER = "UNKNOWN_LOADER"

    # === Evaluation ===
    EMPTY_RESULT = "EMPTY_RESULT"
    NOT_HTML = "NOT_HTML"
    RUNTIME_ERROR = "RUNTIME_ERROR"
