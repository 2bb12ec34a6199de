"""
Sandbox 평가기: child compile된 모듈 소스를 격리된 컨텍스트에서 실행.

규칙:
- 소스 없음 → EvaluationError(EMPTY_RESULT)
- 결과 바인딩 marker 줄 제거 후 실행 (결과가 bare value로 남도록)
- 진단용 템플릿 이름: loader prefix (마지막 "!"까지) 와 query 제거
- 모듈 결과 = 마지막 expression 문의 값 (없으면 default / exports 바인딩)
- __esModule + default wrapper는 unwrap
- 문자열 또는 callable만 허용, 그 외 → EvaluationError(NOT_HTML)
- 실행 중 예외 → EvaluationError(RUNTIME_ERROR), 원본 예외는 cause

컨텍스트는 템플릿마다 새로 만든다 (builtins 포함, 템플릿/cycle 간 상태 공유 금지).
SystemExit도 RUNTIME_ERROR로 감싼다 (템플릿이 cycle을 종료시키지 못함).
노출 capability: marker flag, require (모듈 resolve) 뿐.
"""

import ast
import builtins
import importlib
import re
from collections.abc import Callable, Mapping
from typing import Any

from src.domain.constants import RESULT_MARKER, SANDBOX_FLAG
from src.domain.errors import ErrorCodes, EvaluationError

SANDBOX_MODULE_NAME = "__html_watch_template__"

_MARKER_LINE = re.compile(rf"^([ \t]*){re.escape(RESULT_MARKER)}[ \t]*", re.MULTILINE)

TemplateResult = str | Callable[..., Any]


def template_identifier(template: str) -> str:
    """
    진단용 템플릿 이름.

    예: "html!/views/index.html?x=1" → "/views/index.html"
    """
    template = re.sub(r"^.+!", "", template)
    return re.sub(r"\?.+$", "", template)


def strip_result_marker(source: str) -> str:
    """첫 번째 결과 바인딩 marker 제거 ("HTML_WATCH_RESULT = '...'" → "'...'")."""
    return _MARKER_LINE.sub(r"\1", source, count=1)


def create_context() -> dict[str, Any]:
    """템플릿 하나를 위한 새 실행 컨텍스트."""
    return {
        "__builtins__": dict(vars(builtins)),
        "__name__": SANDBOX_MODULE_NAME,
        SANDBOX_FLAG: True,
        "require": importlib.import_module,
    }


def _run_module(source: str, filename: str, context: dict[str, Any]) -> Any:
    """
    모듈 실행 후 completion value 반환.

    마지막 문장이 expression이면 그 값, 아니면 default/exports 바인딩.
    """
    tree = ast.parse(source, filename=filename, mode="exec")

    if tree.body and isinstance(tree.body[-1], ast.Expr):
        last = tree.body.pop()
        body = compile(tree, filename, "exec")
        exec(body, context)
        expression = ast.Expression(body=last.value)
        ast.fix_missing_locations(expression)
        return eval(compile(expression, filename, "eval"), context)

    exec(compile(tree, filename, "exec"), context)
    if "default" in context:
        return context["default"]
    return context.get("exports")


def _unwrap_default(value: Any) -> Any:
    if isinstance(value, Mapping):
        if value.get("__esModule") and value.get("default"):
            return value["default"]
        return value
    if getattr(value, "__esModule", False) and getattr(value, "default", None):
        return value.default
    return value


def evaluate_compilation_result(source: str | None, template: str) -> TemplateResult:
    """
    컴파일된 모듈 소스를 격리 실행해 HTML (또는 HTML 생성 callable) 획득.

    Args:
        source: child compile 결과 모듈 소스
        template: 템플릿 참조 (loader prefix/query 포함 가능)

    Returns:
        HTML 문자열 또는 callable

    Raises:
        EvaluationError: EMPTY_RESULT, RUNTIME_ERROR, NOT_HTML
    """
    if not source:
        raise EvaluationError(
            ErrorCodes.EMPTY_RESULT,
            "The child compilation didn't provide a result",
        )

    source = strip_result_marker(source)
    identifier = template_identifier(template)

    try:
        result = _run_module(source, identifier, create_context())
    except (Exception, SystemExit) as e:
        raise EvaluationError(
            ErrorCodes.RUNTIME_ERROR,
            f"Template execution failed: {e}",
            cause=e,
            template=identifier,
        ) from e

    result = _unwrap_default(result)

    if isinstance(result, str) or callable(result):
        return result

    raise EvaluationError(
        ErrorCodes.NOT_HTML,
        f'The loader "{identifier}" didn\'t return html.',
        template=identifier,
    )


def render_template_result(
    result: TemplateResult,
    template_params: Mapping[str, Any],
    template: str,
) -> str:
    """
    평가 결과를 최종 HTML 문자열로.

    callable이면 template_params를 키워드 인자로 호출.

    Raises:
        EvaluationError: RUNTIME_ERROR (호출 실패), NOT_HTML (문자열 아님)
    """
    if isinstance(result, str):
        return result

    identifier = template_identifier(template)
    try:
        html = result(**template_params)
    except (Exception, SystemExit) as e:
        raise EvaluationError(
            ErrorCodes.RUNTIME_ERROR,
            f"Template function failed: {e}",
            cause=e,
            template=identifier,
        ) from e

    if not isinstance(html, str):
        raise EvaluationError(
            ErrorCodes.NOT_HTML,
            f'The loader "{identifier}" didn\'t return html.',
            template=identifier,
        )
    return html
