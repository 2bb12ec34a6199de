"""
Child compiler: 템플릿 소스 파일 → 실행 가능한 모듈 소스.

요청 포맷: "<loader>!<absolute path>[?query]"

Loader:
- html   : 파일 내용을 문자열 리터럴로 감싼 모듈
           (HTML_WATCH_RESULT = '<escaped html>')
- python : 파일 자체가 모듈 소스, compile()로 문법 검사만

결과는 렌더된 HTML이 아니라 모듈 소스. 렌더링은 sandbox 평가 단계.
실패는 모두 ChildCompileError (사람이 읽을 수 있는 diagnostic 포함).
"""

import asyncio
import logging
import os
import re
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from src.domain.constants import DEFAULT_LOADER, LOADER_SEPARATOR, RESULT_MARKER
from src.domain.errors import ChildCompileError, ErrorCodes
from src.domain.schemas import CompiledTemplate, TemplateSource

logger = logging.getLogger(__name__)

Loader = Callable[[str, Path, Mapping[str, Any]], str]

_REQUEST_PATH = re.compile(r"(!)([^/\\][^!?]+|[^/\\!?])($|\?[^!?\n]+$)")


# =============================================================================
# Loaders
# =============================================================================

def html_loader(text: str, path: Path, options: Mapping[str, Any]) -> str:
    """HTML 파일 → 결과 바인딩 marker가 붙은 문자열 리터럴 모듈."""
    return f"{RESULT_MARKER} {text!r}\n"


def python_loader(text: str, path: Path, options: Mapping[str, Any]) -> str:
    """Python 템플릿 모듈: 문법 검사 후 그대로."""
    try:
        compile(text, str(path), "exec")
    except SyntaxError as e:
        raise ChildCompileError(
            ErrorCodes.COMPILE_FAILED,
            f"Syntax error in template {path}",
            diagnostic=f"{path}:{e.lineno}:{e.offset}: {e.msg}",
            path=str(path),
        ) from e
    return text


LOADERS: dict[str, Loader] = {
    "html": html_loader,
    "python": python_loader,
}


def loader_for(path: str | Path) -> str:
    """확장자 기준 기본 loader."""
    return "python" if Path(path).suffix == ".py" else DEFAULT_LOADER


# =============================================================================
# Request Helpers
# =============================================================================

def resolve_template_request(template: str, context: str | Path = ".") -> str:
    """
    템플릿 참조 → loader prefix가 붙은 절대 경로 요청.

    - loader 없는 경로: 기본 loader + context 기준 절대 경로
    - loader 있는 요청: 경로 부분만 절대 경로로

    Args:
        template: "views/index.html" 또는 "html!views/index.html?x=1"
        context: 상대 경로 기준 디렉터리

    Returns:
        "html!/abs/views/index.html" 형태 요청
    """
    if LOADER_SEPARATOR not in template:
        path = os.path.abspath(os.path.join(context, template))
        return f"{loader_for(path)}{LOADER_SEPARATOR}{path}"

    def _absolutize(match: re.Match[str]) -> str:
        prefix, filepath, postfix = match.groups()
        return prefix + os.path.abspath(os.path.join(context, filepath)) + postfix

    return _REQUEST_PATH.sub(_absolutize, template)


def parse_request(request: str) -> tuple[str, Path, str]:
    """
    요청 분해.

    Returns:
        (loader, path, query) - query는 "?" 제외, 없으면 ""
    """
    loader, sep, rest = request.rpartition(LOADER_SEPARATOR)
    if not sep:
        loader, rest = loader_for(request), request
    path, _, query = rest.partition("?")
    return loader, Path(path), query


# =============================================================================
# Child Compiler
# =============================================================================

class ChildCompiler:
    """
    템플릿 child compilation.

    Usage:
        compiler = ChildCompiler()
        compiled = await compiler.compile_template(source.request, "index.html")
    """

    def __init__(
        self,
        loaders: Mapping[str, Loader] | None = None,
        engine_options: Mapping[str, Any] | None = None,
    ):
        self.loaders = dict(LOADERS if loaders is None else loaders)
        self.engine_options = dict(engine_options or {})

    def source_for(self, template: str | Path, context: str | Path = ".") -> TemplateSource:
        """
        템플릿 참조 → TemplateSource.

        "python!views/page.py" 처럼 loader를 명시할 수 있고, 없으면 확장자 기준.
        """
        request = resolve_template_request(str(template), context)
        loader, path, _query = parse_request(request)
        return TemplateSource(path=path.resolve(), loader=loader)

    async def compile_template(
        self,
        request: str,
        output_name: str,
        compilation: Any | None = None,
    ) -> CompiledTemplate:
        """
        요청 하나를 compile.

        Args:
            request: loader prefix가 붙은 모듈 참조
            output_name: 논리적 출력 이름
            compilation: host compilation (file_dependencies 등록용, 선택)

        Returns:
            CompiledTemplate

        Raises:
            ChildCompileError: TEMPLATE_NOT_FOUND, UNKNOWN_LOADER, COMPILE_FAILED
        """
        loader_name, path, _query = parse_request(request)

        loader = self.loaders.get(loader_name)
        if loader is None:
            raise ChildCompileError(
                ErrorCodes.UNKNOWN_LOADER,
                f'Unknown template loader "{loader_name}"',
                diagnostic=f"{request}: no loader named {loader_name!r}",
                loader=loader_name,
            )

        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError as e:
            raise ChildCompileError(
                ErrorCodes.TEMPLATE_NOT_FOUND,
                f"Template not found: {path}",
                diagnostic=f"{path}: no such file",
                path=str(path),
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise ChildCompileError(
                ErrorCodes.COMPILE_FAILED,
                f"Cannot read template {path}",
                diagnostic=f"{path}: {e}",
                path=str(path),
            ) from e

        try:
            content = loader(text, path, self.engine_options)
        except ChildCompileError:
            raise
        except Exception as e:
            raise ChildCompileError(
                ErrorCodes.COMPILE_FAILED,
                f"Loader {loader_name!r} failed for {path}",
                diagnostic=f"{path}: {e}",
                path=str(path),
            ) from e

        if compilation is not None:
            compilation.add_file_dependency(str(path))

        logger.debug(f"Compiled {path} → {output_name}")
        return CompiledTemplate(output_name=output_name, content=content, source_path=path)
