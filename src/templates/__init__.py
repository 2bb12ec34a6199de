"""
Templates layer: 템플릿 compile + sandbox 평가.

역할:
- 템플릿 소스 → 실행 가능한 모듈 소스 (compiler.py)
- 모듈 소스 → HTML 또는 HTML 생성 callable (sandbox.py)
"""

from .compiler import (
    LOADERS,
    ChildCompiler,
    loader_for,
    parse_request,
    resolve_template_request,
)
from .sandbox import (
    evaluate_compilation_result,
    render_template_result,
    template_identifier,
)

__all__ = [
    # compiler
    "ChildCompiler",
    "LOADERS",
    "loader_for",
    "parse_request",
    "resolve_template_request",
    # sandbox
    "evaluate_compilation_result",
    "render_template_result",
    "template_identifier",
]
