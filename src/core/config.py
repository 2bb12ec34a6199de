"""
Plugin 설정: 기본값, dict/YAML 로드, 설정 시점 검증.

인식 옵션 (camelCase / snake_case 모두 허용):
- templates, templatesPath, templateNamer, basePath
- watch, reloadBrowser, hash
- chunks ("all" 또는 include 목록), excludeChunks, chunksSortMode
- inject ("head" | "body"), xhtml, favicon
- templateContext, templateEngineOptions

chunksSortMode / inject는 여기서 한 번 검증 → 잘못된 값은 즉시 ConfigError.
"""

import os
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from src.domain.constants import (
    DEFAULT_TEMPLATES_DIR,
    DEFAULT_TEMPLATES_GLOB,
    INJECT_BODY,
    INJECT_HEAD,
)
from src.domain.errors import ConfigError, ErrorCodes
from src.render.chunks import SortMode, resolve_sort_mode

CONFIG_SECTION = "html_watch"


def _identity(path: str) -> str:
    return path


def _snake_case(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _resolve_inject(value: Any) -> str:
    if value is None or value is True or value == INJECT_BODY:
        return INJECT_BODY
    if value == INJECT_HEAD:
        return INJECT_HEAD
    raise ConfigError(
        ErrorCodes.INVALID_INJECT_MODE,
        f'"{value}" is not a valid inject mode',
        inject=value,
    )


@dataclass
class PluginOptions:
    """플러그인 옵션. 생성 시 sort mode / inject 검증."""
    base_path: Path = field(default_factory=Path.cwd)
    templates: list[str] = field(default_factory=list)
    templates_path: str = ""
    template_namer: Callable[[str], str] = _identity
    template_context: dict[str, Any] = field(default_factory=dict)
    template_engine_options: dict[str, Any] = field(default_factory=dict)

    watch: bool = True
    reload_browser: bool = True
    on_reload: Callable[[list[str]], None] | None = None
    hash: bool = False

    chunks: str | list[str] = "all"
    exclude_chunks: list[str] = field(default_factory=list)
    chunks_sort_mode: str | Callable[..., int] | SortMode | None = None
    inject: str | bool | None = INJECT_BODY
    xhtml: bool = False
    favicon: str | None = None

    sort_mode: SortMode = field(init=False)

    def __post_init__(self) -> None:
        self.base_path = Path(self.base_path)
        if not self.templates:
            self.templates = [DEFAULT_TEMPLATES_GLOB]
        elif isinstance(self.templates, str):
            self.templates = [self.templates]
        self.templates = [self._absolute(p) for p in self.templates]
        self.templates_path = self._absolute(self.templates_path or DEFAULT_TEMPLATES_DIR)

        if not isinstance(self.chunks, str):
            self.chunks = list(self.chunks)
        if isinstance(self.chunks, str) and self.chunks != "all":
            raise ConfigError(
                ErrorCodes.INVALID_OPTION,
                'chunks must be "all" or a list of chunk names',
                chunks=self.chunks,
            )

        self.inject = _resolve_inject(self.inject)
        self.sort_mode = resolve_sort_mode(self.chunks_sort_mode)

    def _absolute(self, path: str) -> str:
        # templates_path는 접두사 비교에 쓰이므로 끝의 "/" 유지
        if os.path.isabs(path):
            return path
        return os.path.join(self.base_path, path)

    @property
    def included_chunks(self) -> list[str] | None:
        """include 목록 ("all"이면 None)."""
        return None if isinstance(self.chunks, str) else self.chunks

    def to_dict(self) -> dict[str, Any]:
        """callable 템플릿 파라미터용 (함수 값 제외)."""
        return {
            "base_path": str(self.base_path),
            "templates": list(self.templates),
            "templates_path": self.templates_path,
            "watch": self.watch,
            "reload_browser": self.reload_browser,
            "hash": self.hash,
            "chunks": self.chunks,
            "exclude_chunks": list(self.exclude_chunks),
            "inject": self.inject,
            "xhtml": self.xhtml,
            "favicon": self.favicon,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PluginOptions":
        """
        dict → PluginOptions.

        camelCase 키는 snake_case로 변환, 알 수 없는 키는 무시.
        """
        known = {f.name for f in fields(cls) if f.init}
        kwargs = {}
        for key, value in data.items():
            name = _snake_case(key)
            if name in known:
                kwargs[name] = value
        return cls(**kwargs)


def load_options(config_path: Path, **overrides: Any) -> PluginOptions:
    """
    YAML 설정 파일 로드.

    최상위 "html_watch:" 섹션이 있으면 그 아래를 사용.
    상대 base_path는 설정 파일 위치 기준.

    Args:
        config_path: YAML 파일 경로
        **overrides: 파일 값을 덮어쓸 옵션 (templateNamer 등 함수 값)

    Returns:
        PluginOptions
    """
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError(
            ErrorCodes.INVALID_OPTION,
            "config file must contain a mapping",
            path=str(config_path),
        )

    data = dict(data.get(CONFIG_SECTION, data))
    base = data.get("basePath", data.get("base_path"))
    base_path = config_path.parent / base if base else config_path.parent
    data.pop("basePath", None)
    data["base_path"] = base_path.resolve()
    data.update(overrides)
    return PluginOptions.from_dict(data)
