"""
Pipeline orchestrator: watch queue → child compile → sandbox 평가 → 태그 주입 → artifact 등록.

Cycle 흐름:
- make : watch queue drain, pending compile 전부 동시 compile, pending unlink는 즉시 삭제
- emit : chunk 선택/정렬 → asset manifest → 템플릿별 평가/주입/등록 (동시)

규칙:
- 상태는 CycleContext로 make → emit 사이에만 전달 (플러그인에 남는 건 WatchQueue 뿐)
- 템플릿 하나의 compile/평가 실패는 로그 + cycle log 기록 후 제외, 나머지는 계속
- phase는 발행된 작업이 전부 끝난 뒤에만 완료 (취소 없음)
- ConfigError는 전파
"""

import asyncio
import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.core.config import PluginOptions
from src.core.logging import (
    CycleLog,
    complete_cycle_log,
    create_cycle_log,
    emit_failure,
    save_cycle_log,
)
from src.core.watch_queue import WatchQueue
from src.core.watcher import TemplateWatcher
from src.domain.errors import ChildCompileError, EvaluationError
from src.domain.schemas import (
    AssetManifest,
    CompiledTemplate,
    OutputArtifact,
    WatchSnapshot,
)
from src.pipeline.compilation import BuildHooks, Compilation
from src.render.assets import asset_files, build_asset_manifest, is_hot_update
from src.render.chunks import filter_chunks, sort_chunks
from src.render.html import inject_assets_into_html
from src.render.tags import generate_asset_tags
from src.templates.compiler import ChildCompiler
from src.templates.sandbox import evaluate_compilation_result, render_template_result

logger = logging.getLogger(__name__)

PLUGIN_NAME = "html_watch"


@dataclass
class CycleContext:
    """make → emit 사이에만 존재하는 cycle 상태."""
    snapshot: WatchSnapshot
    cycle_log: CycleLog
    compiled: list[CompiledTemplate] = field(default_factory=list)
    artifacts: list[OutputArtifact] = field(default_factory=list)


class HtmlWatchPlugin:
    """
    감시 중인 템플릿을 최종 HTML artifact로 만드는 build 플러그인.

    Usage:
        plugin = HtmlWatchPlugin({"templates": ["views/**/*.html"], "chunks": ["main"]})
        hooks = plugin.apply(BuildHooks())
        await hooks.run(compilation)
    """

    def __init__(
        self,
        options: PluginOptions | Mapping[str, Any] | None = None,
        compiler: ChildCompiler | None = None,
        rebuild: Callable[[], None] | None = None,
        logs_dir: Path | None = None,
    ):
        if isinstance(options, PluginOptions):
            self.options = options
        else:
            self.options = PluginOptions.from_dict(options or {})

        self.compiler = compiler or ChildCompiler(
            engine_options=self.options.template_engine_options,
        )
        self.rebuild = rebuild
        self.logs_dir = logs_dir

        logger.info(f"Templates: {self.options.templates}")
        self.queue = WatchQueue.from_patterns(self.options.templates)
        self.watcher: TemplateWatcher | None = None
        if self.options.watch:
            self.watcher = TemplateWatcher(
                self.queue,
                self.options.templates,
                rebuild=self._on_watch_event,
            )

    # =========================================================================
    # Host wiring
    # =========================================================================

    def apply(self, hooks: BuildHooks) -> BuildHooks:
        """make / emit hook 등록."""
        hooks.make.append(self.make)
        hooks.emit.append(self.emit)
        return hooks

    def start_watching(self) -> None:
        if self.watcher is not None:
            self.watcher.start()

    def stop_watching(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()

    def _on_watch_event(self, kind: str, path: Path) -> None:
        # add/change만 rebuild 트리거 (unlink는 다음 cycle에서 처리)
        if self.rebuild is not None:
            self.rebuild()

    # =========================================================================
    # Naming
    # =========================================================================

    def relative_template_path(self, path: str | Path) -> str:
        """templates_path 접두사를 제거한 상대 경로 (posix)."""
        path_str = str(path)
        roots = {self.options.templates_path, os.path.realpath(self.options.templates_path)}
        for root in roots:
            prefix = root if root.endswith(os.sep) else root + os.sep
            if path_str.startswith(prefix):
                return Path(path_str[len(prefix):]).as_posix()
        return Path(path_str).as_posix()

    def output_name_for(self, path: str | Path) -> str:
        return self.options.template_namer(self.relative_template_path(path))

    # =========================================================================
    # make phase
    # =========================================================================

    async def make(self, compilation: Compilation) -> CycleContext:
        """
        watch queue drain → 동시 compile + unlink 처리.

        Returns:
            이번 cycle의 CycleContext (emit에 전달)
        """
        snapshot = self.queue.drain()
        cycle = CycleContext(snapshot=snapshot, cycle_log=create_cycle_log())

        pending = [
            self._compile_one(compilation, path, cycle)
            for path in snapshot.pending_compile
        ]

        for path in snapshot.pending_unlink:
            self.unlink_asset(compilation, path, cycle)

        results = await asyncio.gather(*pending)
        cycle.compiled = [r for r in results if r is not None]
        cycle.cycle_log.compiled = [t.output_name for t in cycle.compiled]

        compilation.plugin_state[PLUGIN_NAME] = cycle
        return cycle

    async def _compile_one(
        self,
        compilation: Compilation,
        path: Path,
        cycle: CycleContext,
    ) -> CompiledTemplate | None:
        source = self.compiler.source_for(path)
        output_name = self.output_name_for(source.path)
        try:
            return await self.compiler.compile_template(
                source.request,
                output_name,
                compilation,
            )
        except ChildCompileError as e:
            logger.error(f"Child compilation failed for {path}: {e.diagnostic or e}")
            emit_failure(cycle.cycle_log, "compile", str(path), e)
        except Exception as e:
            logger.exception(f"Unexpected error compiling {path}")
            emit_failure(cycle.cycle_log, "compile", str(path), e)
        return None

    def unlink_asset(
        self,
        compilation: Compilation,
        path: str | Path,
        cycle: CycleContext | None = None,
    ) -> str:
        """삭제된 템플릿의 출력 artifact와 file dependency 제거. 제거한 output 이름 반환."""
        source = self.compiler.source_for(path)
        output_name = self.output_name_for(source.path)
        compilation.delete_asset(output_name)
        compilation.remove_file_dependency(output_name)
        compilation.remove_file_dependency(str(source.path))
        if cycle is not None:
            cycle.cycle_log.unlinked.append(output_name)
        logger.info(f"Unlinked {output_name}")
        return output_name

    # =========================================================================
    # emit phase
    # =========================================================================

    def build_manifest(self, compilation: Compilation) -> AssetManifest:
        """chunk 선택 → 정렬 → AssetManifest."""
        included = self.options.included_chunks
        chunks = filter_chunks(
            compilation.get_chunks(),
            included,
            self.options.exclude_chunks,
        )
        chunks = sort_chunks(chunks, self.options.sort_mode, included)

        return build_asset_manifest(
            chunks,
            asset_names=list(compilation.assets),
            compilation_hash=compilation.get_hash() if self.options.hash else "",
            hash_enabled=self.options.hash,
            favicon=self.options.favicon,
        )

    async def emit(
        self,
        compilation: Compilation,
        cycle: CycleContext | None = None,
    ) -> CycleContext:
        """
        working set의 템플릿 전부 평가/주입/등록.

        Args:
            compilation: host compilation
            cycle: make가 반환한 CycleContext (None이면 compilation에 남긴 것, 그것도 없으면 빈 cycle)

        Returns:
            완료된 CycleContext
        """
        stored = compilation.plugin_state.pop(PLUGIN_NAME, None)
        if cycle is None:
            cycle = stored
        if cycle is None:
            cycle = CycleContext(snapshot=WatchSnapshot(), cycle_log=create_cycle_log())

        manifest = self.build_manifest(compilation)

        if is_hot_update(manifest):
            logger.info("Hot update compilation, skipping template emit")
        else:
            results = await asyncio.gather(
                *(self._emit_one(compilation, t, manifest, cycle) for t in cycle.compiled)
            )
            cycle.artifacts = [r for r in results if r is not None]

        self._finish_cycle(cycle)
        return cycle

    def _template_params(self, manifest: AssetManifest) -> dict[str, Any]:
        return {
            **self.options.template_context,
            "assets": manifest.to_dict(),
            "files": asset_files(manifest),
            "options": self.options.to_dict(),
        }

    async def _emit_one(
        self,
        compilation: Compilation,
        template: CompiledTemplate,
        manifest: AssetManifest,
        cycle: CycleContext,
    ) -> OutputArtifact | None:
        output_name = template.output_name
        try:
            result = evaluate_compilation_result(template.content, output_name)
            html = render_template_result(result, self._template_params(manifest), output_name)
        except EvaluationError as e:
            logger.error(f"Evaluation failed for {output_name}: {e}")
            emit_failure(cycle.cycle_log, "evaluate", output_name, e)
            return None

        tags = generate_asset_tags(
            manifest,
            output_name,
            inject=self.options.inject,
            xhtml=self.options.xhtml,
        )
        html = inject_assets_into_html(html, tags, manifest.manifest)

        artifact = OutputArtifact(output_name=output_name, html=html)
        compilation.set_asset(output_name, artifact)
        compilation.add_file_dependency(output_name)
        cycle.cycle_log.emitted.append(output_name)
        return artifact

    def _finish_cycle(self, cycle: CycleContext) -> None:
        log = cycle.cycle_log
        complete_cycle_log(log)
        logger.info(
            f"Cycle {log.cycle_id}: {len(log.emitted)} emitted, "
            f"{len(log.unlinked)} unlinked, {len(log.failures)} failed"
        )
        if self.logs_dir is not None:
            save_cycle_log(log, self.logs_dir)

        if self.options.reload_browser and self.options.on_reload and log.emitted:
            self.options.on_reload(list(log.emitted))

    # =========================================================================
    # Convenience
    # =========================================================================

    async def run_cycle(self, compilation: Compilation) -> CycleContext:
        """make + emit."""
        cycle = await self.make(compilation)
        return await self.emit(compilation, cycle)
