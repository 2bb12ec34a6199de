"""
test_plugin.py - orchestrator 테스트

테스트 케이스:
- TC1: make - 초기 스냅샷 전부 compile, 출력 이름은 templates_path 기준 상대 경로
- TC2: make - compile 실패는 해당 템플릿만 제외
- TC3: make - unlink는 artifact 즉시 삭제
- TC4: emit - 태그 주입, 중첩 출력 경로의 상대 링크
- TC5: emit - 평가 실패는 해당 템플릿만 제외
- TC6: hot update / callable 템플릿 / reload 콜백 / cycle log 저장
"""

from pathlib import Path

import pytest

from src.core.watcher import TemplateWatcher
from src.domain.errors import ChildCompileError, ErrorCodes
from src.domain.schemas import Chunk, CompiledTemplate
from src.pipeline.compilation import BuildHooks, Compilation, RawAsset
from src.pipeline.plugin import PLUGIN_NAME, HtmlWatchPlugin
from src.templates.compiler import ChildCompiler


class FailingCompiler(ChildCompiler):
    """지정한 파일명만 compile 실패."""

    def __init__(self, failing: str):
        super().__init__()
        self.failing = failing

    async def compile_template(self, request, output_name, compilation=None):
        if request.endswith(self.failing):
            raise ChildCompileError(ErrorCodes.COMPILE_FAILED, "broken", diagnostic="line 1")
        return await super().compile_template(request, output_name, compilation)


# =============================================================================
# TC1-3: make phase
# =============================================================================

class TestMakePhase:
    """make phase 테스트."""

    @pytest.mark.asyncio
    async def test_compiles_initial_snapshot(self, plugin_config, compilation):
        plugin = HtmlWatchPlugin(plugin_config)
        cycle = await plugin.make(compilation)

        assert sorted(t.output_name for t in cycle.compiled) == ["blog/post.html", "index.html"]
        assert len(plugin.queue) == 0

    @pytest.mark.asyncio
    async def test_template_namer(self, plugin_config, compilation):
        plugin_config["templateNamer"] = lambda name: "pages/" + name
        plugin = HtmlWatchPlugin(plugin_config)
        cycle = await plugin.make(compilation)

        assert "pages/index.html" in {t.output_name for t in cycle.compiled}

    @pytest.mark.asyncio
    async def test_compile_failure_isolated(self, plugin_config, compilation):
        plugin = HtmlWatchPlugin(plugin_config, compiler=FailingCompiler("post.html"))
        cycle = await plugin.make(compilation)

        assert [t.output_name for t in cycle.compiled] == ["index.html"]
        failure = cycle.cycle_log.failures[0]
        assert failure.stage == "compile"
        assert failure.code == ErrorCodes.COMPILE_FAILED

    @pytest.mark.asyncio
    async def test_unlink_removes_artifact(self, plugin_config, views_dir, compilation):
        plugin = HtmlWatchPlugin(plugin_config)
        await plugin.run_cycle(compilation)
        source = str((views_dir / "blog" / "post.html").resolve())
        assert "blog/post.html" in compilation.assets
        assert source in compilation.file_dependencies

        plugin.queue.enqueue_unlinked(views_dir / "blog" / "post.html")
        cycle = await plugin.make(compilation)

        assert "blog/post.html" not in compilation.assets
        assert "blog/post.html" not in compilation.file_dependencies
        assert source not in compilation.file_dependencies
        assert cycle.cycle_log.unlinked == ["blog/post.html"]
        assert cycle.compiled == []

    @pytest.mark.asyncio
    async def test_second_cycle_only_changed(self, plugin_config, views_dir, compilation):
        plugin = HtmlWatchPlugin(plugin_config)
        await plugin.run_cycle(compilation)

        plugin.queue.enqueue_changed(views_dir / "index.html")
        cycle = await plugin.make(compilation)

        assert [t.output_name for t in cycle.compiled] == ["index.html"]


# =============================================================================
# TC4-5: emit phase
# =============================================================================

class TestEmitPhase:
    """emit phase 테스트."""

    @pytest.mark.asyncio
    async def test_tags_injected(self, plugin_config, compilation):
        plugin = HtmlWatchPlugin(plugin_config)
        cycle = await plugin.run_cycle(compilation)

        html = compilation.assets["index.html"].source()
        assert '<link rel="stylesheet" href="main.css"></head>' in html
        assert (
            '<script type="text/javascript" src="main.js"></script>'
            '<script type="text/javascript" src="vendor.js"></script></body>'
        ) in html
        assert "lazy.js" not in html
        assert "anon.js" not in html
        assert cycle.cycle_log.result == "success"
        assert "index.html" in compilation.file_dependencies

    @pytest.mark.asyncio
    async def test_nested_output_relative_links(self, plugin_config, compilation):
        plugin = HtmlWatchPlugin(plugin_config)
        await plugin.run_cycle(compilation)

        html = compilation.assets["blog/post.html"].source()
        assert 'src="../main.js"' in html
        assert 'href="../main.css"' in html

    @pytest.mark.asyncio
    async def test_evaluation_failure_isolated(self, plugin_config, compilation):
        plugin = HtmlWatchPlugin(plugin_config)
        cycle = await plugin.make(compilation)
        cycle.compiled.append(CompiledTemplate(output_name="bad.html", content="42"))

        cycle = await plugin.emit(compilation, cycle)

        assert "bad.html" not in compilation.assets
        assert "index.html" in compilation.assets
        assert cycle.cycle_log.result == "partial"
        assert cycle.cycle_log.failures[0].code == ErrorCodes.NOT_HTML

    @pytest.mark.asyncio
    async def test_system_exit_in_template_isolated(self, plugin_config, compilation):
        plugin = HtmlWatchPlugin(plugin_config)
        cycle = await plugin.make(compilation)
        cycle.compiled.append(CompiledTemplate(output_name="bad.html", content="raise SystemExit(1)"))

        cycle = await plugin.emit(compilation, cycle)

        assert "index.html" in compilation.assets
        assert "blog/post.html" in compilation.assets
        assert "bad.html" not in compilation.assets
        assert cycle.cycle_log.result == "partial"
        assert cycle.cycle_log.failures[0].code == ErrorCodes.RUNTIME_ERROR

    @pytest.mark.asyncio
    async def test_hash_and_manifest(self, plugin_config, compilation):
        plugin_config["hash"] = True
        compilation.assets["offline.appcache"] = RawAsset("CACHE MANIFEST")
        plugin = HtmlWatchPlugin(plugin_config)
        await plugin.run_cycle(compilation)

        html = compilation.assets["index.html"].source()
        assert '<html manifest="offline.appcache?abc123">' in html
        assert 'src="main.js?abc123"' in html

    @pytest.mark.asyncio
    async def test_hot_update_skips_emit(self, plugin_config):
        compilation = Compilation(chunks=[
            Chunk(name="main", files=("0.abc.hot-update.js",), initial=True),
        ])
        plugin = HtmlWatchPlugin(plugin_config)
        cycle = await plugin.run_cycle(compilation)

        assert cycle.artifacts == []
        assert "index.html" not in compilation.assets

    @pytest.mark.asyncio
    async def test_callable_template(self, plugin_config, views_dir, compilation):
        (views_dir / "index.html").unlink()
        (views_dir / "blog" / "post.html").unlink()
        (views_dir / "page.py").write_text(
            "def default(**params):\n"
            "    return '<html><body>' + params['site'] + ':' + ','.join(params['assets']['js']) + '</body></html>'\n",
            encoding="utf-8",
        )
        plugin_config["templates"] = [str(views_dir / "*.py")]
        plugin_config["templateNamer"] = lambda name: name.replace(".py", ".html")
        plugin_config["templateContext"] = {"site": "Demo"}
        plugin = HtmlWatchPlugin(plugin_config)
        await plugin.run_cycle(compilation)

        html = compilation.assets["page.html"].source()
        assert html.startswith("<html><head>")
        assert "Demo:main.js,vendor.js" in html

    @pytest.mark.asyncio
    async def test_reload_callback_and_cycle_log(self, plugin_config, compilation, tmp_path: Path):
        reloaded = []
        plugin_config["onReload"] = reloaded.append
        plugin = HtmlWatchPlugin(plugin_config, logs_dir=tmp_path / "logs")
        await plugin.run_cycle(compilation)

        assert sorted(reloaded[0]) == ["blog/post.html", "index.html"]
        assert len(list((tmp_path / "logs").glob("cycle_*.json"))) == 1

    @pytest.mark.asyncio
    async def test_emit_without_make(self, plugin_config, compilation):
        plugin = HtmlWatchPlugin(plugin_config)
        cycle = await plugin.emit(compilation)

        assert cycle.artifacts == []
        assert cycle.cycle_log.result == "success"


# =============================================================================
# Host wiring
# =============================================================================

class TestWiring:
    """hook 등록 / watcher 생성."""

    @pytest.mark.asyncio
    async def test_apply_registers_hooks(self, plugin_config, compilation):
        plugin = HtmlWatchPlugin(plugin_config)
        hooks = plugin.apply(BuildHooks())
        await hooks.run(compilation)

        assert "index.html" in compilation.assets
        assert compilation.plugin_state == {}

    @pytest.mark.asyncio
    async def test_cycle_context_bound_to_compilation(self, plugin_config, compilation):
        plugin = HtmlWatchPlugin(plugin_config)
        other = Compilation(chunks=list(compilation.chunks))

        made = await plugin.make(compilation)
        unrelated = await plugin.emit(other)

        assert unrelated.compiled == []
        assert "index.html" not in other.assets
        assert compilation.plugin_state == {PLUGIN_NAME: made}

        emitted = await plugin.emit(compilation)

        assert emitted is made
        assert "index.html" in compilation.assets
        assert compilation.plugin_state == {}

    def test_watcher_created_when_enabled(self, plugin_config):
        plugin_config["watch"] = True
        plugin = HtmlWatchPlugin(plugin_config)

        assert isinstance(plugin.watcher, TemplateWatcher)
        assert plugin.watcher.is_running is False

    def test_watch_event_triggers_rebuild(self, plugin_config):
        calls = []
        plugin = HtmlWatchPlugin(plugin_config, rebuild=lambda: calls.append(1))
        plugin._on_watch_event("change", Path("x.html"))

        assert calls == [1]
