"""
Pytest fixtures for the pipeline tests.

테스트 구성:
- 템플릿 디렉터리 (views/), chunk 통계, host compilation
"""

from pathlib import Path

import pytest

from src.domain.schemas import Chunk
from src.pipeline.compilation import Compilation, RawAsset

# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """
    테스트용 프로젝트 루트.

    포함:
    - src/views/index.html
    - src/views/blog/post.html
    """
    views = tmp_path / "src" / "views"
    (views / "blog").mkdir(parents=True)

    (views / "index.html").write_text(
        "<html><head><title>Home</title></head><body><h1>Home</h1></body></html>",
        encoding="utf-8",
    )
    (views / "blog" / "post.html").write_text(
        "<html><body><p>Post</p></body></html>",
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture
def views_dir(project_dir: Path) -> Path:
    return project_dir / "src" / "views"


@pytest.fixture
def plugin_config(project_dir: Path) -> dict:
    """views/ 를 templates_path로 사용하는 기본 설정."""
    return {
        "basePath": str(project_dir),
        "templates": [str(project_dir / "src" / "views" / "**" / "*.html")],
        "templatesPath": str(project_dir / "src" / "views") + "/",
        "watch": False,
    }


# =============================================================================
# Chunk / Compilation Fixtures
# =============================================================================

@pytest.fixture
def sample_chunks() -> list[Chunk]:
    """main (js+css), vendor (js), lazy async chunk, 이름 없는 chunk."""
    return [
        Chunk(name="main", files=("main.js", "main.css"), initial=True, size=100, hash="aaa"),
        Chunk(name="vendor", files=("vendor.js",), initial=True, size=200, hash="bbb"),
        Chunk(name="lazy", files=("lazy.js",), initial=False, size=10, hash="ccc"),
        Chunk(name=None, files=("anon.js",), initial=True, size=5, hash="ddd"),
    ]


@pytest.fixture
def compilation(sample_chunks: list[Chunk]) -> Compilation:
    """main/vendor 번들이 있는 host compilation."""
    return Compilation(
        chunks=sample_chunks,
        assets={
            "main.js": RawAsset("console.log('main')"),
            "main.css": RawAsset("body{}"),
            "vendor.js": RawAsset("/* vendor */"),
        },
        hash="abc123",
    )
