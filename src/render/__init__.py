"""
Render layer: chunk → asset manifest → tag → HTML.

역할:
- chunk 선택/정렬 (chunks.py)
- asset manifest 생성 (assets.py)
- tag 생성/직렬화 (tags.py)
- HTML 텍스트 주입 (html.py)
"""

from .assets import asset_files, build_asset_manifest, is_hot_update
from .chunks import SortKind, SortMode, filter_chunks, resolve_sort_mode, sort_chunks
from .html import inject_assets_into_html
from .tags import generate_asset_tags, render_tag

__all__ = [
    "filter_chunks",
    "sort_chunks",
    "resolve_sort_mode",
    "SortMode",
    "SortKind",
    "build_asset_manifest",
    "asset_files",
    "is_hot_update",
    "generate_asset_tags",
    "render_tag",
    "inject_assets_into_html",
]
