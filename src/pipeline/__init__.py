"""
Pipeline layer: host build 경계 + orchestrator.

역할:
- host compilation / lifecycle hook (compilation.py)
- make / emit phase 조정 (plugin.py)
"""

from .compilation import Asset, BuildHooks, Compilation, RawAsset
from .plugin import CycleContext, HtmlWatchPlugin

__all__ = [
    "Asset",
    "RawAsset",
    "Compilation",
    "BuildHooks",
    "CycleContext",
    "HtmlWatchPlugin",
]
