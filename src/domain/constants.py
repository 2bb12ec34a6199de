"""
Domain Constants: 파이프라인 전역 상수.

loader prefix, marker, 기본 경로, 정규식 등 시스템 전반에서 사용되는 값들.
"""

import re

# =============================================================================
# Template Loader (child compiler)
# =============================================================================
# 요청 포맷: "<loader>!<absolute path>[?query]"
# 예: html!/project/src/views/index.html

LOADER_SEPARATOR = "!"
DEFAULT_LOADER = "html"

# child compiler가 템플릿 결과를 모듈 export 대신 bare value로 남기기 위해
# 사용하는 결과 바인딩 marker. sandbox 실행 전에 제거됨.
RESULT_MARKER = "HTML_WATCH_RESULT ="

# sandbox 컨텍스트에 심어지는 marker flag
SANDBOX_FLAG = "HTML_WATCH_PLUGIN"

# =============================================================================
# Default Paths
# =============================================================================
# <base_path>/
# ├── src/views/**/*.html   (templates)
# └── src/templates/        (templates_path, 상대 출력 이름 계산 기준)

DEFAULT_TEMPLATES_GLOB = "src/views/**/*.html"
DEFAULT_TEMPLATES_DIR = "src/templates/"

# =============================================================================
# Asset Patterns
# =============================================================================

# 'main.css' 또는 'main.css?1e7cac4e' 모두 CSS로 인식
CSS_FILE_PATTERN = re.compile(r"\.css($|\?)")
HOT_UPDATE_PATTERN = re.compile(r"\.hot-update\.js$")
OFFLINE_MANIFEST_EXTENSIONS = (".appcache",)

# =============================================================================
# Chunk Sort Modes
# =============================================================================

SORT_MODE_NONE = "none"
SORT_MODE_AUTO = "auto"
SORT_MODE_MANUAL = "manual"
NAMED_SORT_MODES = (SORT_MODE_MANUAL,)

# =============================================================================
# Inject Modes
# =============================================================================

INJECT_HEAD = "head"
INJECT_BODY = "body"
