"""
HTML 주입기: 렌더된 태그를 원본 HTML 텍스트에 삽입.

주입 순서:
1. body 태그: </body> 바로 앞, 없으면 문서 끝
2. head 태그: </head> 없으면 <html...> 직후 (없으면 문서 맨 앞)에 <head></head> 생성 후
   </head> 바로 앞
3. manifest: <html ...>에 manifest="..." 추가 (이미 선언돼 있으면 유지)

정규식 기반 텍스트 매칭은 find_insertion_point / has_attribute 뒤에 격리.
전체 HTML 파서로 교체해도 태그 생성 로직은 영향 없음.
"""

import re

from src.domain.schemas import AssetTags
from src.render.tags import render_tags

_PATTERNS = {
    "html_open": re.compile(r"<html[^>]*>", re.IGNORECASE),
    "head_close": re.compile(r"</head\s*>", re.IGNORECASE),
    "body_close": re.compile(r"</body\s*>", re.IGNORECASE),
}


def find_insertion_point(html: str, anchor: str) -> int | None:
    """
    삽입 위치 탐색.

    Args:
        html: HTML 텍스트
        anchor: "html_open" (태그 끝 위치), "head_close" / "body_close" (태그 시작 위치)

    Returns:
        문자 인덱스 또는 None (없음)
    """
    match = _PATTERNS[anchor].search(html)
    if match is None:
        return None
    return match.end() if anchor == "html_open" else match.start()


def has_attribute(tag_text: str, name: str) -> bool:
    """여는 태그 텍스트에 속성 선언이 있는지."""
    return re.search(rf"\s{re.escape(name)}\s*=", tag_text) is not None


def _insert(html: str, index: int, text: str) -> str:
    return html[:index] + text + html[index:]


def add_html_attribute(html: str, name: str, value: str) -> str:
    """<html ...> 여는 태그에 속성 추가. 기존 선언은 덮어쓰지 않음."""
    match = _PATTERNS["html_open"].search(html)
    if match is None or has_attribute(match.group(0), name):
        return html
    # ">" 바로 앞
    return _insert(html, match.end() - 1, f' {name}="{value}"')


def inject_assets_into_html(
    html: str,
    tags: AssetTags,
    manifest: str | None = None,
) -> str:
    """
    태그를 HTML에 주입.

    Args:
        html: 템플릿 평가 결과 HTML
        tags: generate_asset_tags 결과
        manifest: offline manifest 경로 (없으면 None)

    Returns:
        태그가 주입된 HTML
    """
    body = render_tags(tags.body)
    head = render_tags(tags.head)

    if body:
        index = find_insertion_point(html, "body_close")
        if index is not None:
            html = _insert(html, index, body)
        else:
            # <body> 요소가 없으면 문서 끝에 추가
            html += body

    if head:
        if find_insertion_point(html, "head_close") is None:
            index = find_insertion_point(html, "html_open")
            html = _insert(html, index or 0, "<head></head>")
        html = _insert(html, find_insertion_point(html, "head_close"), head)

    if manifest:
        html = add_html_attribute(html, "manifest", manifest)

    return html
