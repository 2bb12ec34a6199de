"""
Tag 생성기: AssetManifest → TagDescriptor 목록, TagDescriptor → HTML 문자열.

규칙:
- JS  → <script type="text/javascript" src="..."></script>
- CSS → <link rel="stylesheet" href="..."> (xhtml 모드면 self-closing)
- favicon → <link rel="shortcut icon" href="..."> head 맨 앞
- src/href는 템플릿 자신의 출력 디렉터리 기준 상대 경로
- inject="head" 이면 script도 head, 기본은 body 끝
"""

import posixpath
from collections.abc import Sequence

from src.domain.constants import INJECT_HEAD
from src.domain.schemas import AssetManifest, AssetTags, TagDescriptor


def relative_asset_path(asset: str, output_name: str) -> str:
    """
    템플릿 출력 디렉터리 기준 asset 상대 경로.

    Args:
        asset: build root 기준 asset 경로 (query 포함 가능)
        output_name: 템플릿 출력 이름 (예: "blog/post.html")

    Returns:
        상대 경로 (예: "../main.js")
    """
    if "://" in asset or asset.startswith("//"):
        return asset
    start = posixpath.dirname(output_name) or "."
    return posixpath.relpath(asset, start)


def script_tag(src: str) -> TagDescriptor:
    return TagDescriptor(
        tag_name="script",
        attributes={"type": "text/javascript", "src": src},
    )


def stylesheet_tag(href: str, xhtml: bool = False) -> TagDescriptor:
    return TagDescriptor(
        tag_name="link",
        attributes={"rel": "stylesheet", "href": href},
        void=True,
        self_closing=xhtml,
    )


def favicon_tag(href: str, xhtml: bool = False) -> TagDescriptor:
    return TagDescriptor(
        tag_name="link",
        attributes={"rel": "shortcut icon", "href": href},
        void=True,
        self_closing=xhtml,
    )


def generate_asset_tags(
    manifest: AssetManifest,
    output_name: str,
    inject: str = "body",
    xhtml: bool = False,
) -> AssetTags:
    """
    템플릿 하나에 대한 head/body 태그 목록.

    Args:
        manifest: AssetManifest
        output_name: 템플릿 출력 이름 (상대 경로 기준)
        inject: "head" 또는 "body"
        xhtml: void 요소 self-closing 여부

    Returns:
        AssetTags
    """
    scripts = [script_tag(relative_asset_path(js, output_name)) for js in manifest.js]
    styles = [
        stylesheet_tag(relative_asset_path(css, output_name), xhtml)
        for css in manifest.css
    ]

    head: list[TagDescriptor] = []
    body: list[TagDescriptor] = []

    if manifest.favicon:
        head.append(favicon_tag(relative_asset_path(manifest.favicon, output_name), xhtml))

    head.extend(styles)
    if inject == INJECT_HEAD:
        head.extend(scripts)
    else:
        body.extend(scripts)

    return AssetTags(head=tuple(head), body=tuple(body))


def render_tag(tag: TagDescriptor) -> str:
    """
    TagDescriptor → HTML 문자열.

    - True 속성은 이름만, False 속성은 생략
    - void 요소는 닫는 태그 없음, self_closing이면 "/>"
    """
    attributes = []
    for name, value in tag.attributes.items():
        if value is False:
            continue
        if value is True:
            attributes.append(name)
        else:
            attributes.append(f'{name}="{value}"')

    opening = " ".join([tag.tag_name, *attributes])
    closing = "/" if tag.self_closing else ""
    inner = tag.inner_html or ""
    end = "" if tag.void or tag.self_closing else f"</{tag.tag_name}>"
    return f"<{opening}{closing}>{inner}{end}"


def render_tags(tags: Sequence[TagDescriptor]) -> str:
    return "".join(render_tag(tag) for tag in tags)
