"""
Style-to-markup translation for merged fragments.

Markdown carries what it can (bold, italic, strikethrough); HTML wraps the
rest (underline, colour, font size, super/subscript). Markdown is applied
first and the HTML wraps it, so renderers ignoring inline HTML still show
the Markdown part. Links are the outermost layer.
"""

from __future__ import annotations

import posixpath
from typing import Callable, List, Optional, Tuple

from tinyhtml import h, raw

from ..domain import Fragment, StyleSet

INTERNAL_LINK_SCHEME = "applenotes:"

LinkResolver = Callable[[str], Optional[str]]


def _split_edges(text: str) -> Tuple[str, str, str]:
    stripped = text.lstrip()
    core = stripped.rstrip()
    return text[: len(text) - len(stripped)], core, stripped[len(core) :]


def _markdown(core: str, style: StyleSet) -> str:
    # Fixed nesting: italic innermost, then bold, then strikethrough
    out = core
    if style.italic:
        out = f"*{out}*"
    if style.bold:
        out = f"**{out}**"
    if style.strikethrough:
        out = f"~~{out}~~"
    return out


def _html(inner: str, style: StyleSet, include_font_size: bool) -> str:
    out = inner
    if style.underline:
        out = h("u")(raw(out)).render()
    css: List[str] = []
    if style.color:
        css.append(f"color:{style.color}")
    if include_font_size and style.font_size:
        css.append(f"font-size:{style.font_size:g}pt")
    if css:
        out = h("span", style="; ".join(css))(raw(out)).render()
    if style.superscript > 0:
        out = h("sup")(raw(out)).render()
    elif style.superscript < 0:
        out = h("sub")(raw(out)).render()
    return out


def wiki_link(target: str, label: Optional[str] = None) -> str:
    if target.lower().endswith(".md"):
        target = target[:-3]
    if not label or label == posixpath.basename(target):
        return f"[[{target}]]"
    return f"[[{target}|{label}]]"


def markdown_link(label: str, uri: str) -> str:
    if any(ch in uri for ch in " ()<>"):
        uri = f"<{uri.replace('<', '%3C').replace('>', '%3E')}>"
    return f"[{label}]({uri})"


def render_link(label: str, uri: str, resolve_link: Optional[LinkResolver] = None) -> str:
    """Internal note URIs become wiki links when resolvable; everything else a hyperlink."""
    if uri.startswith(INTERNAL_LINK_SCHEME) and resolve_link is not None:
        target = resolve_link(uri)
        if target:
            return wiki_link(target, label)
    return markdown_link(label, uri)


def translate(
    fragment: Fragment,
    resolve_link: Optional[LinkResolver] = None,
    *,
    include_font_size: bool = True,
) -> str:
    """Render one fragment. Plain or whitespace-only text passes through unchanged."""
    style = fragment.style
    text = fragment.text
    if not text or style.is_plain:
        return text
    lead, core, trail = _split_edges(text)
    if not core:
        return text
    out = _html(_markdown(core, style), style, include_font_size)
    if style.link:
        out = render_link(out, style.link, resolve_link)
    return f"{lead}{out}{trail}"
