"""Default template functions and function-map composition."""

import html
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any
from xml.etree.ElementTree import Element

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markupsafe import Markup

FunctionMap = Mapping[str, Callable[..., Any]]

_MARKDOWN_EXTENSIONS = ("tables", "fenced_code", "sane_lists", "smarty")

_UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:")
_URL_ATTRIBUTES = ("href", "src")


def _is_unsafe_url(url: str) -> bool:
    # Browsers ignore whitespace and control characters inside the scheme
    normalized = "".join(ch for ch in html.unescape(url) if ch.isprintable())
    return "".join(normalized.split()).lower().startswith(_UNSAFE_SCHEMES)


class _DropUnsafeUrls(Treeprocessor):
    """Remove link and image URLs whose scheme can run script."""

    def run(self, root: Element) -> None:
        for element in root.iter():
            for attribute in _URL_ATTRIBUTES:
                url = element.get(attribute)
                if url is not None and _is_unsafe_url(url):
                    del element.attrib[attribute]


class _SafeHtml(Extension):
    """Escape raw HTML and drop script URLs from markdown output."""

    def extendMarkdown(self, md: markdown.Markdown) -> None:  # noqa: N802
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")
        # After the unescape step, so escaped characters are checked as written
        md.treeprocessors.register(_DropUnsafeUrls(md), "drop_unsafe_urls", -1)


def markd(*values: object) -> Markup:
    """Render markdown to HTML.

    The string forms of all values are concatenated before conversion, so
    both ``markd(body)`` and ``markd(title, "\\n\\n", body)`` work. Raw HTML
    in the input is escaped, and link or image URLs using the
    ``javascript:``, ``vbscript:`` or ``data:`` schemes are dropped.

    Args:
        *values: Values whose string forms make up the markdown source.

    Returns:
        The converted HTML, marked as trusted.
    """
    source = "".join(str(value) for value in values)
    converted = markdown.markdown(
        source,
        extensions=[*_MARKDOWN_EXTENSIONS, _SafeHtml()],
        output_format="xhtml",
    )
    return Markup(converted)  # noqa: S704


def noescape(value: object) -> Markup:
    """Mark a string as trusted HTML so it is output without escaping.

    Non-string values produce an empty string rather than an error.
    """
    if not isinstance(value, str):
        return Markup("")
    return Markup(value)  # noqa: S704


DEFAULT_FUNCTIONS: FunctionMap = MappingProxyType(
    {
        "markd": markd,
        "noescape": noescape,
    }
)


def merge_functions(
    base: FunctionMap,
    *overlays: FunctionMap | None,
) -> dict[str, Callable[..., Any]]:
    """Merge function maps, later maps overriding earlier ones.

    Merged in order (later values override earlier):
    1. The base map
    2. Each overlay, in argument order

    Neither the base nor the overlays are modified.

    Args:
        base: The starting function map.
        *overlays: Additional maps. None entries are skipped.

    Returns:
        A new dictionary holding the merged functions.
    """
    result: dict[str, Callable[..., Any]] = dict(base)
    for overlay in overlays:
        if overlay:
            result = {**result, **overlay}
    return result
