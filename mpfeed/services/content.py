"""Article body normalization for WeChat MP pages.

The content node of an article page is rewritten into a fragment that renders
the same outside of WeChat:

- code-snippet ``section`` blocks become ``p > pre > code`` with a ``<br>``
  after every line and the line-number list dropped;
- every other ``section`` becomes ``div`` (or ``p`` when it only holds inline
  content), innermost first;
- ``script`` elements are removed;
- lazy-loaded images get their real ``src`` back from ``data-src``.
"""

from __future__ import annotations

from typing import Optional, Union

from bs4 import BeautifulSoup, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

CONTENT_SELECTOR = "div#js_content.rich_media_content"
CODE_SNIPPET_CLASS = "code-snippet__fix"
LINE_INDEX_CLASS = "code-snippet__line-index"
LAZY_SRC_ATTR = "data-src"

_BLOCK_TAGS = ["p", "div", "section"]

# void elements as "<br>" rather than "<br/>"
_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)
_TAG_FACTORY = BeautifulSoup("", "html.parser")

HtmlFragment = Union[str, Tag, None]


def fix_article_content(html: HtmlFragment = None, keep_img_placeholder: bool = False) -> str:
    """Return the normalized inner HTML of an article body.

    ``html`` may be a markup string, a full parsed document (the content node
    is looked up by :data:`CONTENT_SELECTOR`) or an already selected node,
    which is rewritten in place. Missing input or a missing content node
    yields ``""``.
    """
    root = _resolve_root(html)
    if root is None:
        return ""
    if not keep_img_placeholder:
        _fix_images(root)
    _rewrite_children(root)
    return root.decode_contents(formatter=_FORMATTER)


def _resolve_root(html: HtmlFragment) -> Optional[Tag]:
    if html is None:
        return None
    if isinstance(html, str):
        if not html:
            return None
        return BeautifulSoup(html, "html.parser")
    if isinstance(html, BeautifulSoup):
        return html.select_one(CONTENT_SELECTOR)
    return html


def _fix_images(root: Tag) -> None:
    for img in root.find_all("img", attrs={LAZY_SRC_ATTR: True}):
        real_src = img[LAZY_SRC_ATTR]
        # an empty data-src carries no URL; keep whatever src is there
        if real_src:
            img["src"] = real_src
        del img[LAZY_SRC_ATTR]


def _rewrite_children(node: Tag) -> None:
    for child in list(node.children):
        if not isinstance(child, Tag):
            continue
        if child.name == "script":
            child.decompose()
        elif is_code_snippet(child):
            _flatten_code_snippet(child)
        else:
            _rewrite_children(child)
            if child.name == "section":
                child.name = "div" if child.find(_BLOCK_TAGS) else "p"


def is_code_snippet(tag: Tag) -> bool:
    """Whether ``tag`` is a code block: a section with a line-index list and a ``pre``."""
    if tag.name != "section" or tag.find("pre", recursive=False) is None:
        return False
    if CODE_SNIPPET_CLASS in (tag.get("class") or []):
        return True
    return tag.find(class_=LINE_INDEX_CLASS, recursive=False) is not None


def _flatten_code_snippet(section: Tag) -> None:
    for line_index in section.find_all(class_=LINE_INDEX_CLASS):
        line_index.decompose()
    for pre in section.find_all("pre", recursive=False):
        for code in pre.find_all("code", recursive=False):
            code.insert_after(_TAG_FACTORY.new_tag("br"))
    # captions and other wrappers beside the pre get the same section/script rewrite
    _rewrite_children(section)
    section.name = "p"
