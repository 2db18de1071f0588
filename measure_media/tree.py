"""BeautifulSoup adapters and traversal for the node model."""

from __future__ import annotations

from typing import Iterable, List

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4 import Comment as SoupComment
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from .models import Attribute, Comment, Element, Fragment, Node, Text


def escape_text(value: str) -> str:
    """Minimal escaping, plus no-break spaces written back as ``&nbsp;``."""
    return EntitySubstitution.substitute_xml(value).replace("\xa0", "&nbsp;")


class SourceOrderFormatter(HTMLFormatter):
    """HTML formatter that keeps attribute order and drops the ``/`` on void tags."""

    def __init__(self) -> None:
        super().__init__(
            entity_substitution=escape_text,
            void_element_close_prefix=None,
        )

    def attributes(self, tag: Tag):
        if tag.attrs is None:
            return []
        return list(tag.attrs.items())


FORMATTER = SourceOrderFormatter()


def _attribute_value(value) -> str:
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    if value is None:
        return ""
    return str(value)


def _convert(node) -> Node:
    if isinstance(node, Tag):
        element = Element(
            tag=node.name,
            attrs=[Attribute(name, _attribute_value(value)) for name, value in node.attrs.items()],
            handle=node,
        )
        children = [_convert(child) for child in node.contents]
        if node.name == "template":
            element.content = Fragment(children)
        else:
            element.children = children
        return element
    if isinstance(node, SoupComment):
        return Comment(str(node))
    if isinstance(node, NavigableString):
        return Text(str(node))
    raise TypeError(f"Unsupported node type: {type(node).__name__}")


def parse_fragment(html: str) -> Fragment:
    """Parse markup into a :class:`Fragment` backed by a BeautifulSoup tree."""
    soup = BeautifulSoup(
        html,
        "html.parser",
        multi_valued_attributes=None,
        on_duplicate_attribute="ignore",
    )
    return Fragment(children=[_convert(child) for child in soup.contents], handle=soup)


def _collect(nodes: Iterable[Node], out: List[Node]) -> None:
    for node in nodes:
        out.append(node)
        match node:
            case Element(children=children, content=content):
                _collect(children, out)
                if content is not None:
                    _collect(content.children, out)
            case Fragment(children=children):
                _collect(children, out)
            case Text() | Comment():
                pass


def flatten(nodes: Iterable[Node]) -> List[Node]:
    """Depth-first, parent-first list of every node, template content included."""
    out: List[Node] = []
    _collect(nodes, out)
    return out


def _write_back(element: Element) -> None:
    attrs = {}
    for attr in element.attrs:
        attrs.setdefault(attr.name, attr.value)
    element.handle.attrs = attrs


def serialize(fragment: Fragment) -> str:
    """Render the fragment, writing every element's attribute list to its tag."""
    if fragment.handle is None:
        raise ValueError("Fragment was not produced by parse_fragment")
    for node in flatten(fragment.children):
        if isinstance(node, Element) and node.handle is not None:
            _write_back(node)
    return fragment.handle.decode(formatter=FORMATTER)
