"""Data models used throughout the measurement pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union


@dataclass
class Attribute:
    """A single name/value pair on an element."""

    name: str
    value: str


@dataclass(eq=False)
class Fragment:
    """Root of a parsed document, or the content of a ``<template>``."""

    children: List[Node] = field(default_factory=list)
    handle: Any = field(default=None, repr=False)


@dataclass(eq=False)
class Element:
    """An element with an ordered attribute list.

    Attribute names are not unique: ``set_attribute`` always appends and
    lookups return the first match.
    """

    tag: str
    attrs: List[Attribute] = field(default_factory=list)
    children: List[Node] = field(default_factory=list)
    content: Optional[Fragment] = None
    handle: Any = field(default=None, repr=False)

    def get_attribute(self, name: str) -> Optional[str]:
        for attr in self.attrs:
            if attr.name == name:
                return attr.value
        return None

    def has_attribute(self, name: str) -> bool:
        return any(attr.name == name for attr in self.attrs)

    def set_attribute(self, name: str, value: str) -> None:
        self.attrs = [*self.attrs, Attribute(name, value)]

    def remove_attribute(self, name: str) -> None:
        self.attrs = [attr for attr in self.attrs if attr.name != name]

    def child_elements(self, tag: str) -> List[Element]:
        """Direct children with the given tag name."""
        return [
            child
            for child in self.children
            if isinstance(child, Element) and child.tag == tag
        ]


@dataclass(eq=False)
class Text:
    """Character data, including doctype and other declarations."""

    data: str


@dataclass(eq=False)
class Comment:
    data: str


Node = Union[Fragment, Element, Text, Comment]


@dataclass(frozen=True)
class Dimensions:
    """Pixel size reported by a prober."""

    width: int
    height: int

    def as_attributes(self) -> List[Attribute]:
        return [
            Attribute("width", str(self.width)),
            Attribute("height", str(self.height)),
        ]
