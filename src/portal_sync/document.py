from __future__ import annotations

from typing import List, Optional, Union

from bs4 import BeautifulSoup, Comment, NavigableString, Tag


class Node:
    """
    Vista mínima de un elemento HTML: seleccionar por CSS, leer atributo y texto.
    El resto del paquete no conoce BeautifulSoup.
    """

    def __init__(self, tag: Union[Tag, BeautifulSoup]):
        self._tag = tag

    def select(self, path: str) -> List["Node"]:
        return [Node(t) for t in self._tag.select(path)]

    def select_one(self, path: str) -> Optional["Node"]:
        found = self._tag.select_one(path)
        return Node(found) if found is not None else None

    def attr(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if value is None:
            return None
        # bs4 devuelve "class" como lista
        if isinstance(value, list):
            return " ".join(value)
        return value

    def text(self) -> str:
        return self._tag.get_text()

    def own_text(self) -> str:
        """Texto propio del nodo, sin el texto de los elementos hijos."""
        return "".join(
            str(c)
            for c in self._tag.children
            if isinstance(c, NavigableString) and not isinstance(c, Comment)
        )

    def has_children(self) -> bool:
        return any(isinstance(c, Tag) for c in self._tag.children)


class Document(Node):
    @classmethod
    def from_html(cls, markup: Union[str, bytes]) -> "Document":
        return cls(BeautifulSoup(markup, "html.parser"))
