"""
Persistencia: interfaz mínima (find / create / update) y dos implementaciones,
en memoria y en un archivo JSON.
"""

from __future__ import annotations

import copy
import json
import logging
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Protocol


logger = logging.getLogger(__name__)

ACCOUNTS_DOCTYPE = "io.cozy.bank.accounts"
BALANCE_HISTORIES_DOCTYPE = "io.cozy.bank.balancehistories"
OPERATIONS_DOCTYPE = "io.cozy.bank.operations"


class Store(Protocol):
    def find(self, doctype: str, selector: Dict[str, object], limit: Optional[int] = None) -> List[dict]:
        ...

    def create(self, doctype: str, doc: dict) -> dict:
        ...

    def update(self, doctype: str, doc: dict) -> dict:
        ...


class InMemoryStore:
    def __init__(self, data: Optional[Dict[str, Dict[str, dict]]] = None):
        self._data: Dict[str, Dict[str, dict]] = data or {}

    def all(self, doctype: str) -> List[dict]:
        return [copy.deepcopy(d) for d in self._data.get(doctype, {}).values()]

    def find(self, doctype: str, selector: Dict[str, object], limit: Optional[int] = None) -> List[dict]:
        out: List[dict] = []
        for doc in self._data.get(doctype, {}).values():
            if all(doc.get(k) == v for k, v in selector.items()):
                out.append(copy.deepcopy(doc))
                if limit is not None and len(out) >= limit:
                    break
        return out

    def create(self, doctype: str, doc: dict) -> dict:
        doc = copy.deepcopy(doc)
        doc["_id"] = doc.get("_id") or uuid.uuid4().hex
        self._data.setdefault(doctype, {})[doc["_id"]] = doc
        self._changed()
        return copy.deepcopy(doc)

    def update(self, doctype: str, doc: dict) -> dict:
        doc_id = doc.get("_id")
        if not doc_id or doc_id not in self._data.get(doctype, {}):
            raise KeyError(f"{doctype}: no existe el documento {doc_id!r}")
        self._data[doctype][doc_id] = copy.deepcopy(doc)
        self._changed()
        return copy.deepcopy(doc)

    def _changed(self) -> None:
        pass


class JsonFileStore(InMemoryStore):
    """
    Igual que InMemoryStore pero escribe el archivo en cada cambio:
    lo ya guardado sobrevive si el run aborta a mitad.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        data = {}
        if self.path.exists():
            data = json.loads(self.path.read_text(encoding="utf-8"))
            logger.debug("Store cargado desde %s", self.path)
        super().__init__(data)

    def _changed(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), encoding="utf-8")
