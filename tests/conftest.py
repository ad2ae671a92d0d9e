from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from portal_sync.banks.fortuneo import OPERATIONS_PATH
from portal_sync.document import Document
from portal_sync.errors import AuthenticationFailure
from portal_sync.store import InMemoryStore
from portal_sync.transport import Credentials, is_logged_in


SAMPLES = Path(__file__).resolve().parent / "samples"

CHECKING_LINK = "/fr/prive/mes-comptes/compte-courant.jsp?ca=CCO1"
SAVINGS_LINK = "/fr/prive/mes-comptes/livret.jsp?ca=LIV1"
BROKERAGE_LINK = "/fr/prive/mes-comptes/bourse.jsp?ca=ORD1"
LIFE_LINK = "/fr/prive/mes-comptes/assurance-vie.jsp?ca=VIE1"


def sample(name: str) -> str:
    return (SAMPLES / name).read_text(encoding="utf-8")


def sample_doc(name: str) -> Document:
    return Document.from_html(sample(name))


class FakeSession:
    """Imita el estado de navegación que el portal guarda por sesión."""

    def __init__(self):
        self.current_account: Optional[str] = None
        self.closed = False


class FakeTransport:
    def __init__(self, home: str = "home.html"):
        self.home = home
        self.pages: Dict[str, str] = {
            CHECKING_LINK: sample("checking.html"),
            SAVINGS_LINK: sample("savings.html"),
            BROKERAGE_LINK: sample("brokerage.html"),
            LIFE_LINK: sample("life_insurance.html"),
        }
        self.operation_pages: Dict[str, str] = {
            CHECKING_LINK: sample("operations_checking.html"),
            SAVINGS_LINK: sample("operations_savings.html"),
        }
        self.calls: List[Tuple[str, Optional[dict]]] = []
        self.sessions: List[FakeSession] = []

    async def login(self, credentials: Credentials):
        home = sample_doc(self.home)
        if not is_logged_in(home):
            raise AuthenticationFailure("Credenciales rechazadas por el portal")
        session = FakeSession()
        self.sessions.append(session)
        return session, home

    async def fetch(self, session: FakeSession, path: str, form: Optional[dict] = None) -> Document:
        self.calls.append((path, form))
        if path == OPERATIONS_PATH:
            return Document.from_html(self.operation_pages[session.current_account])
        session.current_account = path
        return Document.from_html(self.pages[path])

    async def close(self, session: FakeSession) -> None:
        session.closed = True


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(login="123456", password="secret")
