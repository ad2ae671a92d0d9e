"""
Transporte HTTP autenticado hacia el portal.

La sesión (cookies incluidas) es un handle explícito: `login` la crea y cada
`fetch` la recibe como argumento. Reintentos y backoff no existen aquí.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Tuple
from urllib.parse import urljoin

import httpx
from pydantic import BaseModel

from .document import Document
from .errors import AuthenticationFailure, SyncError


logger = logging.getLogger(__name__)

IDENTIFICATION_PATH = "/fr/identification.jsp"
LOGIN_FORM_SELECTOR = 'form[name="acces_identification"]'
LOGOFF_SELECTOR = "a[href='/logoff']"
LOGIN_ENCODING = "latin-1"


class Credentials(BaseModel):
    login: str
    password: str


@dataclass
class PortalSession:
    client: httpx.AsyncClient


class Transport(Protocol):
    async def login(self, credentials: Credentials) -> Tuple[PortalSession, Document]:
        ...

    async def fetch(
        self, session: PortalSession, path: str, form: Optional[Dict[str, str]] = None
    ) -> Document:
        ...

    async def close(self, session: PortalSession) -> None:
        ...


def is_logged_in(doc: Document) -> bool:
    # la home autenticada tiene un único enlace de logout
    return len(doc.select(LOGOFF_SELECTOR)) == 1


def _login_form_data(form_page: Document, credentials: Credentials) -> Tuple[str, Dict[str, str]]:
    form = form_page.select_one(LOGIN_FORM_SELECTOR)
    if form is None:
        raise SyncError("No se encontró el formulario de identificación")

    data: Dict[str, str] = {}
    for field in form.select("input[name]"):
        data[field.attr("name")] = field.attr("value") or ""
    data.update({"login": credentials.login, "passwd": credentials.password})

    action = form.attr("action") or IDENTIFICATION_PATH
    return action, data


class HttpTransport:
    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_transport = http_transport

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._http_transport,
        )

    async def login(self, credentials: Credentials) -> Tuple[PortalSession, Document]:
        session = PortalSession(client=self._new_client())
        try:
            resp = await session.client.get(IDENTIFICATION_PATH)
            resp.raise_for_status()
            action, data = _login_form_data(Document.from_html(resp.text), credentials)

            resp = await session.client.post(urljoin(IDENTIFICATION_PATH, action), data=data)
            resp.raise_for_status()
            home = Document.from_html(resp.content.decode(LOGIN_ENCODING))
        except Exception:
            await self.close(session)
            raise

        if not is_logged_in(home):
            await self.close(session)
            raise AuthenticationFailure("Credenciales rechazadas por el portal")

        logger.info("Sesión iniciada en el portal")
        return session, home

    async def fetch(
        self, session: PortalSession, path: str, form: Optional[Dict[str, str]] = None
    ) -> Document:
        if form is None:
            resp = await session.client.get(path)
        else:
            resp = await session.client.post(path, data=form)
        resp.raise_for_status()
        logger.debug("%s %s -> %s", resp.request.method, path, resp.status_code)
        return Document.from_html(resp.text)

    async def close(self, session: PortalSession) -> None:
        await session.client.aclose()
