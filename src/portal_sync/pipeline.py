from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from .banks.fortuneo import sync
from .config import get_settings
from .errors import SyncError
from .store import JsonFileStore
from .transport import Credentials, HttpTransport


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Sincroniza cuentas, balances y operaciones de Fortuneo")
    parser.add_argument("--store", default=settings.STORE_PATH, help="Archivo JSON del store")
    parser.add_argument("--out", default="", help="Ruta de salida del reporte JSON (opcional)")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="DEBUG, INFO, WARNING ...")
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    console = Console()

    if not settings.PORTAL_LOGIN or not settings.PORTAL_PASSWORD:
        console.print("Faltan PORTAL_LOGIN / PORTAL_PASSWORD", style="bold red")
        return 2

    store = JsonFileStore(args.store)
    transport = HttpTransport(settings.PORTAL_BASE_URL, timeout=settings.HTTP_TIMEOUT)
    credentials = Credentials(login=settings.PORTAL_LOGIN, password=settings.PORTAL_PASSWORD)

    console.print(f"Sincronizando -> {store.path}", style="bold")
    try:
        report = asyncio.run(
            sync(
                transport,
                store,
                credentials,
                history_years=settings.HISTORY_YEARS,
                page_size=settings.PAGE_SIZE,
            )
        )
    except SyncError as exc:
        console.print(f"ERROR: {exc}", style="bold red")
        return 1

    payload = report.model_dump()
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        console.print(f"OK -> {out_path}", style="bold green")
    else:
        print(json.dumps(payload, ensure_ascii=False, indent=2))

    console.print(
        f"Operaciones nuevas: {report.operations.created}, cuentas actualizadas: {report.accounts.updated}",
        style="bold cyan",
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
