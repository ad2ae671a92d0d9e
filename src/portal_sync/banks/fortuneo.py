from __future__ import annotations

import datetime
import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..detect import classify_account_type
from ..document import Document, Node
from ..errors import BalanceParseFailure
from ..models import Account, AccountType, Operation, SyncReport
from ..parse import clean_label, format_search_date, normalize_date, parse_amount, parse_balance, years_before
from ..reconcile import save_accounts, save_balances, save_operations
from ..store import Store
from ..transport import Credentials, PortalSession, Transport


logger = logging.getLogger(__name__)

# Selectores fijos del portal: cambiarlos rompe la compatibilidad con su HTML
ACCOUNTS_SELECTOR = "#menu_mes_comptes>div.slide_wrapper>ul>li>div"
ACCOUNT_NUMBER_SELECTOR = "a.numero_compte"
ACCOUNT_NUMBER_PREFIX_LEN = 3  # "N° "

OPERATIONS_PATH = "/fr/prive/mes-comptes/compte-courant/consulter-situation/consulter-solde.jsp"
OPERATIONS_ROWS_SELECTOR = "#tabHistoriqueOperations>tbody>tr"


@dataclass(frozen=True)
class CategoryExtractor:
    """Cómo leer balance y operaciones de una categoría de cuenta."""

    balance_container: str
    balance_cell: str
    has_operations: bool = False

    def extract_balance(self, page: Document) -> float:
        for container in page.select(self.balance_container):
            cell = container.select_one(self.balance_cell)
            if cell is not None:
                return parse_balance(cell.text())
        raise BalanceParseFailure(
            f"No se encontró el balance en {self.balance_container} {self.balance_cell}"
        )

    def extract_operations(self, page: Document) -> List[Operation]:
        return parse_operations_table(page)


EXTRACTORS: Dict[AccountType, CategoryExtractor] = {
    AccountType.CHECKING: CategoryExtractor(
        balance_container="#tableauConsultationHisto>tbody>tr>td",
        balance_cell="strong",
        has_operations=True,
    ),
    AccountType.BROKERAGE: CategoryExtractor(
        balance_container="#valorisation_compte>table>tbody>tr",
        balance_cell="td.gras",
    ),
    AccountType.LIFE_INSURANCE: CategoryExtractor(
        balance_container="div.synthese_vie>div>div.colonne_gauche>div>p>span",
        balance_cell="strong",
    ),
    AccountType.SAVINGS: CategoryExtractor(
        balance_container="div.synthese_livret_cat>div>div.colonne_gauche>div.arrow_line>a",
        balance_cell="p.synthese_data_line_right_text",
        has_operations=True,
    ),
}


def parse_accounts(home: Document) -> List[Account]:
    accounts: List[Account] = []
    for item in home.select(ACCOUNTS_SELECTOR):
        number_node = item.select_one(ACCOUNT_NUMBER_SELECTOR)
        if number_node is None:
            logger.warning("Entrada del menú de cuentas sin número, se ignora")
            continue

        # el número lleva markup hijo que no forma parte del texto
        number = number_node.own_text()[ACCOUNT_NUMBER_PREFIX_LEN:].strip()
        label_node = item.select_one("span")
        link_node = item.select_one("a")

        account = Account(
            number=number,
            label=clean_label(label_node.text()) if label_node else "",
            type=classify_account_type(item.attr("class") or ""),
            link=(link_node.attr("href") or "") if link_node else "",
        )
        if account.type is AccountType.UNKNOWN:
            logger.warning("Tipo de cuenta desconocido para %s: %r", number, item.attr("class"))
        accounts.append(account)

    return accounts


def _cell_text(row: Node, index: int) -> str:
    cell = row.select_one(f"td:nth-of-type({index})")
    return cell.text() if cell is not None else ""


def _label(row: Node) -> str:
    cell = row.select_one("td:nth-of-type(4)")
    if cell is None:
        return ""
    # filas con markup decorativo: el texto está en el div anidado
    if cell.has_children():
        return clean_label("".join(d.text() for d in cell.select("div")))
    return clean_label(cell.text())


def parse_operations_table(page: Document) -> List[Operation]:
    """
    Columnas: 2 fecha de operación, 3 fecha valor, 4 descripción, 5 débito, 6 crédito.
    Cada fila trae importe en una sola de las dos columnas.
    """
    operations: List[Operation] = []
    for row in page.select(OPERATIONS_ROWS_SELECTOR):
        try:
            operation_date = normalize_date(_cell_text(row, 2))
            value_date = normalize_date(_cell_text(row, 3))
        except ValueError:
            logger.warning("Fila de operaciones sin fechas válidas, se ignora")
            continue

        debit = parse_amount(_cell_text(row, 5))
        credit = parse_amount(_cell_text(row, 6))
        if not math.isnan(credit):
            amount = credit
        elif not math.isnan(debit):
            amount = -abs(debit)
        else:
            logger.warning("Operación del %s sin importe, se ignora", value_date.isoformat())
            continue

        operations.append(
            Operation(
                operation_date=operation_date,
                value_date=value_date,
                label=_label(row),
                amount=amount,
            )
        )

    return operations


async def fetch_balance(transport: Transport, session: PortalSession, account: Account) -> Optional[float]:
    extractor = EXTRACTORS.get(account.type)
    if extractor is None:
        logger.warning("No se puede obtener el balance de una cuenta de tipo %s", account.type.value)
        return None

    page = await transport.fetch(session, account.link)
    return extractor.extract_balance(page)


async def fetch_operations(
    transport: Transport,
    session: PortalSession,
    account: Account,
    today: datetime.date,
    history_years: int = 10,
    page_size: int = 100,
) -> List[Operation]:
    extractor = EXTRACTORS.get(account.type)
    if extractor is None:
        logger.warning("No se pueden obtener las operaciones de una cuenta de tipo %s", account.type.value)
        return []
    if not extractor.has_operations:
        logger.info("Extracción de operaciones no implementada para el tipo %s", account.type.value)
        return []

    # la página de la cuenta fija el contexto de navegación en el servidor
    await transport.fetch(session, account.link)
    page = await transport.fetch(
        session,
        OPERATIONS_PATH,
        form={
            "dateRechercheDebut": format_search_date(years_before(today, history_years)),
            "nbrEltsParPage": str(page_size),
        },
    )
    return extractor.extract_operations(page)


async def sync(
    transport: Transport,
    store: Store,
    credentials: Credentials,
    today: Optional[datetime.date] = None,
    now: Optional[datetime.datetime] = None,
    history_years: int = 10,
    page_size: int = 100,
) -> SyncReport:
    """
    Un run completo: login, cuentas, balances, historial, operaciones.
    Todo en secuencia sobre la misma sesión; cualquier error fatal aborta y lo
    ya guardado queda guardado.
    """
    now = now or datetime.datetime.now(datetime.timezone.utc)
    today = today or now.date()
    report = SyncReport()

    logger.info("Autenticando ...")
    session, home = await transport.login(credentials)
    try:
        logger.info("Obteniendo las cuentas")
        accounts = parse_accounts(home)

        logger.info("Obteniendo los balances")
        for account in accounts:
            account.balance = await fetch_balance(transport, session, account)

        logger.info("Guardando las cuentas")
        saved, skipped = save_accounts(store, accounts)
        report.accounts = saved.counts()
        report.skipped_accounts = skipped

        logger.info("Guardando los balances en el historial")
        report.balance_histories = save_balances(store, saved.saved, today).counts()

        logger.info("Obteniendo las operaciones")
        for account in accounts:
            account.operations = await fetch_operations(
                transport, session, account, today, history_years, page_size
            )

        logger.info("Guardando las operaciones")
        report.operations = save_operations(store, accounts, saved.saved, now).counts()
    finally:
        await transport.close(session)

    return report
