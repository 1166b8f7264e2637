# src/otpimport/importers/html_parser.py

"""
HTML export parsing.

Three layouts are recognized, in this order:

1. ``tagged-table`` - Ente Auth (``.html.txt``): one ``<table class="otp-entry">``
   per credential, fields held in ``<p>`` elements with ``<b>`` values.
2. ``header-column`` - 2FA HTML export: a table whose header row names the
   columns (service, account, category, secret, ...), in any order.
3. ``legacy`` - Aegis / older 2FA exports: header-less rows read
   positionally as issuer | account | secret.
"""

from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from otpimport.common.diagnostics import Reporter, ensure_reporter
from otpimport.common.models import CredentialRecord
from otpimport.common.otpauth import (
    DEFAULT_COUNTER,
    DEFAULT_DIGITS,
    DEFAULT_PERIOD,
    is_missing,
    parse_int,
)
from .extraction import Dialect, collect, detect, run_dialects
from .signatures import SIGNATURES, contains_token, resolve_columns

SOURCE = "html"

TAGGED = SIGNATURES["html"]["tagged_table"]
HEADER_COLUMN = SIGNATURES["html"]["header_column"]


def _text(node) -> str:
    return node.get_text().strip() if node is not None else ""


def _cell(cells, idx: int) -> str:
    return _text(cells[idx]) if 0 <= idx < len(cells) else ""


def _blank_marker(value: str) -> str:
    return "" if is_missing(value) else value


# --- Dialect 1: tagged tables ---

def _tagged_tables(soup: BeautifulSoup):
    return soup.find_all("table", class_=TAGGED["marker_class"])


def _is_tagged(soup: BeautifulSoup) -> bool:
    return bool(_tagged_tables(soup))


def _build_tagged(table, location: Dict[str, Any], reporter: Reporter) -> Optional[CredentialRecord]:
    first_cell = table.find("td")
    if first_cell is None:
        reporter.warning("entry_skipped", "Tagged table has no cell", source=SOURCE, **location)
        return None

    paragraphs = first_cell.find_all("p")
    if len(paragraphs) < TAGGED["min_paragraphs"]:
        reporter.warning(
            "entry_skipped",
            f"Tagged entry has {len(paragraphs)} fields, expected at least {TAGGED['min_paragraphs']}",
            source=SOURCE,
            **location,
        )
        return None

    fields: Dict[str, str] = {}
    for idx, p in enumerate(paragraphs):
        bold = p.find("b")
        if bold is None:
            continue
        value = _text(bold)
        if idx == 0:
            fields["issuer"] = value
        elif idx == 1:
            fields["account"] = value
        else:
            text = _text(p)
            for prefix, name in TAGGED["prefixes"].items():
                if text.startswith(prefix):
                    fields[name] = value
                    break

    if is_missing(fields.get("secret")):
        reporter.warning("entry_skipped", "Skipping tagged entry without secret", source=SOURCE, **location)
        return None

    return CredentialRecord(
        secret=fields["secret"],
        issuer=fields.get("issuer", ""),
        account=fields.get("account", ""),
        otp_type=fields.get("type", ""),
        digits=parse_int(fields.get("digits"), DEFAULT_DIGITS),
        period=parse_int(fields.get("period"), DEFAULT_PERIOD),
        counter=parse_int(fields.get("counter"), DEFAULT_COUNTER),
        algorithm=fields.get("algorithm", ""),
    )


def _extract_tagged(soup: BeautifulSoup, records: List[CredentialRecord], reporter: Reporter) -> None:
    entries = (({"table": idx}, table) for idx, table in enumerate(_tagged_tables(soup)))
    collect(entries, _build_tagged, records, reporter, SOURCE)


# --- Dialect 2: header-column tables ---

def _header_texts(table) -> List[str]:
    rows = table.find_all("tr")
    if not rows:
        return []
    return [_text(th) for th in rows[0].find_all("th")]


def _is_header_column(soup: BeautifulSoup) -> bool:
    columns = HEADER_COLUMN["columns"]
    service_key, secret_key = HEADER_COLUMN["signature"]
    for table in soup.find_all("table"):
        if len(table.find_all("tr")) < 2:
            continue
        header = ",".join(_header_texts(table))
        if contains_token(header, columns[service_key]) and contains_token(header, columns[secret_key]):
            return True
    return False


def _build_header_row(row_and_columns, location: Dict[str, Any], reporter: Reporter) -> Optional[CredentialRecord]:
    row, columns = row_and_columns
    cells = row.find_all("td")
    if len(cells) < HEADER_COLUMN["min_cells"]:
        reporter.warning("entry_skipped", f"Row has only {len(cells)} cells", source=SOURCE, **location)
        return None

    secret = _cell(cells, columns["secret"])
    if is_missing(secret):
        reporter.warning("entry_skipped", "Skipping row with empty secret", source=SOURCE, **location)
        return None

    return CredentialRecord(
        secret=secret,
        issuer=_cell(cells, columns["service"]),
        account=_blank_marker(_cell(cells, columns["account"])),
        category=_blank_marker(_cell(cells, columns["category"])),
        digits=parse_int(_cell(cells, columns["digits"]), DEFAULT_DIGITS),
        period=parse_int(_cell(cells, columns["period"]), DEFAULT_PERIOD),
        algorithm=_cell(cells, columns["algorithm"]),
    )


def _header_rows(soup: BeautifulSoup, reporter: Reporter):
    for table_idx, table in enumerate(soup.find_all("table")):
        rows = table.find_all("tr")
        if not rows:
            continue
        columns = resolve_columns(_header_texts(table), HEADER_COLUMN["columns"])
        reporter.info("columns_resolved", "Resolved header columns", source=SOURCE,
                      table=table_idx, columns=columns)
        # 第 0 行是表头，数据从第 1 行开始
        for row_idx in range(1, len(rows)):
            yield {"table": table_idx, "row": row_idx}, (rows[row_idx], columns)


def _extract_header_column(soup: BeautifulSoup, records: List[CredentialRecord], reporter: Reporter) -> None:
    collect(_header_rows(soup, reporter), _build_header_row, records, reporter, SOURCE)


# --- Dialect 3: legacy header-less tables ---

def _has_tables(soup: BeautifulSoup) -> bool:
    return soup.find("table") is not None


def _build_legacy_row(row, location: Dict[str, Any], reporter: Reporter) -> Optional[CredentialRecord]:
    cells = row.find_all("td")
    if not cells:
        # 表头行或空行
        return None
    if len(cells) < 2:
        reporter.warning("entry_skipped", "Row has fewer than 2 cells", source=SOURCE, **location)
        return None

    if len(cells) >= 3:
        issuer, account, secret = _text(cells[0]), _text(cells[1]), _text(cells[2])
    else:
        issuer, account, secret = _text(cells[0]), "", _text(cells[1])

    if is_missing(secret):
        reporter.warning("entry_skipped", "Skipping row with empty secret", source=SOURCE, **location)
        return None

    return CredentialRecord(secret=secret, issuer=issuer, account=account)


def _legacy_rows(soup: BeautifulSoup):
    for table_idx, table in enumerate(soup.find_all("table")):
        for row_idx, row in enumerate(table.find_all("tr")):
            yield {"table": table_idx, "row": row_idx}, row


def _extract_legacy(soup: BeautifulSoup, records: List[CredentialRecord], reporter: Reporter) -> None:
    collect(_legacy_rows(soup), _build_legacy_row, records, reporter, SOURCE)


HTML_DIALECTS = (
    Dialect("tagged-table", _is_tagged, _extract_tagged),
    Dialect("header-column", _is_header_column, _extract_header_column),
    Dialect("legacy", _has_tables, _extract_legacy),
)


def detect_html_dialect(html_text: str) -> Optional[str]:
    dialect = detect(BeautifulSoup(html_text, "html.parser"), HTML_DIALECTS)
    return dialect.name if dialect else None


def parse_html(html_text: str, reporter: Optional[Reporter] = None) -> List[CredentialRecord]:
    """
    Parse an HTML authenticator export into credential records.

    Never raises: unrecognized markup yields an empty list and any failure
    is sent to ``reporter``, returning whatever was parsed so far.
    """
    reporter = ensure_reporter(reporter)
    records: List[CredentialRecord] = []
    try:
        soup = BeautifulSoup(html_text, "html.parser")
        run_dialects(soup, HTML_DIALECTS, records, reporter, SOURCE)
    except Exception as e:
        reporter.error("parse_failed", f"Failed to parse HTML: {e}", source=SOURCE)
    return records
