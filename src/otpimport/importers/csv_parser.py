# src/otpimport/importers/csv_parser.py

import csv
import re
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

from otpimport.common.diagnostics import Reporter, ensure_reporter
from otpimport.common.models import CredentialRecord
from otpimport.common.otpauth import (
    DEFAULT_COUNTER,
    DEFAULT_DIGITS,
    DEFAULT_PERIOD,
    is_missing,
    parse_int,
    parse_uri,
)
from .extraction import Dialect, collect, detect, run_dialects
from .signatures import SIGNATURES, contains_token, resolve_csv_columns

SOURCE = "csv"

EMBEDDED_URI = SIGNATURES["csv"]["embedded_uri"]
COLUMNAR = SIGNATURES["csv"]["columnar"]
OTPAUTH_PATTERN = re.compile(EMBEDDED_URI["pattern"])


def split_csv_line(line: str) -> List[str]:
    """Split one CSV line into stripped fields, honoring double quotes."""
    for row in csv.reader([line], skipinitialspace=True):
        return [field.strip() for field in row]
    return []


def _lines(csv_text: str) -> List[str]:
    return [line.strip() for line in csv_text.splitlines() if line.strip()]


def _data_lines(lines: List[str]):
    # 行号从 1 开始计数，表头为第 1 行
    for idx in range(1, len(lines)):
        yield {"line": idx + 1}, lines[idx]


# --- Dialect A: a full otpauth:// URI embedded in each line ---

def _is_embedded_uri(lines: List[str]) -> bool:
    header = lines[0]
    return all(token in header for token in EMBEDDED_URI["signature"])


def _build_embedded(line: str, location: Dict[str, Any], reporter: Reporter) -> Optional[CredentialRecord]:
    match = OTPAUTH_PATTERN.search(line)
    if not match:
        reporter.warning("entry_skipped", "No otpauth URI found in line", source=SOURCE, **location)
        return None

    fields = parse_uri(unquote(match.group(0)))
    if is_missing(fields["secret"]):
        reporter.warning("entry_skipped", "Embedded URI has no secret", source=SOURCE, **location)
        return None
    return CredentialRecord(**fields)


def _extract_embedded(lines: List[str], records: List[CredentialRecord], reporter: Reporter) -> None:
    collect(_data_lines(lines), _build_embedded, records, reporter, SOURCE)


# --- Dialect B: named columns ---

def _is_columnar(lines: List[str]) -> bool:
    return contains_token(lines[0], COLUMNAR["signature"])


def _field(fields: List[str], idx: int, default: str = "") -> str:
    return fields[idx] if 0 <= idx < len(fields) else default


def _extract_columnar(lines: List[str], records: List[CredentialRecord], reporter: Reporter) -> None:
    columns = resolve_csv_columns(split_csv_line(lines[0]))
    reporter.info("columns_resolved", "Resolved CSV columns", source=SOURCE, columns=columns)

    def build(line: str, location: Dict[str, Any], reporter: Reporter) -> Optional[CredentialRecord]:
        fields = split_csv_line(line)
        secret = _field(fields, columns["secret"])
        if is_missing(secret):
            reporter.warning("entry_skipped", "Skipping line with empty secret", source=SOURCE, **location)
            return None

        return CredentialRecord(
            secret=secret,
            issuer=_field(fields, columns["service"]),
            account=_field(fields, columns["account"]),
            otp_type=_field(fields, columns["type"]),
            digits=parse_int(_field(fields, columns["digits"]), DEFAULT_DIGITS),
            period=parse_int(_field(fields, columns["period"]), DEFAULT_PERIOD),
            counter=parse_int(_field(fields, columns["counter"]), DEFAULT_COUNTER),
            algorithm=_field(fields, columns["algorithm"]),
            category=_field(fields, columns["category"]),
        )

    collect(_data_lines(lines), build, records, reporter, SOURCE)


CSV_DIALECTS = (
    Dialect("embedded-uri", _is_embedded_uri, _extract_embedded),
    Dialect("columnar", _is_columnar, _extract_columnar),
)


def detect_csv_dialect(csv_text: str) -> Optional[str]:
    lines = _lines(csv_text)
    if len(lines) < 2:
        return None
    dialect = detect(lines, CSV_DIALECTS)
    return dialect.name if dialect else None


def parse_csv(csv_text: str, reporter: Optional[Reporter] = None) -> List[CredentialRecord]:
    """
    Parse a CSV authenticator export into credential records.

    A header line plus at least one data line is required; anything less,
    or a header no dialect recognizes, yields an empty list.
    """
    reporter = ensure_reporter(reporter)
    records: List[CredentialRecord] = []
    try:
        lines = _lines(csv_text)
        if len(lines) < 2:
            reporter.warning("format_unrecognized", "CSV content has no data lines", source=SOURCE)
            return records
        run_dialects(lines, CSV_DIALECTS, records, reporter, SOURCE)
    except Exception as e:
        reporter.error("parse_failed", f"Failed to parse CSV: {e}", source=SOURCE)
    return records
