# src/otpimport/importers/json_parser.py

from typing import Any, Dict, List, Optional

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
from .signatures import SIGNATURES

SOURCE = "json"

FLAT_LIST = SIGNATURES["json"]["flat_list"]
NESTED = SIGNATURES["json"]["nested_accounts"]


def _str(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _first(entry: Dict[str, Any], *keys: str) -> Any:
    """First truthy value among ``keys``, mirroring ``a || b`` fallbacks."""
    for key in keys:
        value = entry.get(key)
        if value:
            return value
    return None


def _elements(items: List[Any]):
    for idx, item in enumerate(items):
        yield {"index": idx}, item


# --- Dialect A: { "secrets": [...] } ---

def _is_flat_list(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get(FLAT_LIST["list_field"]), list)


def _build_flat(item: Any, location: Dict[str, Any], reporter: Reporter) -> Optional[CredentialRecord]:
    if not isinstance(item, dict):
        reporter.warning("entry_skipped", "Entry is not an object", source=SOURCE, **location)
        return None

    secret = _str(item.get("secret"))
    if is_missing(secret):
        reporter.warning("entry_skipped", "Skipping entry without secret", source=SOURCE, **location)
        return None

    return CredentialRecord(
        secret=secret,
        issuer=_str(_first(item, "issuer", "name")),
        account=_str(item.get("account")),
        otp_type=_str(item.get("type")).lower(),
        digits=parse_int(item.get("digits"), DEFAULT_DIGITS),
        period=parse_int(item.get("period"), DEFAULT_PERIOD),
        counter=parse_int(item.get("counter"), DEFAULT_COUNTER),
        algorithm=_str(item.get("algorithm")).upper(),
        category=_str(item.get("category")),
    )


def _extract_flat(value: Dict[str, Any], records: List[CredentialRecord], reporter: Reporter) -> None:
    collect(_elements(value[FLAT_LIST["list_field"]]), _build_flat, records, reporter, SOURCE)


# --- Dialect B: { "version": ..., "accounts": [...] } ---

def _is_nested_accounts(value: Any) -> bool:
    if not isinstance(value, dict) or NESTED["version_field"] not in value:
        return False
    accounts = value.get(NESTED["list_field"])
    if not isinstance(accounts, list) or not accounts:
        return False
    first = accounts[0]
    if not isinstance(first, dict):
        return False
    return (
        all(key in first for key in NESTED["required_fields"])
        and any(key in first for key in NESTED["secret_fields"])
    )


def _build_nested(account: Any, location: Dict[str, Any], reporter: Reporter) -> Optional[CredentialRecord]:
    if not isinstance(account, dict):
        reporter.warning("entry_skipped", "Account is not an object", source=SOURCE, **location)
        return None

    secret = _str(account.get("secret"))
    if is_missing(secret):
        reporter.warning("entry_skipped", "Skipping account without secret", source=SOURCE, **location)
        return None

    # 该格式没有分类字段，category 固定为空
    return CredentialRecord(
        secret=secret,
        issuer=_str(_first(account, "issuerName", "issuer")),
        account=_str(_first(account, "userName", "name")),
        digits=parse_int(account.get("digits"), DEFAULT_DIGITS),
        period=parse_int(_first(account, "timeStep", "period"), DEFAULT_PERIOD),
        algorithm=_str(account.get("algorithm")),
    )


def _extract_nested(value: Dict[str, Any], records: List[CredentialRecord], reporter: Reporter) -> None:
    collect(_elements(value[NESTED["list_field"]]), _build_nested, records, reporter, SOURCE)


JSON_DIALECTS = (
    Dialect("flat-list", _is_flat_list, _extract_flat),
    Dialect("nested-accounts", _is_nested_accounts, _extract_nested),
)


def detect_json_dialect(value: Any) -> Optional[str]:
    dialect = detect(value, JSON_DIALECTS)
    return dialect.name if dialect else None


def parse_json(value: Any, reporter: Optional[Reporter] = None) -> List[CredentialRecord]:
    """
    Parse an already-decoded JSON export (dict or list) into credential
    records. Both dialects return full records.
    """
    reporter = ensure_reporter(reporter)
    records: List[CredentialRecord] = []
    try:
        run_dialects(value, JSON_DIALECTS, records, reporter, SOURCE)
    except Exception as e:
        reporter.error("parse_failed", f"Failed to parse JSON: {e}", source=SOURCE)
    return records
