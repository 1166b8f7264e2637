# src/otpimport/importers/router.py

import json
from pathlib import Path
from typing import List, Optional, Union

from otpimport.common.diagnostics import Reporter, ensure_reporter
from otpimport.common.models import CredentialRecord
from .csv_parser import detect_csv_dialect, parse_csv
from .html_parser import detect_html_dialect, parse_html
from .json_parser import detect_json_dialect, parse_json

KINDS = ("html", "csv", "json")

# 按后缀识别；Ente Auth 导出文件名形如 ente-auth-codes.html.txt
SUFFIX_KINDS = {
    ".html": "html",
    ".htm": "html",
    ".csv": "csv",
    ".json": "json",
}


def detect_kind(path: Optional[Union[str, Path]], text: str) -> str:
    """Guess the content kind from the file name, then from the content itself."""
    if path is not None:
        name = Path(path).name.lower()
        if name.endswith(".html.txt"):
            return "html"
        kind = SUFFIX_KINDS.get(Path(name).suffix)
        if kind:
            return kind

    stripped = text.lstrip()
    if stripped.startswith(("{", "[")):
        return "json"
    if stripped.startswith("<"):
        return "html"
    return "csv"


def import_text(text: str, kind: str, reporter: Optional[Reporter] = None) -> List[CredentialRecord]:
    """Send raw text to the router for ``kind``."""
    reporter = ensure_reporter(reporter)
    if kind == "html":
        return parse_html(text, reporter)
    if kind == "csv":
        return parse_csv(text, reporter)
    if kind == "json":
        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            reporter.error("parse_failed", f"Invalid JSON: {e}", source="json")
            return []
        return parse_json(value, reporter)
    raise ValueError(f"Unknown content kind: {kind}")


def read_text(path: Union[str, Path]) -> str:
    # utf-8-sig 兼容带 BOM 的导出文件
    return Path(path).read_text(encoding="utf-8-sig")


def import_file(
    path: Union[str, Path],
    kind: Optional[str] = None,
    reporter: Optional[Reporter] = None,
) -> List[CredentialRecord]:
    text = read_text(path)
    return import_text(text, kind or detect_kind(path, text), reporter)


def detect_dialect(text: str, kind: str) -> Optional[str]:
    if kind == "html":
        return detect_html_dialect(text)
    if kind == "csv":
        return detect_csv_dialect(text)
    if kind == "json":
        try:
            return detect_json_dialect(json.loads(text))
        except json.JSONDecodeError:
            return None
    raise ValueError(f"Unknown content kind: {kind}")
