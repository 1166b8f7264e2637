# src/otpimport/importers/signatures.py

import json
from pathlib import Path
from typing import Dict, Iterable, List, Mapping

SIGNATURES_PATH = Path(__file__).parent / "signatures.json"

# --- Load dialect fingerprints from the package data file ---
try:
    with open(SIGNATURES_PATH, "r", encoding="utf-8") as f:
        SIGNATURES = json.load(f)
except (FileNotFoundError, json.JSONDecodeError) as e:
    raise RuntimeError(f"Failed to load dialect signatures from {SIGNATURES_PATH}: {e}")


def _fold(text: str) -> str:
    # 英文表头大小写不敏感；中文表头不受 lower() 影响
    return text.strip().lower()


def contains_token(text: str, tokens: Iterable[str]) -> bool:
    folded = _fold(text)
    return any(_fold(token) in folded for token in tokens)


def resolve_columns(
    headers: List[str],
    columns: Mapping[str, Iterable[str]],
    match: str = "substring",
) -> Dict[str, int]:
    """
    Map each known field name to the index of the first header that carries
    one of its tokens; -1 when no header matches.
    """
    folded = [_fold(h) for h in headers]
    resolved: Dict[str, int] = {}
    for name, tokens in columns.items():
        wanted = [_fold(t) for t in tokens]
        resolved[name] = -1
        for idx, header in enumerate(folded):
            if match == "exact":
                hit = header in wanted
            else:
                hit = any(t in header for t in wanted)
            if hit:
                resolved[name] = idx
                break
    return resolved


def resolve_csv_columns(headers: List[str]) -> Dict[str, int]:
    """CSV columns carry their own match mode per field."""
    resolved: Dict[str, int] = {}
    for name, rule in SIGNATURES["csv"]["columnar"]["columns"].items():
        resolved.update(resolve_columns(headers, {name: rule["tokens"]}, match=rule["match"]))
    return resolved
