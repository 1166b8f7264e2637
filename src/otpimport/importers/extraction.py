# src/otpimport/importers/extraction.py

from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from otpimport.common.diagnostics import Reporter
from otpimport.common.models import CredentialRecord

# 单条目构建函数：返回记录，或返回 None 表示跳过（跳过原因由其自行上报）
EntryBuilder = Callable[[Any, Dict[str, Any], Reporter], Optional[CredentialRecord]]


class Dialect(NamedTuple):
    """One export layout: a structural signature and its extraction strategy."""
    name: str
    matches: Callable[[Any], bool]
    extract: Callable[[Any, List[CredentialRecord], Reporter], None]


def detect(root: Any, dialects: Sequence[Dialect]) -> Optional[Dialect]:
    """Evaluate signatures top to bottom; first match wins."""
    for dialect in dialects:
        if dialect.matches(root):
            return dialect
    return None


def collect(
    entries: Iterable[Tuple[Dict[str, Any], Any]],
    build: EntryBuilder,
    sink: List[CredentialRecord],
    reporter: Reporter,
    source: str,
) -> None:
    """
    Fold over (location, entry) pairs, appending every successful record to
    ``sink``. An exception in one entry is reported and the fold continues.
    """
    for location, entry in entries:
        try:
            record = build(entry, location, reporter)
        except Exception as e:
            reporter.error(
                "entry_failed",
                f"Failed to parse {source} entry: {e}",
                source=source,
                **location,
            )
            continue
        if record is not None:
            sink.append(record)


def run_dialects(
    root: Any,
    dialects: Sequence[Dialect],
    records: List[CredentialRecord],
    reporter: Reporter,
    source: str,
) -> None:
    dialect = detect(root, dialects)
    if dialect is None:
        reporter.warning("format_unrecognized", f"Unrecognized {source} format", source=source)
        return

    reporter.info("dialect_detected", f"Detected {source} dialect '{dialect.name}'",
                  source=source, dialect=dialect.name)
    dialect.extract(root, records, reporter)
    reporter.info("batch_done", f"Parsed {len(records)} {source} entries",
                  source=source, dialect=dialect.name, count=len(records))
