# src/otpimport/common/otpauth.py

import re
from urllib.parse import quote, quote_plus, unquote, urlsplit, parse_qsl
from typing import Any, Dict, Optional

# 标准 otpauth 默认值：与默认值相同的参数不会写入 URI
DEFAULT_TYPE = "totp"
DEFAULT_DIGITS = 6
DEFAULT_PERIOD = 30
DEFAULT_COUNTER = 0
DEFAULT_ALGORITHM = "SHA1"

# 导出文件中表示 "无值" 的占位符
MISSING_MARKER = "-"

_WHITESPACE = re.compile(r"\s+")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

# encodeURIComponent 不转义的字符集合
_LABEL_SAFE = "-_.!~*'()"


def normalize_secret(raw: Optional[str]) -> str:
    """Remove all whitespace from a raw secret and upper-case it."""
    if raw is None:
        return ""
    return _WHITESPACE.sub("", str(raw)).upper()


def is_missing(value: Optional[str]) -> bool:
    """True for empty, blank or placeholder values."""
    if value is None:
        return True
    text = str(value).strip()
    return not text or text == MISSING_MARKER


def parse_int(value: Any, default: int) -> int:
    """
    Lenient integer parsing used for digits / period / counter.

    Blank values and zero fall back to ``default``; a leading integer prefix
    ("8 digits") is accepted. Text without any integer prefix raises
    ValueError so the caller can drop the entry.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value or default
    if isinstance(value, float):
        return int(value) or default

    text = str(value).strip()
    if not text:
        return default
    match = _LEADING_INT.match(text)
    if not match:
        raise ValueError(f"not an integer: {text!r}")
    return int(match.group(1)) or default


def normalize_type(raw: Optional[str]) -> str:
    """Only an explicit 'hotp' switches away from totp."""
    return "hotp" if str(raw or "").strip().lower() == "hotp" else DEFAULT_TYPE


def normalize_algorithm(raw: Optional[str]) -> str:
    text = str(raw or "").strip().upper()
    return text or DEFAULT_ALGORITHM


def _encode_label_part(text: str) -> str:
    return quote(text, safe=_LABEL_SAFE)


def _encode_query_value(value: Any) -> str:
    # application/x-www-form-urlencoded，与浏览器的 URLSearchParams 保持一致
    return quote_plus(str(value), safe="*").replace("~", "%7E")


def build_label(issuer: str, account: str) -> str:
    if issuer and account:
        return f"{_encode_label_part(issuer)}:{_encode_label_part(account)}"
    if issuer:
        return _encode_label_part(issuer)
    if account:
        return _encode_label_part(account)
    return "Unknown"


def build_uri(
    secret: str,
    issuer: str = "",
    account: str = "",
    otp_type: str = DEFAULT_TYPE,
    digits: int = DEFAULT_DIGITS,
    period: int = DEFAULT_PERIOD,
    counter: int = DEFAULT_COUNTER,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """
    Assemble the canonical ``otpauth://`` URI.

    Parameter order is fixed: secret, issuer, digits, period, algorithm,
    counter. Values equal to their defaults are left out; ``period`` only
    applies to totp and ``counter`` is always written for hotp.
    """
    params = [("secret", secret)]
    if issuer:
        params.append(("issuer", issuer))
    if digits != DEFAULT_DIGITS:
        params.append(("digits", digits))
    if otp_type == "totp" and period != DEFAULT_PERIOD:
        params.append(("period", period))
    if algorithm != DEFAULT_ALGORITHM:
        params.append(("algorithm", algorithm))
    if otp_type == "hotp":
        params.append(("counter", counter))

    query = "&".join(f"{key}={_encode_query_value(value)}" for key, value in params)
    return f"otpauth://{otp_type}/{build_label(issuer, account)}?{query}"


def parse_uri(uri: str) -> Dict[str, Any]:
    """
    Read the credential fields back out of an ``otpauth://`` URI.

    The label is split on its first ':'; the ``issuer`` query parameter takes
    precedence over the label prefix.
    """
    parts = urlsplit(uri.strip())
    if parts.scheme.lower() != "otpauth":
        raise ValueError(f"not an otpauth URI: {uri[:40]!r}")

    query = {key.lower(): value for key, value in parse_qsl(parts.query, keep_blank_values=True)}
    label = unquote(parts.path.lstrip("/"))

    if ":" in label:
        label_issuer, account = label.split(":", 1)
    else:
        label_issuer, account = label, ""

    return {
        "issuer": (query.get("issuer") or label_issuer).strip(),
        "account": account.strip(),
        "secret": normalize_secret(query.get("secret", "")),
        "otp_type": normalize_type(parts.netloc),
        "digits": parse_int(query.get("digits"), DEFAULT_DIGITS),
        "period": parse_int(query.get("period"), DEFAULT_PERIOD),
        "counter": parse_int(query.get("counter"), DEFAULT_COUNTER),
        "algorithm": normalize_algorithm(query.get("algorithm")),
    }
