# tests/test_html_parser.py

import pytest
from otpimport.common.diagnostics import CollectingReporter
from otpimport.importers.html_parser import detect_html_dialect, parse_html


def _ente_entry(*paragraphs):
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    return f'<table class="otp-entry"><tr><td>{body}</td><td><img src="qr.png"></td></tr></table>'


ENTE_HTML = "<html><body>{}{}</body></html>".format(
    _ente_entry(
        "<b>GitHub</b>",
        "<b>bob@x.com</b>",
        "Type: <b>TOTP</b>",
        "Algorithm: <b>sha256</b>",
        "Digits: <b>8</b>",
        "Secret: <b>jbsw y3dp</b>",
        "Period: <b>60</b>",
    ),
    _ente_entry("<b>Short</b>", "<b>only</b>", "Secret: <b>AAAA</b>"),
)

TWOFA_HTML = """
<table>
  <tr><th>服务名称</th><th>账户</th><th>分类</th><th>密钥</th></tr>
  <tr><td>GitHub</td><td>bob@x.com</td><td>Work</td><td>abcd efgh</td></tr>
  <tr><td>Broken</td><td>-</td><td>-</td><td>-</td></tr>
  <tr><td>TooShort</td><td>x</td></tr>
</table>
"""

LEGACY_HTML = """
<table>
  <tr><th>Issuer</th><th>Secret</th></tr>
  <tr><td>Acme</td><td>JBSWY3DPEHPK3PXP</td></tr>
  <tr><td>Mail</td><td>alice</td><td>mzxw 6ytb</td></tr>
  <tr><td>Lonely</td></tr>
</table>
"""


def test_tagged_table_dialect():
    """Ente Auth: 每个 otp-entry 表格对应一条凭据，字段不足 4 个的条目被跳过"""
    reporter = CollectingReporter()
    records = parse_html(ENTE_HTML, reporter)

    assert len(records) == 1
    record = records[0]
    assert record.issuer == "GitHub"
    assert record.account == "bob@x.com"
    assert record.secret == "JBSWY3DP"
    assert record.algorithm == "SHA256"
    assert record.digits == 8
    assert record.period == 60
    assert record.canonical_uri == (
        "otpauth://totp/GitHub:bob%40x.com?secret=JBSWY3DP&issuer=GitHub"
        "&digits=8&period=60&algorithm=SHA256"
    )
    skipped = [d for d in reporter.events("warning") if d.event == "entry_skipped"]
    assert len(skipped) == 1
    assert skipped[0].context["table"] == 1


def test_tagged_table_hotp_with_counter():
    html = _ente_entry("<b>Bank</b>", "<b>me</b>", "Type: <b>HOTP</b>",
                       "Secret: <b>AAAA</b>", "Counter: <b>12</b>")
    [record] = parse_html(html)
    assert record.otp_type == "hotp"
    assert record.counter == 12
    assert record.canonical_uri.endswith("&counter=12")


def test_tagged_table_without_secret_is_skipped():
    html = _ente_entry("<b>A</b>", "<b>b</b>", "Type: <b>TOTP</b>", "Digits: <b>6</b>")
    reporter = CollectingReporter()
    assert parse_html(html, reporter) == []
    assert reporter.count("warning") == 1


def test_header_column_end_to_end():
    records = parse_html(TWOFA_HTML)

    assert len(records) == 1
    record = records[0]
    assert record.issuer == "GitHub"
    assert record.account == "bob@x.com"
    assert record.category == "Work"
    assert record.secret == "ABCDEFGH"
    assert record.digits == 6
    assert record.period == 30
    assert record.algorithm == "SHA1"
    assert record.canonical_uri == "otpauth://totp/GitHub:bob%40x.com?secret=ABCDEFGH&issuer=GitHub"


def test_header_column_dash_secret_is_dropped():
    reporter = CollectingReporter()
    records = parse_html(TWOFA_HTML, reporter)
    assert all(r.issuer != "Broken" for r in records)
    locations = [d.context.get("row") for d in reporter.events("warning")]
    assert locations == [2, 3]


def test_header_column_resolves_columns_in_any_order():
    html = """
    <table>
      <tr><th>密钥</th><th>算法</th><th>位数</th><th>周期</th><th>服务名称</th></tr>
      <tr><td>AAAA</td><td>SHA512</td><td>8</td><td>60</td><td>Vault</td></tr>
    </table>
    """
    [record] = parse_html(html)
    assert record.issuer == "Vault"
    assert record.account == ""
    assert record.category == ""
    assert (record.digits, record.period, record.algorithm) == (8, 60, "SHA512")


def test_header_column_row_error_does_not_stop_batch():
    html = """
    <table>
      <tr><th>服务名称</th><th>账户</th><th>密钥</th><th>位数</th></tr>
      <tr><td>Bad</td><td>x</td><td>AAAA</td><td>many</td></tr>
      <tr><td>Good</td><td>y</td><td>BBBB</td><td>6</td></tr>
    </table>
    """
    reporter = CollectingReporter()
    records = parse_html(html, reporter)

    assert [r.issuer for r in records] == ["Good"]
    [failure] = reporter.events("error")
    assert failure.event == "entry_failed"
    assert failure.context == {"source": "html", "table": 0, "row": 1}


def test_legacy_dialect_two_and_three_cells():
    records = parse_html(LEGACY_HTML)

    assert len(records) == 2
    acme, mail = records
    assert (acme.issuer, acme.account, acme.secret, acme.category) == ("Acme", "", "JBSWY3DPEHPK3PXP", "")
    assert acme.canonical_uri == "otpauth://totp/Acme?secret=JBSWY3DPEHPK3PXP&issuer=Acme"
    assert (mail.issuer, mail.account, mail.secret) == ("Mail", "alice", "MZXW6YTB")


@pytest.mark.parametrize("html, expected", [
    (ENTE_HTML, "tagged-table"),
    (TWOFA_HTML, "header-column"),
    (LEGACY_HTML, "legacy"),
    ("<div>nothing here</div>", None),
])
def test_detect_html_dialect(html, expected):
    assert detect_html_dialect(html) == expected


@pytest.mark.parametrize("content", ["", "<div>no tables</div>", "just some text"])
def test_unrecognized_html_returns_empty(content):
    reporter = CollectingReporter()
    assert parse_html(content, reporter) == []
    assert reporter.events("warning")[0].event == "format_unrecognized"


def test_catastrophic_failure_is_reported_not_raised(mocker):
    mocker.patch("otpimport.importers.html_parser.BeautifulSoup", side_effect=RuntimeError("boom"))
    reporter = CollectingReporter()

    assert parse_html("<table></table>", reporter) == []
    assert reporter.events("error")[0].event == "parse_failed"
