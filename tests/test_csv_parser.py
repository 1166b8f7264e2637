# tests/test_csv_parser.py

import pytest
from otpimport.common.diagnostics import CollectingReporter
from otpimport.importers.csv_parser import detect_csv_dialect, parse_csv, split_csv_line

BITWARDEN_CSV = (
    "folder,favorite,type,name,notes,fields,reprompt,login_uri,login_username,login_password,login_totp\n"
    ",,login,Acme,,,0,,,,otpauth://totp/Acme:bob?secret=ABC123&digits=8\n"
    ",,login,Encoded,,,0,,,,otpauth://totp/Shop%3Aalice%40mail.com?secret=mzxw6ytb&issuer=Shop\n"
    ",,login,NoTotp,,,0,https://example.com,user,pass,\n"
)

TWOFA_CSV = (
    "服务名称,账户信息,密钥,类型,位数,周期(秒),算法,分类\n"
    "GitHub,bob@x.com,abcd efgh,TOTP,6,30,SHA1,Work\n"
    "\n"
    '"Acme, Inc.",alice,JBSWY3DP,TOTP,8,60,SHA256,\n'
    "Empty,nobody,,TOTP,6,30,SHA1,\n"
)


def test_split_csv_line_respects_quotes():
    assert split_csv_line('a,"b,c", d') == ["a", "b,c", "d"]
    assert split_csv_line("") == []


def test_embedded_uri_round_trip():
    """Bitwarden Authenticator: 从每行内嵌的 otpauth:// URI 中读取字段"""
    reporter = CollectingReporter()
    records = parse_csv(BITWARDEN_CSV, reporter)

    assert len(records) == 2
    acme = records[0]
    assert acme.digits == 8
    assert acme.issuer == "Acme"
    assert acme.account == "bob"
    assert acme.secret == "ABC123"
    assert acme.canonical_uri == "otpauth://totp/Acme:bob?secret=ABC123&issuer=Acme&digits=8"

    shop = records[1]
    assert (shop.issuer, shop.account, shop.secret) == ("Shop", "alice@mail.com", "MZXW6YTB")

    [skipped] = reporter.events("warning")
    assert skipped.context["line"] == 4


def test_columnar_dialect():
    reporter = CollectingReporter()
    records = parse_csv(TWOFA_CSV, reporter)

    assert [r.issuer for r in records] == ["GitHub", "Acme, Inc."]
    github, acme = records
    assert github.account == "bob@x.com"
    assert github.secret == "ABCDEFGH"
    assert github.category == "Work"
    assert github.canonical_uri == "otpauth://totp/GitHub:bob%40x.com?secret=ABCDEFGH&issuer=GitHub"

    assert (acme.digits, acme.period, acme.algorithm, acme.category) == (8, 60, "SHA256", "")
    assert "issuer=Acme%2C+Inc." in acme.canonical_uri

    [skipped] = reporter.events("warning")
    assert skipped.event == "entry_skipped"


def test_columnar_english_headers_are_case_insensitive_and_default_missing_columns():
    csv_text = "Service,Account,Secret\nMail,me,aaaa bbbb\n"
    [record] = parse_csv(csv_text)
    assert (record.issuer, record.account, record.secret) == ("Mail", "me", "AAAABBBB")
    assert (record.digits, record.period, record.algorithm, record.otp_type) == (6, 30, "SHA1", "totp")


def test_columnar_hotp_type_and_counter():
    csv_text = "service,secret,type,counter\nBank,AAAA,HOTP,3\n"
    [record] = parse_csv(csv_text)
    assert record.otp_type == "hotp"
    assert record.canonical_uri == "otpauth://hotp/Bank?secret=AAAA&issuer=Bank&counter=3"


def test_columnar_bad_number_only_drops_that_line():
    csv_text = "service,secret,digits\nBad,AAAA,lots\nGood,BBBB,6\n"
    reporter = CollectingReporter()
    records = parse_csv(csv_text, reporter)

    assert [r.issuer for r in records] == ["Good"]
    [failure] = reporter.events("error")
    assert failure.event == "entry_failed"
    assert failure.context["line"] == 2


@pytest.mark.parametrize("content", [
    "",
    "service,secret\n",
    "name,password\nfoo,bar\n",
])
def test_unrecognized_csv_returns_empty(content):
    reporter = CollectingReporter()
    assert parse_csv(content, reporter) == []
    assert reporter.events("warning")[0].event == "format_unrecognized"


@pytest.mark.parametrize("content, expected", [
    (BITWARDEN_CSV, "embedded-uri"),
    (TWOFA_CSV, "columnar"),
    ("name,password\nfoo,bar\n", None),
])
def test_detect_csv_dialect(content, expected):
    assert detect_csv_dialect(content) == expected


def test_embedded_uri_placeholder_secret_is_dropped():
    """内嵌 URI 的 secret 为占位符 '-' 时整行跳过"""
    reporter = CollectingReporter()
    assert parse_csv("folder,login_totp\n,otpauth://totp/Acme:bob?secret=-\n", reporter) == []
    [skipped] = reporter.events("warning")
    assert skipped.event == "entry_skipped"
    assert skipped.context["line"] == 2


def test_embedded_uri_in_quoted_field():
    csv_text = (
        "folder,favorite,type,name,login_totp\n"
        ',,login,Acme,"otpauth://totp/Acme:bob?secret=ABC123&issuer=Acme"\n'
    )
    [record] = parse_csv(csv_text)
    assert record.issuer == "Acme"
    assert record.secret == "ABC123"
    assert record.canonical_uri == "otpauth://totp/Acme:bob?secret=ABC123&issuer=Acme"
