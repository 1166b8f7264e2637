# src/otpimport/importers/cli.py

import argparse
import sys
from pathlib import Path
from typing import List

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
import pyfiglet

from .router import KINDS, detect_dialect, detect_kind, import_text, read_text
from otpimport.common.diagnostics import CollectingReporter, LoggingReporter, WARNING, ERROR
from otpimport.common.exporter import DataExporter, FORMATS
from otpimport.common.models import CredentialRecord

# 初始化控制台（错误流输出，保持标准输出纯净供管道使用）
console = Console(stderr=True)


def _display_banner() -> str:
    plain_banner = pyfiglet.figlet_format("OTP Import", font="slant")
    console.print(
        Panel(
            plain_banner,
            title="[bold white] otpimport [/bold white]",
            subtitle="[cyan] authenticator backups [/cyan]",
            border_style="cyan",
            expand=False,
        )
    )
    return plain_banner


def _setup_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="otpimport import",
        description="Import authenticator exports (HTML / CSV / JSON) into canonical otpauth:// records."
    )
    parser.add_argument("inputs", nargs="+", type=Path, help="Export files to import.")
    parser.add_argument("--kind", choices=("auto",) + KINDS, default="auto",
                        help="Content kind; detected from file name and content by default.")
    parser.add_argument("-o", "--output", type=Path,
                        help="Destination path for export (.md, .csv, .txt, .json, .uri)")
    parser.add_argument("-f", "--format", choices=FORMATS,
                        help="Export format; derived from the output suffix when omitted.")
    parser.add_argument("--preview", action="store_true",
                        help="Display imported accounts in terminal without exporting.")
    return parser


def _output_format(args) -> str:
    if args.format:
        return args.format
    fmt = args.output.suffix[1:].lower() if args.output.suffix else "md"
    return fmt if fmt in FORMATS else "md"


def _render_table(records: List[CredentialRecord]) -> Table:
    table = Table(
        title=f"Imported [bold green]{len(records)}[/bold green] Accounts",
        border_style="cyan",
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Issuer", style="cyan", no_wrap=True)
    table.add_column("Account", style="green")
    table.add_column("Category")
    table.add_column("Type", style="dim")

    for record in records:
        params = f"{record.otp_type.upper()} {record.algorithm} {record.digits}"
        table.add_row(record.issuer or "-", record.account or "-", record.category or "-", params)
    return table


def main():
    parser = _setup_arg_parser()
    # 适配 otpimport <command> 结构的参数分发
    args = parser.parse_args(sys.argv[2:])

    missing = [p for p in args.inputs if not p.exists()]
    if missing:
        for p in missing:
            console.print(f"[bold red]Error:[/] File {p} not found.")
        sys.exit(1)

    banner = _display_banner()
    reporter = CollectingReporter(forward_to=LoggingReporter())
    records: List[CredentialRecord] = []

    with console.status("[bold green]Importing..."):
        for path in args.inputs:
            try:
                text = read_text(path)
            except (OSError, UnicodeDecodeError) as e:
                console.print(f"[bold red]读取失败:[/] {path} 错误: {e}")
                continue
            kind = detect_kind(path, text) if args.kind == "auto" else args.kind
            imported = import_text(text, kind, reporter)
            console.print(f"[green]✓[/] {path.name}: {len(imported)} entries ({kind})")
            records.extend(imported)

    skipped = reporter.count(WARNING)
    failed = reporter.count(ERROR)
    if skipped or failed:
        console.print(f"[yellow]{skipped} warnings, {failed} errors (use -v for details)[/]")

    if not records:
        console.print("[red]未发现任何账户数据，程序退出。[/red]")
        return

    console.print(_render_table(records))

    if args.preview:
        return

    if args.output:
        fmt = _output_format(args)
        exporter = DataExporter(banner=banner)
        try:
            exporter.export(records, args.output, fmt)
            console.print(f"\n[bold green]✓ 导出成功:[/] [magenta]{args.output}[/]")
        except (OSError, ValueError) as e:
            console.print(f"\n[bold red]✗ 导出失败:[/] {e}")
            sys.exit(1)
    else:
        console.print("\n[dim]提示: 使用 -o 参数可将结果保存为文件 (例如: -o backup.uri)[/]")


def detect_main():
    parser = argparse.ArgumentParser(
        prog="otpimport detect",
        description="Report which export dialect each file matches."
    )
    parser.add_argument("inputs", nargs="+", type=Path, help="Export files to inspect.")
    args = parser.parse_args(sys.argv[2:])

    table = Table(title="Detected Formats", border_style="cyan", header_style="bold magenta")
    table.add_column("File", style="cyan")
    table.add_column("Kind")
    table.add_column("Dialect", style="green")

    for path in args.inputs:
        if not path.exists():
            table.add_row(str(path), "-", "[red]not found[/red]")
            continue
        try:
            text = read_text(path)
        except (OSError, UnicodeDecodeError):
            table.add_row(str(path), "-", "[red]unreadable[/red]")
            continue
        kind = detect_kind(path, text)
        dialect = detect_dialect(text, kind)
        table.add_row(str(path), kind, dialect or "[yellow]unrecognized[/yellow]")

    console.print(table)
