import json
import csv
from pathlib import Path
from datetime import datetime
from typing import List

from .models import CredentialRecord

FORMATS = ("json", "csv", "md", "txt", "uri")

# CSV 列顺序：与 CredentialRecord 字段一致
CSV_FIELDS = [
    "issuer", "account", "secret", "otp_type", "digits", "period",
    "counter", "algorithm", "category", "canonical_uri",
]


class DataExporter:
    """统一导出引擎：把规范化后的凭据写成报告或可再导入的 URI 列表"""

    def __init__(self, banner: str = ""):
        self.banner = banner.strip() if banner else ""
        self.timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')

    def export(self, records: List[CredentialRecord], output_path: Path, fmt: str):
        """导出分发器"""
        if not records:
            return

        fmt = fmt.lower()
        if fmt == "json": self._to_json(records, output_path)
        elif fmt == "csv": self._to_csv(records, output_path)
        elif fmt == "md": self._to_markdown(records, output_path)
        elif fmt == "txt": self._to_text(records, output_path)
        elif fmt == "uri": self._to_uri_list(records, output_path)
        else:
            raise ValueError(f"Unsupported export format: {fmt}")

    def _to_json(self, records: List[CredentialRecord], path: Path):
        payload = {
            "metadata": {"generated_at": self.timestamp, "count": len(records)},
            "credentials": [r.to_dict() for r in records],
        }
        path.write_text(json.dumps(payload, indent=4, ensure_ascii=False), encoding='utf-8')

    def _to_csv(self, records: List[CredentialRecord], path: Path):
        with open(path, "w", newline="", encoding="utf-8-sig") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
            writer.writeheader()
            writer.writerows(r.to_dict() for r in records)

    def _to_markdown(self, records: List[CredentialRecord], path: Path):
        lines = [f"```\n{self.banner}\n```\n" if self.banner else "# OTP Import Report"]
        lines.append(f"> **Export Time**: `{self.timestamp}`  \n> **Entries**: {len(records)}\n")

        for i, record in enumerate(records, 1):
            lines.append(f"\n### {i}. {record.title}")
            if record.account:
                lines.append(f"- **Account**: {record.account}")
            if record.category:
                lines.append(f"- **Category**: {record.category}")
            lines.append(f"- **Type**: {record.otp_type.upper()} / {record.algorithm} / {record.digits} digits")
            # 敏感字段使用代码块显示
            lines.append(f"- **Secret**: 🔐 `{record.secret}`")
            lines.append(f"- **URI**: `{record.canonical_uri}`")
            lines.append("\n---")
        path.write_text("\n".join(lines), encoding='utf-8')

    def _to_text(self, records: List[CredentialRecord], path: Path):
        lines = [self.banner if self.banner else "OTP IMPORT REPORT"]
        lines.append(f"Export Time: {self.timestamp}\n" + "="*40)
        for record in records:
            lines.append("-" * 30)
            for k, v in record.to_dict().items():
                if v in ("", None):
                    continue
                label = k.replace('_', ' ').title()
                lines.append(f"{label:<18}: {v}")
        path.write_text("\n".join(lines), encoding='utf-8')

    def _to_uri_list(self, records: List[CredentialRecord], path: Path):
        path.write_text("\n".join(r.canonical_uri for r in records) + "\n", encoding='utf-8')
