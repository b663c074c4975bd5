"""File-based persistence helpers for report exports."""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from openpyxl import Workbook

from ..config import settings


class FileStorage:
    """Thin wrapper around the data root for storing JSON, CSV and XLSX outputs."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.output_root = self.root / "outputs"
        self.output_root.mkdir(parents=True, exist_ok=True)

    def make_run_directory(self, prefix: str = "report") -> Path:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        path = self.output_root / f"{prefix}_{timestamp}"
        path.mkdir(parents=True, exist_ok=False)
        return path

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent)

    def write_csv(self, path: Path, rows: Iterable[Mapping[str, Any]], fieldnames: Sequence[str]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=list(fieldnames), restval="")
            writer.writeheader()
            for row in rows:
                writer.writerow(row)

    def write_workbook(
        self,
        path: Path,
        rows: Iterable[Mapping[str, Any]],
        fieldnames: Sequence[str],
        *,
        sheet_title: str = "Report",
    ) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = sheet_title
        sheet.append(list(fieldnames))
        for row in rows:
            sheet.append([row.get(name, "") for name in fieldnames])
        workbook.save(path)
