"""One JSON file per daily report."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

from src.memo_core.codec import CodecError, decode_report, encode_report
from src.memo_core.models import DailyReport

LOGGER = logging.getLogger("murmur.reports")


class ReportStore:
    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def save(self, report: DailyReport) -> Path:
        target = self.directory / f"report_{report.id}.json"
        target.write_text(encode_report(report), encoding="utf-8")
        return target

    def list(self) -> List[DailyReport]:
        reports: List[DailyReport] = []
        for path in self.directory.glob("report_*.json"):
            try:
                reports.append(decode_report(path.read_bytes()))
            except (OSError, CodecError) as exc:
                LOGGER.warning("Skipping unreadable report %s: %s", path.name, exc)
        reports.sort(key=lambda report: report.date, reverse=True)
        return reports

    def find_for_day(self, day: date) -> Optional[DailyReport]:
        for report in self.list():
            if report.day == day:
                return report
        return None


__all__ = ["ReportStore"]
