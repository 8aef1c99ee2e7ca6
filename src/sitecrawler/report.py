"""
Plain-text crawl report.
"""
from __future__ import annotations

from typing import List

from sitecrawler.core import FAILED_STATUS, CrawlRecord, CrawlSnapshot

RED = "\033[31m"
RESET = "\033[0m"


def is_success(status: int) -> bool:
    return 200 <= status < 300


def format_status(record: CrawlRecord) -> str:
    if record.pending:
        return "PENDING"
    if record.failed:
        return f"ERR {record.error}" if record.error else "ERR"
    return f"{record.status} {record.reason}".rstrip()


def format_latency(seconds: float) -> str:
    return f"{seconds * 1000:.1f}ms"


def format_record(record: CrawlRecord, color: bool = False) -> str:
    line = f"{record.url} : {format_status(record)} | Response Time: {format_latency(record.latency)}"
    if color and not is_success(record.status):
        return f"{RED}{line}{RESET}"
    return line


def render(snapshot: CrawlSnapshot, color: bool = False) -> str:
    """
    Render the detailed report, the status breakdown and the summary.

    Non-2xx and failed records are wrapped in ANSI red when color is set.
    """
    lines: List[str] = ["Crawling completed", "", "Detailed Report:"]
    lines.extend(format_record(r, color) for r in snapshot.records)

    lines += ["", "Status Breakdown:"]
    for status, count in sorted(snapshot.tally.items()):
        label = "ERR" if status == FAILED_STATUS else str(status)
        lines.append(f"Status {label}: {count} pages")

    lines += ["", "Summary:", f"Total pages crawled: {len(snapshot.records)}"]
    return "\n".join(lines) + "\n"
