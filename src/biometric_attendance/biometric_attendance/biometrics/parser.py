from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_DATETIME_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})")
_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class ParsedScan:
    """One line of a time-clock export.

    Example line: ``1\t1\t10\tNodado A\tFP\t2025-11-05  05:50:25``
    """

    row_no: str
    device_no: str
    device_user_id: str
    name: str
    mode: str
    scanned_at: datetime

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)


@dataclass
class ParseResult:
    scans: list[ParsedScan] = field(default_factory=list)
    skipped_lines: list[int] = field(default_factory=list)


def normalize_name(name: str) -> str:
    """Lower-cased name without periods, hyphens turned into spaces.

    "Cabarliza M." -> "cabarliza m", "Ogao-ogao" -> "ogao ogao".
    """
    normalized = (name or "").strip().replace(".", "").replace("-", " ")
    return re.sub(r"\s+", " ", normalized).lower()


def decode_export(raw: bytes) -> str:
    """Device exports are UTF-8 or Windows-1252."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("cp1252", errors="replace")


def parse_datetime(value: str) -> Optional[datetime]:
    cleaned = re.sub(r"\s{2,}", " ", value or "")
    cleaned = re.sub(r"[^\d\-\s:]", "", cleaned).strip()
    # trailing digits are line-number noise: "2025-01-13 22:26:181"
    if len(cleaned) > 19:
        match = _DATETIME_PREFIX.match(cleaned)
        if match:
            cleaned = match.group(1)
    try:
        return datetime.strptime(cleaned, _DATETIME_FORMAT)
    except ValueError:
        return None


def _split_columns(line: str) -> Optional[list[str]]:
    columns = re.split(r"\t+", line)
    if len(columns) >= 6:
        return columns

    parts = re.split(r"\s{2,}", line)
    if len(parts) < 6:
        return None
    # the datetime itself may contain a double space
    return parts[:5] + [" ".join(parts[5:])]


def parse_line(line: str) -> Optional[ParsedScan]:
    line = line.replace("\0", "").strip()
    if not line:
        return None

    columns = _split_columns(line)
    if not columns:
        return None

    name = columns[3].strip()
    raw_datetime = columns[5].strip()
    if not name or not raw_datetime:
        return None

    scanned_at = parse_datetime(raw_datetime)
    if scanned_at is None:
        logger.warning("Unparseable scan datetime %r in line %r", raw_datetime, line)
        return None

    return ParsedScan(
        row_no=columns[0].strip(),
        device_no=columns[1].strip(),
        device_user_id=columns[2].strip(),
        name=name,
        mode=columns[4].strip(),
        scanned_at=scanned_at,
    )


def parse_content(content: str) -> ParseResult:
    """Parse a whole export; the first line is a header."""
    content = _CONTROL_CHARS.sub("", content.replace("\0", ""))
    content = content.replace("\r\n", "\n").replace("\r", "\n")

    result = ParseResult()
    for line_no, line in enumerate(content.split("\n")[1:], start=2):
        if not line.strip():
            continue
        scan = parse_line(line)
        if scan is None:
            result.skipped_lines.append(line_no)
        else:
            result.scans.append(scan)
    return result
