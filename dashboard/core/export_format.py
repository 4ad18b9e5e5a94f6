"""
CSV / JSON rendering for exports.

Both formats are produced from the same normalized records, so they share
one column set, one row order and one value formatting. Only the null
representation differs: an empty field in CSV, `null` in JSON.
"""

import csv
import io
import json
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Sequence

DETECTION_COLUMNS = [
    "id", "media_type", "media_url", "title", "description",
    "confidence_score", "detection_method", "source_platform",
    "upload_date", "detected_date", "is_verified",
]
STATS_COLUMNS = [
    "date", "photos_count", "videos_count", "avg_confidence", "total_count", "verified_count",
]
PLATFORM_COLUMNS = [
    "source_platform", "total_count", "photos_count", "videos_count",
    "avg_confidence", "max_confidence", "verified_count",
]

# Averages carry full precision until they are rendered here
ROUNDED_COLUMNS = {"avg_confidence": 4}

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _format_value(column: str, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    if isinstance(value, date):
        return value.isoformat()
    if column in ROUNDED_COLUMNS and isinstance(value, float):
        return round(value, ROUNDED_COLUMNS[column])
    return value


def normalize_records(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> list[dict]:
    return [{c: _format_value(c, row.get(c)) for c in columns} for row in rows]


def _csv_field(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def to_csv(records: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> str:
    """
    Header row plus one line per record. Fields holding a comma, quote or
    newline are double-quoted with embedded quotes doubled.
    """
    if not records:
        return ""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(columns)
    for record in records:
        writer.writerow([_csv_field(record.get(c)) for c in columns])
    return buf.getvalue()


def to_json(envelope: dict) -> str:
    return json.dumps(envelope, ensure_ascii=False, indent=2)
