"""
Quoted, comma-separated tables as found in LinkedIn data exports.

Rows are split on newlines before they are decoded, so a quoted field that
spans several lines is not supported; each physical line is one record.
"""
from typing import Dict, List

from .columns import normalize_column_name

QUOTE = '"'
DELIMITER = ","


def parse_csv_line(line: str) -> List[str]:
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    n = len(line)

    while i < n:
        ch = line[i]
        if ch == QUOTE:
            if in_quotes and i + 1 < n and line[i + 1] == QUOTE:
                # escaped quote inside a quoted field
                current.append(QUOTE)
                i += 2
                continue
            in_quotes = not in_quotes
        elif ch == DELIMITER and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1

    # an unterminated quote just runs to the end of the line
    fields.append("".join(current).strip())
    return fields


def parse_csv(content: str) -> List[Dict[str, str]]:
    lines = content.split("\n")
    if len(lines) < 2:
        return []

    headers = [normalize_column_name(h) for h in parse_csv_line(lines[0])]
    rows: List[Dict[str, str]] = []
    for raw in lines[1:]:
        line = raw.strip()
        if not line:
            continue
        values = parse_csv_line(line)
        # positional: extra values are dropped, missing ones become ""
        row = {}
        for idx, header in enumerate(headers):
            row[header] = values[idx] if idx < len(values) else ""
        rows.append(row)
    return rows
