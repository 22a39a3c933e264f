"""
Minimal CSV line tokenizer for `nsys stats` exports.

The stdlib `csv` module rejects or reinterprets some of the malformed quoting
seen in older exports; this tokenizer never fails and degrades to best-effort
splitting instead.
"""

from __future__ import annotations


def tokenize_line(line: str) -> list[str]:
    """
    Split one CSV line into fields.

    - `,` separates fields outside quotes.
    - Quoted fields lose their surrounding quotes; `""` inside quotes is a literal `"`.
    - An unterminated quote extends the field to the end of the line.
    - Whitespace of unquoted fields is preserved (callers trim).
    """
    fields: list[str] = []
    cur: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                cur.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append("".join(cur))
            cur = []
        else:
            cur.append(ch)
        i += 1
    fields.append("".join(cur))
    return fields


def strip_outer_quotes(s: str) -> str:
    """Trim, then drop one pair of surrounding double quotes (collapsing `""`)."""
    t = s.strip()
    if len(t) >= 2 and t.startswith('"') and t.endswith('"'):
        return t[1:-1].replace('""', '"')
    return t


def cell(fields: list[str], idx: int | None) -> str | None:
    """Return the field at idx, or None when the column is absent or the row is short."""
    if idx is None or idx >= len(fields):
        return None
    return fields[idx]
