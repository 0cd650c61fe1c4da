"""Line-oriented CSV splitting, independent of any record schema."""

from __future__ import annotations

from typing import List

from riskpulse.errors import MalformedInput

Row = List[str]


def parse_csv(text: str) -> List[Row]:
    """
    Split raw CSV text into rows of trimmed fields; row 0 is the header.

    Blank lines are dropped. Fields are split on every comma: quoted values
    containing commas are not supported.
    """
    # only "\n" separates rows; strip() drops a trailing "\r"
    lines = [line.strip() for line in text.split("\n")]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        raise MalformedInput("CSV file must contain headers and at least one data row")
    return [[value.strip() for value in line.split(",")] for line in lines]


def normalize_header(header: Row) -> Row:
    return [name.strip().lower() for name in header]


__all__ = ["Row", "parse_csv", "normalize_header"]
