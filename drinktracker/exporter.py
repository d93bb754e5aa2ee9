#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
CSV export of consumption records.

Row layout is fixed so files stay byte-compatible with exports made by
the browser version of the app:

Single user:
    Date,Time,Amount (ml)
    2024-05-01,21:15:00,330
    ...
    <blank>
    Total Consumption,,330.0 ml

All users:
    User ID,Date,Time,Amount (ml)
    alice,2024-05-01,21:15:00,330.0
    <blank>
    Total for alice,,,330.0 ml
    <blank>
    ...
    Grand Total,,,330.0 ml

Fields are joined with a bare comma and are NOT quoted or escaped; a user
ID containing a comma shifts that row's columns.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence

from drinktracker.aggregator import total_consumption
from drinktracker.errors import StorageWriteError
from drinktracker.models import AMOUNT_UNIT, ExportDocument, Record

USER_HEADER = ["Date", "Time", f"Amount ({AMOUNT_UNIT})"]
ALL_USERS_HEADER = ["User ID", "Date", "Time", f"Amount ({AMOUNT_UNIT})"]

USER_FILENAME_PREFIX = "alcohol_consumption"
ALL_USERS_FILENAME_PREFIX = "all_users_alcohol_consumption"


def to_fixed(value: float, digits: int = 1) -> str:
    """Fixed-point rendering with halves rounded up, like Number.toFixed."""
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def format_plain_number(value: float) -> str:
    """
    Shortest round-trip rendering of a number.

    Integral values drop the fraction (330.0 -> "330"). Magnitudes from
    1e-6 up to but excluding 1e21 use plain notation; anything outside
    that range uses exponent form with an explicit sign ("1e-7", "1e+21").
    """
    number = float(value)
    if number == 0:
        return "0"
    sign, digit_tuple, exponent = Decimal(repr(number)).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    # Position of the decimal point relative to the first digit
    n = k + exponent

    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        body = "0." + "0" * -n + digits
    else:
        mantissa = digits[0] + ("." + digits[1:] if k > 1 else "")
        body = f"{mantissa}e{'+' if n > 0 else '-'}{abs(n - 1)}"
    return ("-" if sign else "") + body


def _local_date_time(record: Record) -> List[str]:
    local = record.timestamp_dt.astimezone()
    return [local.strftime("%Y-%m-%d"), local.strftime("%H:%M:%S")]


def _join(rows: Iterable[Sequence[str]]) -> str:
    return "\n".join(",".join(row) for row in rows)


def user_rows(records: Sequence[Record]) -> List[List[str]]:
    """Rows of the single-user export, header and summary included."""
    rows: List[List[str]] = [list(USER_HEADER)]
    for record in records:
        rows.append(_local_date_time(record) + [format_plain_number(record.amount)])
    rows.append([])
    rows.append([
        "Total Consumption",
        "",
        f"{to_fixed(total_consumption(records))} {AMOUNT_UNIT}",
    ])
    return rows


def all_users_rows(users: Mapping[str, Sequence[Record]]) -> List[List[str]]:
    """Rows of the all-users export, in the mapping's iteration order.

    Users without records contribute no rows at all.
    """
    rows: List[List[str]] = [list(ALL_USERS_HEADER)]
    grand_total = 0
    for user_id, records in users.items():
        if not records:
            continue
        for record in records:
            rows.append([user_id] + _local_date_time(record) + [to_fixed(record.amount)])
        user_total = total_consumption(records)
        grand_total += user_total
        rows.append([])
        rows.append([f"Total for {user_id}", "", "", f"{to_fixed(user_total)} {AMOUNT_UNIT}"])
        rows.append([])
    rows.append(["Grand Total", "", "", f"{to_fixed(grand_total)} {AMOUNT_UNIT}"])
    return rows


def export_user_csv(records: Sequence[Record]) -> str:
    """CSV text for one user's records."""
    return _join(user_rows(records))


def export_all_csv(users: Mapping[str, Sequence[Record]]) -> str:
    """CSV text for every user with at least one record."""
    return _join(all_users_rows(users))


def user_export_filename(user_id: str, today: Optional[date] = None) -> str:
    """alcohol_consumption_<user>_<YYYY-MM-DD>.csv"""
    day = today or datetime.now().date()
    return f"{USER_FILENAME_PREFIX}_{user_id}_{day.isoformat()}.csv"


def all_users_export_filename(today: Optional[date] = None) -> str:
    """all_users_alcohol_consumption_<YYYY-MM-DD>.csv"""
    day = today or datetime.now().date()
    return f"{ALL_USERS_FILENAME_PREFIX}_{day.isoformat()}.csv"


def build_user_export(
    user_id: str, records: Sequence[Record], today: Optional[date] = None
) -> ExportDocument:
    return ExportDocument(
        filename=user_export_filename(user_id, today),
        content=export_user_csv(records),
        row_count=len(records),
    )


def build_all_users_export(
    users: Mapping[str, Sequence[Record]], today: Optional[date] = None
) -> ExportDocument:
    return ExportDocument(
        filename=all_users_export_filename(today),
        content=export_all_csv(users),
        row_count=sum(len(records) for records in users.values()),
    )


def write_export(directory: Path, filename: str, content: str) -> Path:
    """
    Write export content as UTF-8 text.

    Args:
        directory: Destination directory (created if missing)
        filename: File name inside directory
        content: CSV text

    Returns:
        Path of the written file

    Raises:
        StorageWriteError: If the file cannot be written
    """
    path = Path(directory) / filename
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise StorageWriteError(f"Cannot write export {path}: {e}") from e
    return path
