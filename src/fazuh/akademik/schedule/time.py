"""Time and date helpers for schedule slots.

One session ("x 50 menit") lasts 50 minutes; a slot's end time is always
derived from its start time and session count.
"""

from datetime import date
import re

SESSION_MINUTES = 50

HARI = ["Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu", "Minggu"]

_TIME_RE = re.compile(r"^(\d{1,2})[.:](\d{2})(?::\d{2})?$")


def parse_jam(jam: str) -> tuple[int, int]:
    """Parses `HH:MM`, `HH.MM` or `HH:MM:SS` into (hour, minute)."""
    match = _TIME_RE.match(jam.strip())
    if not match:
        raise ValueError(f"Invalid time: {jam!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time: {jam!r}")
    return hour, minute


def hitung_jam_selesai(jam_mulai: str, jumlah_sesi: int) -> str:
    """Returns the end time of a slot as `HH:MM`.

    Minutes carry into hours via divmod on the total minute count; hours wrap
    at midnight without any date rollover (23:30 + 2 sessions -> 01:10).

    Args:
        jam_mulai: Start time (`HH:MM` or `HH.MM`).
        jumlah_sesi: Number of 50-minute sessions.
    """
    if jumlah_sesi < 0:
        raise ValueError("jumlah_sesi must not be negative")
    hour, minute = parse_jam(jam_mulai)
    total = hour * 60 + minute + jumlah_sesi * SESSION_MINUTES
    jam, menit = divmod(total, 60)
    return f"{jam % 24:02d}:{menit:02d}"


def format_jam(jam: str) -> str:
    """Normalizes a backend time to `HH:MM` (drops seconds, `.` -> `:`)."""
    if not jam:
        return ""
    if re.fullmatch(r"\d{2}:\d{2}", jam):
        return jam
    if re.fullmatch(r"\d{2}:\d{2}:\d{2}", jam):
        return jam[:5]
    if re.fullmatch(r"\d{2}\.\d{2}", jam):
        return jam.replace(".", ":")
    return jam


def format_tanggal(tanggal: date | None) -> str:
    """`Senin, 02/09/2025`"""
    if tanggal is None:
        return ""
    return f"{HARI[tanggal.weekday()]}, {tanggal:%d/%m/%Y}"


def truncate_file_name(name: str, max_length: int = 20) -> str:
    """Shortens a file name for table display, keeping its extension."""
    if len(name) <= max_length:
        return name
    dot = name.rfind(".")
    if dot == -1:
        return name[: max_length - 3] + "..."
    ext = name[dot:]
    return name[: max_length - 3 - len(ext)] + "..." + ext
