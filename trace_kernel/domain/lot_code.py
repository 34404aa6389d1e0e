"""
Lot code generation -- pure traceability numbering.

Responsibility:
    Computes the next traceability code for an elaboration from the most
    recently issued code.  Codes read ``YYMMEESSS``:

        25 10 01 003
        |  |  |  +-- sequence within the year (3 digits)
        |  |  +----- elaboration id, zero-padded to 2 digits
        |  +-------- month of issue
        +----------- year of issue (2000 + YY)

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - The sequence resets to ``001`` whenever the year encoded in the
      previous code differs from the current year (including "no previous
      code").
    - Within the same year the sequence is the previous code's last three
      characters plus one.  The month and elaboration fields are always
      taken from the current date and the given elaboration, never from the
      previous code.
    - Deterministic: same (previous code, elaboration id, date) always
      gives the same result.

Failure modes:
    - None.  Malformed previous codes degrade to "year 0" / "sequence 0".
    - No overflow guard: sequence 999 is followed by ``1000``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

SEQUENCE_WIDTH = 3
ELABORATION_WIDTH = 2
FIRST_SEQUENCE = 1


@dataclass(frozen=True)
class LotCodeParts:
    """Decoded fields of a well-formed lot code."""

    year: int
    month: int
    elaboration_id: int
    sequence: int


def _is_digits(text: str) -> bool:
    return text.isascii() and text.isdigit()


def encoded_year(code: str | None) -> int:
    """Year stored in the first two characters of ``code`` (0 when unreadable)."""
    if not code or len(code) < 2 or not _is_digits(code[:2]):
        return 0
    return 2000 + int(code[:2])


def encoded_sequence(code: str | None) -> int:
    """Sequence stored in the last three characters of ``code`` (0 when unreadable)."""
    if not code:
        return 0
    tail = code[-SEQUENCE_WIDTH:]
    return int(tail) if _is_digits(tail) else 0


def next_lot_code(previous_code: str | None, elaboration_id: int, today: date) -> str:
    """
    Produce the next traceability code for an elaboration.

    Args:
        previous_code: Most recent code issued for this elaboration, or
            None/empty if there is none.
        elaboration_id: Numeric id of the elaboration.
        today: Current calendar date (from the injected clock).

    Returns:
        The new code in ``YYMMEESSS`` form, e.g. ``"251001003"``.
    """
    if encoded_year(previous_code) != today.year:
        sequence = FIRST_SEQUENCE
    else:
        sequence = encoded_sequence(previous_code) + 1

    return (
        f"{today.year % 100:02d}"
        f"{today.month:02d}"
        f"{elaboration_id:0{ELABORATION_WIDTH}d}"
        f"{sequence:0{SEQUENCE_WIDTH}d}"
    )


def parse_lot_code(code: str) -> LotCodeParts | None:
    """Decode a nine-digit code; returns None for anything else."""
    if len(code) != 9 or not _is_digits(code):
        return None
    return LotCodeParts(
        year=2000 + int(code[0:2]),
        month=int(code[2:4]),
        elaboration_id=int(code[4:6]),
        sequence=int(code[6:9]),
    )
