from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from ..config import settings


@dataclass(frozen=True)
class Recruiter:
    """
    A configured referral code from the program directory.

    The directory is independent of enrollment data: a code can be listed
    here long before anyone enrolls through it.
    """
    code: str
    name: str
    url: str


# Official referral codes handed out by the program.
_RAW_RECRUITERS: List[Tuple[str, str]] = [
    ("01", "Rodrigo"),
    ("02", "Vanessa"),
    ("03", "Jane"),
    ("04", "Jhonatha"),
    ("05", "Agatha"),
    ("06", "Valda"),
    ("07", "Cely"),
    ("08", "Lourenço"),
    ("09", "Bárbara"),
    ("10", "Sandra"),
    ("11", "Karina"),
    ("12", "Paula Porto"),
    ("13", "Regina Gondim"),
    ("14", "Salete"),
    ("15", "Marcos"),
    ("16", "Ivaneide"),
    ("17", "Karen"),
    ("18", "Claudia Talib"),
    ("19", "Anselmo"),
    ("20", "Alessandra"),
    ("21", "Cleidiane"),
    ("22", "Renata Vergílio"),
    ("23", "Alice"),
    ("24", "Eliane/Márcio"),
    ("25", "Adriana Davies"),
    ("26", "Maria Léo"),
    ("27", "Marcelo"),
    ("28", "Adryelly"),
    ("29", "Aline Nobile"),
    ("30", "Kleidiane"),
    ("31", "Gilsemara"),
    ("32", "Josefa"),
    ("33", "Mara"),
    ("34", "Thais/Jorge"),
]

_NON_DIGITS = re.compile(r"\D+")

# Longer digit runs are not referral codes (and int() refuses very long strings).
MAX_CODE_DIGITS = 9

# "Recrutador 07", "recruiter 7", "Cluster 12", or just "07"
_PLACEHOLDER_NAME = re.compile(r"^(?:(?:recrutador|recruiter|cluster)\s*)?\d+$", re.IGNORECASE)


def recruiter_url(code: str) -> str:
    return f"{settings.recruiters_base_url}{code}"


def normalize_recruiter_code(code: Union[str, int, None]) -> Optional[str]:
    """
    Canonical two-digit form of a referral code.

    Non-digit characters are stripped first ("REF-7" -> "07"). Empty,
    non-numeric or implausibly long input yields None instead of raising.
    """
    if code is None or isinstance(code, bool):
        return None

    try:
        cleaned = str(code).strip()
    except ValueError:
        return None
    if not cleaned:
        return None

    digits = _NON_DIGITS.sub("", cleaned)
    if not digits:
        return None

    significant = digits.lstrip("0") or "0"
    if len(significant) > MAX_CODE_DIGITS:
        return None

    return significant.zfill(2)


def is_placeholder_name(name: Optional[str]) -> bool:
    s = (name or "").strip()
    if not s:
        return True
    return bool(_PLACEHOLDER_NAME.match(s))


def list_recruiters() -> List[Recruiter]:
    """
    Fresh copy of the configured directory.

    Callers may reorder or filter the returned list freely.
    """
    return [Recruiter(code=code, name=name, url=recruiter_url(code)) for code, name in _RAW_RECRUITERS]


def _directory_by_code() -> Dict[str, Recruiter]:
    out: Dict[str, Recruiter] = {}
    for recruiter in list_recruiters():
        normalized = normalize_recruiter_code(recruiter.code)
        if normalized and normalized not in out:
            out[normalized] = recruiter
    return out


def get_recruiter_by_code(code: Union[str, int, None]) -> Optional[Recruiter]:
    normalized = normalize_recruiter_code(code)
    if not normalized:
        return None
    return _directory_by_code().get(normalized)
