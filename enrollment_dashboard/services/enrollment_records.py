from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from sqlmodel import Session, select

from ..models.enrollment import Enrollment
from .network_types import is_recruiter_kind
from .recruiters import get_recruiter_by_code, normalize_recruiter_code, recruiter_url

logger = logging.getLogger(__name__)


class DuplicateRecruiterCodeError(ValueError):
    """Another stored enrollment already owns this referral code."""


@dataclass(frozen=True)
class EnrollmentRecord:
    """
    Flat, already-normalized view of one stored enrollment.

    This is the only shape the network builder accepts. All alternate
    payload key names are resolved here so nothing downstream has to
    guess which synonym a given import used.

    own_code / parent_code may arrive raw ("REF 7", "7", "07"); the
    materializer owns code normalization.
    """
    id: int
    kind: Optional[str] = None
    is_recruiter: bool = False
    own_code: Optional[str] = None
    parent_code: Optional[str] = None
    parent_id: Optional[int] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    level: Optional[int] = None
    referrer_name: Optional[str] = None
    referrer_url: Optional[str] = None


# Canonical payload key -> alternate names seen across forms and spreadsheet imports.
ALTERNATE_KEYS: Dict[str, List[str]] = {
    "nome": ["name"],
    "telefone": ["phone", "celular"],
    "cidade": ["city"],
    "estado": ["state"],
    "email": [],
    "origem": ["source", "origem_lead"],
    "traffic_source": ["trafficSource", "codigo_indicador", "indicador", "ref", "referral"],
    "profissao": ["occupation", "job"],
    "tipo": ["type", "perfil", "papel", "role", "categoria"],
    "codigoRecrutador": [
        "codigo_recrutador",
        "recruiter_code",
        "codigo",
        "codigoProprio",
        "own_code",
        "code",
        "indicador_codigo",
    ],
    "recrutadorId": ["recrutador_id", "indicador_id", "parent_id", "parentId", "sponsor_id", "upline_id"],
    "parentId": ["parent_id", "upline_id"],
    "indicadorId": ["indicador_id", "indicacao_id", "referencia_id"],
    "sponsorId": ["sponsor_id"],
    "nivel": ["level", "hierarchy_level"],
    "isRecruiter": ["is_recruiter", "recrutador", "recruiter", "eh_recrutador"],
}

# Payload keys written for a recruiter's own code; any of them may hold it.
RECRUITER_CODE_FIELDS = [
    "codigoRecrutador",
    "codigo_recrutador",
    "codigo",
    "codigoProprio",
    "codigo_indicador_proprio",
]

_PARENT_CODE_FIELDS = ["traffic_source", "codigo_indicador", "indicador", "ref", "referral"]
_PARENT_ID_FIELDS = ["recrutador_id", "parent_id", "indicador_id", "sponsor_id"]
_LEVEL_FIELDS = ["nivel", "level", "hierarchy_level"]

_TRUTHY = ("true", "1", "sim", "yes")


def _pick_string(record: Dict[str, Any], key: str) -> Optional[str]:
    value = record.get(key)
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def _clean_str(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def parse_payload(payload: Any) -> Dict[str, Any]:
    """
    Copy a free-form payload and fill canonical keys from their alternates.

    The canonical key wins when it already holds a non-blank string;
    otherwise the first non-blank alternate is used. Non-string values are
    left untouched under their original keys.
    """
    if not isinstance(payload, dict):
        return {}

    normalized: Dict[str, Any] = dict(payload)

    for target, alternates in ALTERNATE_KEYS.items():
        primary = _pick_string(payload, target)
        if primary:
            normalized[target] = primary
            continue

        for key in alternates:
            fallback = _pick_string(payload, key)
            if fallback:
                normalized[target] = fallback
                break

    return normalized


def _parse_code(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip():
        return normalize_recruiter_code(value)
    if isinstance(value, (int, float)):
        try:
            return normalize_recruiter_code(str(int(value)))
        except (OverflowError, ValueError):
            return None
    return None


def _parse_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        try:
            return int(value)
        except (OverflowError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _lookup(parsed: Dict[str, Any], canonical: str) -> Any:
    """
    Canonical key first, then its alternates, whatever the value type.

    parse_payload only promotes string values; numeric ids and levels
    stored by the dashboard itself stay under their original keys.
    """
    value = parsed.get(canonical)
    if value is not None:
        return value
    for key in ALTERNATE_KEYS.get(canonical, []):
        value = parsed.get(key)
        if value is not None:
            return value
    return None


def _first(values: Iterable[Optional[Any]]) -> Optional[Any]:
    for v in values:
        if v is not None:
            return v
    return None


def _parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return False


def own_code_from_payload(payload: Any) -> Optional[str]:
    """
    The enrollment's own referral code, from any key an import may use.

    Also stored on Enrollment.own_code so code lookups can use the index.
    """
    raw_payload = payload if isinstance(payload, dict) else {}
    parsed = parse_payload(raw_payload)
    return _first(
        _parse_code(candidate)
        for candidate in [parsed.get("codigoRecrutador")] + [raw_payload.get(key) for key in RECRUITER_CODE_FIELDS]
    )


def record_from_enrollment(enrollment: Enrollment) -> EnrollmentRecord:
    """
    Map a stored enrollment row to the flat record the network builder reads.

    Never raises on malformed payload values; each one degrades to None.
    """
    raw_payload = enrollment.payload if isinstance(enrollment.payload, dict) else {}
    parsed = parse_payload(raw_payload)

    own_code = own_code_from_payload(raw_payload)

    parent_code_raw = _clean_str(parsed.get("traffic_source")) or _clean_str(enrollment.traffic_source)
    parent_code = normalize_recruiter_code(parent_code_raw) or parent_code_raw
    referrer = get_recruiter_by_code(parent_code_raw)
    normalized_parent_code = normalize_recruiter_code(parent_code_raw)
    if referrer is not None:
        referrer_link: Optional[str] = referrer.url
    elif normalized_parent_code:
        referrer_link = recruiter_url(normalized_parent_code)
    else:
        referrer_link = None

    parent_id = _first(
        _parse_int(_lookup(parsed, key)) for key in ("recrutadorId", "parentId", "indicadorId", "sponsorId")
    )

    level_raw = _parse_int(_lookup(parsed, "nivel"))
    level = max(0, level_raw) if level_raw is not None else None

    kind_raw = _clean_str(parsed.get("tipo"))
    is_recruiter = _parse_flag(_lookup(parsed, "isRecruiter"))

    kind = "recruiter" if (is_recruiter_kind(kind_raw) or is_recruiter or own_code) else "lead"

    return EnrollmentRecord(
        id=int(enrollment.id or 0),
        kind=kind,
        is_recruiter=is_recruiter,
        own_code=own_code,
        parent_code=parent_code,
        parent_id=parent_id,
        name=_clean_str(enrollment.name) or _clean_str(parsed.get("nome")),
        phone=_clean_str(enrollment.phone) or _clean_str(parsed.get("telefone")),
        city=_clean_str(enrollment.city) or _clean_str(parsed.get("cidade")),
        level=level,
        referrer_name=referrer.name if referrer else None,
        referrer_url=referrer_link,
    )


# -------------------------
# Storage queries
# -------------------------

def list_enrollment_records(session: Session) -> List[EnrollmentRecord]:
    """
    Full snapshot of stored enrollments, oldest id first.

    Database errors propagate; the network view cannot be built without
    its input.
    """
    rows = list(session.exec(select(Enrollment).order_by(Enrollment.id)).all())
    logger.debug("Loaded %d enrollment rows", len(rows))
    return [record_from_enrollment(row) for row in rows]


def find_enrollment_id_by_own_code(session: Session, code: Optional[str]) -> Optional[int]:
    """
    Oldest enrollment claiming this referral code, via the own_code index.

    Rows written before the column existed need
    scripts/migrate_enrollment_own_code.py to be found here.
    """
    normalized = normalize_recruiter_code(code)
    if not normalized:
        return None

    q = select(Enrollment.id).where(Enrollment.own_code == normalized).order_by(Enrollment.id).limit(1)
    return session.exec(q).first()


def _set_many(payload: Dict[str, Any], keys: Iterable[str], value: Any) -> None:
    for key in keys:
        payload[key] = value


def create_recruiter_enrollment(
    session: Session,
    *,
    name: str,
    code: str,
    phone: Optional[str] = None,
    city: Optional[str] = None,
    parent_enrollment_id: Optional[int] = None,
    parent_code: Optional[str] = None,
    level: Optional[int] = None,
) -> Enrollment:
    """
    Store a new recruiter enrollment under its own referral code.

    Raises ValueError for a blank name or an unparseable code, and
    DuplicateRecruiterCodeError when a stored enrollment already owns the code.

    The duplicate check and the insert are separate statements, so two
    concurrent creates for the same code can both succeed. The network
    build tolerates that (first id keeps the code); callers that need a
    hard guarantee must serialize creates.
    """
    clean_name = _clean_str(name)
    if not clean_name:
        raise ValueError("Recruiter name is required")

    normalized_code = normalize_recruiter_code(code)
    if not normalized_code:
        raise ValueError("Invalid recruiter code")

    if find_enrollment_id_by_own_code(session, normalized_code) is not None:
        raise DuplicateRecruiterCodeError("A recruiter with this code already exists")

    payload: Dict[str, Any] = {
        "nome": clean_name,
        "tipo": "recrutador",
        "isRecruiter": True,
    }
    _set_many(payload, RECRUITER_CODE_FIELDS, normalized_code)

    clean_phone = _clean_str(phone)
    clean_city = _clean_str(city)
    if clean_phone:
        payload["telefone"] = clean_phone
    if clean_city:
        payload["cidade"] = clean_city

    parent_code_raw = _clean_str(parent_code)
    parent_code_value = (normalize_recruiter_code(parent_code_raw) or parent_code_raw) if parent_code_raw else None
    if parent_code_value:
        _set_many(payload, _PARENT_CODE_FIELDS, parent_code_value)

    if parent_enrollment_id is not None:
        _set_many(payload, _PARENT_ID_FIELDS, int(parent_enrollment_id))

    if level is not None:
        _set_many(payload, _LEVEL_FIELDS, max(0, int(level)))

    enrollment = Enrollment(
        name=clean_name,
        phone=clean_phone,
        city=clean_city,
        traffic_source=parent_code_value,
        own_code=normalized_code,
        payload=payload,
    )
    session.add(enrollment)
    session.commit()
    session.refresh(enrollment)

    logger.info("Created recruiter enrollment id=%s code=%s", enrollment.id, normalized_code)
    return enrollment
