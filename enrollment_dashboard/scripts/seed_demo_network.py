from __future__ import annotations

from typing import List, Optional, Tuple

from sqlmodel import Session, select

from enrollment_dashboard.database import init_db, session_scope
from enrollment_dashboard.models.enrollment import Enrollment
from enrollment_dashboard.services.enrollment_records import (
    create_recruiter_enrollment,
    find_enrollment_id_by_own_code,
    list_enrollment_records,
)
from enrollment_dashboard.services.network_tree import build_network_tree
from enrollment_dashboard.services.recruiters import get_recruiter_by_code, list_recruiters


# ---------------------------------------------------------------------
# Seed data (small local network for the dashboard)
# ---------------------------------------------------------------------

# (code, referred by code)
DEMO_RECRUITERS: List[Tuple[str, Optional[str]]] = [
    ("01", None),
    ("03", "01"),
    ("07", "01"),
    ("12", "03"),
]

# (name, city, referred by code)
DEMO_LEADS: List[Tuple[str, str, str]] = [
    ("Ana Souza", "Recife", "03"),
    ("Bruno Lima", "Olinda", "03"),
    ("Carla Dias", "Recife", "07"),
    ("Davi Rocha", "Caruaru", "12"),
    ("Érica Melo", "Recife", "01"),
]


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def upsert_demo_lead(session: Session, name: str, city: str, code: str) -> bool:
    """
    Insert by (name, referral code). Returns False when the lead already exists.
    """
    existing = session.exec(
        select(Enrollment).where(Enrollment.name == name, Enrollment.traffic_source == code)
    ).first()
    if existing:
        return False

    session.add(
        Enrollment(
            name=name,
            city=city,
            traffic_source=code,
            payload={"nome": name, "cidade": city, "traffic_source": code, "tipo": "lead"},
        )
    )
    return True


def seed_demo_network(session: Session) -> Tuple[int, int]:
    """
    Idempotent: codes already owned by a stored enrollment are skipped.

    Returns (recruiters created, leads created).
    """
    recruiters = 0
    for code, parent_code in DEMO_RECRUITERS:
        if find_enrollment_id_by_own_code(session, code) is not None:
            continue
        configured = get_recruiter_by_code(code)
        create_recruiter_enrollment(
            session,
            name=configured.name if configured else f"Recruiter {code}",
            code=code,
            parent_code=parent_code,
            parent_enrollment_id=find_enrollment_id_by_own_code(session, parent_code) if parent_code else None,
        )
        recruiters += 1

    leads = 0
    for name, city, code in DEMO_LEADS:
        if upsert_demo_lead(session, name, city, code):
            leads += 1

    return recruiters, leads


# ---------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------

def main() -> None:
    # Ensure tables exist (local dev)
    init_db()

    with session_scope() as session:
        recruiters, leads = seed_demo_network(session)

    with session_scope() as session:
        result = build_network_tree(list_enrollment_records(session), list_recruiters())

    print(f"Seeded recruiters: {recruiters}, leads: {leads}")
    print(
        f"Network: total={result.stats.total} recruiters={result.stats.recruiters} "
        f"virtual={result.stats.virtual_recruiters} orphans={result.stats.orphans}"
    )


if __name__ == "__main__":
    main()
