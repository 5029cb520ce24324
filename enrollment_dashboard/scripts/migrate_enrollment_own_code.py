from __future__ import annotations

from typing import List

from sqlalchemy import text
from sqlmodel import Session, select

from enrollment_dashboard.database import engine
from enrollment_dashboard.models.enrollment import Enrollment
from enrollment_dashboard.services.enrollment_records import own_code_from_payload


def _dialect_name() -> str:
    return engine.dialect.name.lower()


def _get_columns(session: Session, table: str) -> List[str]:
    if _dialect_name() in ("postgresql", "postgres"):
        rows = session.exec(
            text(
                """
                SELECT column_name
                FROM information_schema.columns
                WHERE table_schema = 'public' AND table_name = :t
                ORDER BY ordinal_position;
                """
            ),
            params={"t": table},
        ).all()
        return [str(r[0]) for r in rows]

    # PRAGMA table_info returns: cid, name, type, notnull, dflt_value, pk
    rows = session.exec(text(f"PRAGMA table_info({table});")).all()
    return [str(r[1]) for r in rows]


def ensure_own_code_column(session: Session) -> bool:
    """
    Add enrollments.own_code (+ index) to databases created before it existed.

    Returns True when the column was added.
    """
    if "own_code" in set(_get_columns(session, "enrollments")):
        return False

    session.exec(text("ALTER TABLE enrollments ADD COLUMN own_code VARCHAR DEFAULT NULL;"))
    session.exec(text("CREATE INDEX IF NOT EXISTS ix_enrollments_own_code ON enrollments (own_code);"))
    return True


def backfill_own_codes(session: Session) -> int:
    """
    Derive own_code from each payload where it is still empty.

    Returns the number of rows updated.
    """
    updated = 0
    rows = session.exec(select(Enrollment).where(Enrollment.own_code == None)).all()  # noqa: E711
    for row in rows:
        code = own_code_from_payload(row.payload)
        if not code:
            continue
        row.own_code = code
        session.add(row)
        updated += 1
    return updated


def run() -> None:
    """
    Run with:
      python -m enrollment_dashboard.scripts.migrate_enrollment_own_code
    """
    with Session(engine) as session:
        added = ensure_own_code_column(session)
        session.commit()

        backfilled = backfill_own_codes(session)
        session.commit()

    print("migrate_enrollment_own_code complete")
    print("Added own_code column:", added)
    print("Backfilled rows:", backfilled)


if __name__ == "__main__":
    run()
