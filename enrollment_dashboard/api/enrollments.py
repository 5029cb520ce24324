from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, EmailStr, Field as PydField
from sqlmodel import select

from ..database import get_session
from ..models.enrollment import Enrollment
from ..services.enrollment_records import (
    DuplicateRecruiterCodeError,
    create_recruiter_enrollment,
    own_code_from_payload,
    record_from_enrollment,
)

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


# -----------------------------
# Schemas (do NOT use DB model as input)
# -----------------------------

class EnrollmentCreate(BaseModel):
    """
    A form submission. Extra form fields go in payload untouched.
    """
    name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    email: Optional[EmailStr] = None

    # Referral code of whoever referred this person (form link ?source=)
    traffic_source: Optional[str] = None

    payload: Dict[str, Any] = PydField(default_factory=dict)


class RecruiterCreate(BaseModel):
    name: str = PydField(..., min_length=1)
    code: str = PydField(..., min_length=1)
    phone: Optional[str] = None
    city: Optional[str] = None

    parent_enrollment_id: Optional[int] = None
    parent_code: Optional[str] = None
    level: Optional[int] = PydField(default=None, ge=0)


# -----------------------------
# Routes
# -----------------------------

@router.post("/", response_model=Enrollment)
def create_enrollment(payload: EnrollmentCreate) -> Enrollment:
    data = dict(payload.payload)
    if payload.name and "nome" not in data:
        data["nome"] = payload.name
    if payload.phone and "telefone" not in data:
        data["telefone"] = payload.phone
    if payload.city and "cidade" not in data:
        data["cidade"] = payload.city
    if payload.traffic_source and "traffic_source" not in data:
        data["traffic_source"] = payload.traffic_source

    enrollment = Enrollment(
        name=payload.name,
        phone=payload.phone,
        city=payload.city,
        email=str(payload.email) if payload.email else None,
        traffic_source=payload.traffic_source,
        own_code=own_code_from_payload(data),
        payload=data,
    )

    with get_session() as session:
        session.add(enrollment)
        session.commit()
        session.refresh(enrollment)
        return enrollment


@router.get("/", response_model=List[Enrollment])
def list_enrollments(limit: int = 200, offset: int = 0) -> List[Enrollment]:
    if limit < 1:
        limit = 1
    if limit > 1000:
        limit = 1000
    if offset < 0:
        offset = 0

    with get_session() as session:
        q = select(Enrollment).order_by(Enrollment.id.desc()).offset(offset).limit(limit)
        return list(session.exec(q).all())


@router.post("/recruiters", response_model=Enrollment)
def create_recruiter(payload: RecruiterCreate) -> Enrollment:
    """
    Register a recruiter under their own referral code.

    - 400 when the code does not contain digits
    - 409 when another enrollment already owns the code
    """
    with get_session() as session:
        try:
            return create_recruiter_enrollment(
                session,
                name=payload.name,
                code=payload.code,
                phone=payload.phone,
                city=payload.city,
                parent_enrollment_id=payload.parent_enrollment_id,
                parent_code=payload.parent_code,
                level=payload.level,
            )
        except DuplicateRecruiterCodeError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))


@router.get("/{enrollment_id}", response_model=Enrollment)
def get_enrollment(enrollment_id: int) -> Enrollment:
    with get_session() as session:
        e = session.get(Enrollment, enrollment_id)
        if not e:
            raise HTTPException(status_code=404, detail="Enrollment not found")
        return e


@router.get("/{enrollment_id}/record")
def get_enrollment_record(enrollment_id: int) -> Dict[str, Any]:
    """
    The normalized record the network view reads for this enrollment.
    """
    with get_session() as session:
        e = session.get(Enrollment, enrollment_id)
        if not e:
            raise HTTPException(status_code=404, detail="Enrollment not found")
        return record_from_enrollment(e).__dict__
