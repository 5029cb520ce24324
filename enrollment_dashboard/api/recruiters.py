from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from ..services.recruiters import get_recruiter_by_code, list_recruiters

router = APIRouter(prefix="/recruiters", tags=["recruiters"])


@router.get("/")
def list_configured_recruiters() -> List[Dict[str, Any]]:
    """
    The configured referral-code directory (independent of enrollment data).
    """
    return [r.__dict__ for r in list_recruiters()]


@router.get("/{code}")
def get_configured_recruiter(code: str) -> Dict[str, Any]:
    r = get_recruiter_by_code(code)
    if not r:
        raise HTTPException(status_code=404, detail="Recruiter code not configured")
    return r.__dict__
