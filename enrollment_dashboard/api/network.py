from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from ..config import settings
from ..database import get_db
from ..services.enrollment_records import list_enrollment_records
from ..services.network_tree import build_network_tree, flatten_recruiters, focus_subtree
from ..services.network_types import NetworkTreeResult
from ..services.recruiters import list_recruiters

router = APIRouter(prefix="/network", tags=["network"])


def _build(db: Session, focus: Optional[str] = None) -> NetworkTreeResult:
    """
    Fresh snapshot per request; no forest state is shared between requests.
    """
    return build_network_tree(
        list_enrollment_records(db),
        list_recruiters(),
        focus=focus,
        primary_root_codes=settings.primary_root_codes,
    )


@router.get("")
def network_tree(focus: Optional[str] = None, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Ranked recruiter/lead forest with stats.

    An unknown focus is not an error: focus comes back null and the
    caller shows the unfiltered view.
    """
    return _build(db, focus).to_dict()


@router.get("/recruiters")
def network_recruiters(db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    """
    Directory view of every recruiter code present in the network,
    including virtual placeholders, sorted by code.
    """
    return [entry.__dict__ for entry in flatten_recruiters(_build(db))]


@router.get("/recruiters/{code}")
def network_for_recruiter(code: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Subtree rooted at one recruiter (by code or node id).
    """
    result = _build(db, code)
    node = focus_subtree(result)
    if result.focus is None or node is None:
        raise HTTPException(status_code=404, detail="Recruiter not found in network")

    return {
        "focus": result.focus.to_dict(),
        "node": node.to_dict(),
        "stats": result.stats.__dict__,
    }
