from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .enrollment_records import EnrollmentRecord
from .network_types import NetworkNode, NodeKind, is_recruiter_kind
from .recruiters import Recruiter, is_placeholder_name, normalize_recruiter_code, recruiter_url

# Virtual ids live below this value: code "07" -> -1007.
VIRTUAL_ID_BASE = -1000


def virtual_node_id(code: str) -> int:
    """
    Deterministic id for the placeholder node of a configured code.

    Repeated builds over the same directory yield the same ids.
    """
    try:
        return VIRTUAL_ID_BASE - int(code)
    except (TypeError, ValueError):
        return VIRTUAL_ID_BASE


def infer_display_name(
    record_id: int,
    name: Optional[str],
    own_code: Optional[str],
    parent_code: Optional[str],
) -> str:
    """
    Never-empty label for a node.

    Order: the record's own name, its own code as a cluster label, its
    referrer's code, then a generic id-based label.
    """
    if name and name.strip():
        return name.strip()
    if own_code:
        return f"Cluster {own_code}"
    fallback = f"Enrollment {record_id}"
    if parent_code:
        return f"{fallback} ({parent_code})"
    return fallback


def _directory_by_name(recruiters: Sequence[Recruiter]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for recruiter in recruiters:
        code = normalize_recruiter_code(recruiter.code)
        if not code:
            continue
        key = (recruiter.name or "").strip().lower()
        if key and key not in out:
            out[key] = code
    return out


def _node_from_record(record: EnrollmentRecord, code_by_name: Dict[str, str]) -> NetworkNode:
    own_code = normalize_recruiter_code(record.own_code)

    # A recruiter who enrolled without typing their code is matched by name.
    if not own_code and record.name:
        own_code = code_by_name.get(record.name.strip().lower())

    parent_code_raw = (record.parent_code or "").strip() or None
    parent_code = normalize_recruiter_code(parent_code_raw)

    kind = (
        NodeKind.RECRUITER
        if (own_code or record.is_recruiter or is_recruiter_kind(record.kind))
        else NodeKind.LEAD
    )

    return NetworkNode(
        id=record.id,
        display_name=infer_display_name(record.id, record.name, own_code, parent_code or parent_code_raw),
        kind=kind,
        code=own_code if kind is NodeKind.RECRUITER else None,
        is_virtual=False,
        parent_node_id=record.parent_id,
        parent_code=parent_code,
        referral_url=recruiter_url(own_code) if own_code else None,
        referrer_name=record.referrer_name,
        referrer_url=record.referrer_url,
        phone=record.phone,
        city=record.city,
        level=record.level,
    )


def _virtual_node(recruiter: Recruiter, code: str) -> NetworkNode:
    name = (recruiter.name or "").strip()
    if is_placeholder_name(name):
        display_name = f"Cluster {code}"
    else:
        display_name = f"{name} (Cluster {code})"

    return NetworkNode(
        id=virtual_node_id(code),
        display_name=display_name,
        kind=NodeKind.RECRUITER,
        code=code,
        is_virtual=True,
        referral_url=recruiter.url or recruiter_url(code),
        level=0,
    )


def materialize_nodes(
    records: Sequence[EnrollmentRecord],
    recruiters: Sequence[Recruiter],
) -> List[NetworkNode]:
    """
    One node per record, then one virtual recruiter per configured code
    that no real recruiter claims.

    Real nodes always come first so they win code-index ties during
    assembly. Malformed values degrade to empty fields; nothing raises.
    Neither input sequence is modified.
    """
    code_by_name = _directory_by_name(recruiters)

    nodes = [_node_from_record(record, code_by_name) for record in records]

    claimed = {node.code for node in nodes if node.kind is NodeKind.RECRUITER and node.code}

    for recruiter in recruiters:
        code = normalize_recruiter_code(recruiter.code)
        if not code or code in claimed:
            continue
        nodes.append(_virtual_node(recruiter, code))
        claimed.add(code)

    return nodes
