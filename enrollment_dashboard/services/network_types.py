from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class NodeKind(str, Enum):
    """
    Node classification inside the referral network.

    - RECRUITER: holds a referral code and can have downstream referrals
    - LEAD: an enrollee with no referral code of their own
    """

    RECRUITER = "recruiter"
    LEAD = "lead"


_RECRUITER_KIND_ALIASES = ("indicador", "upline")


def is_recruiter_kind(raw: Any) -> bool:
    """
    Interpret a raw kind indicator from form/import data.

    Accepts NodeKind members and free text ("recrutador", "Recrutadora",
    "recruiter", "indicador", "upline"). Anything else reads as a lead.
    """
    if isinstance(raw, NodeKind):
        return raw is NodeKind.RECRUITER
    if not isinstance(raw, str):
        return False
    s = raw.strip().lower()
    if not s:
        return False
    return s.startswith("recrutador") or s.startswith("recruiter") or s in _RECRUITER_KIND_ALIASES


@dataclass
class NetworkNode:
    """
    One person (or placeholder) in the referral forest.

    Lifetime is a single build: nodes are created fresh from the current
    record snapshot and never persisted.

    Negative ids are reserved for virtual nodes (configured codes with no
    backing enrollment), so they can never collide with stored ids.
    """
    id: int
    display_name: str
    kind: NodeKind
    code: Optional[str] = None
    is_virtual: bool = False

    parent_node_id: Optional[int] = None
    parent_code: Optional[str] = None

    referral_url: Optional[str] = None
    referrer_name: Optional[str] = None
    referrer_url: Optional[str] = None

    phone: Optional[str] = None
    city: Optional[str] = None
    level: Optional[int] = None

    # Derived by the metrics pass
    total_descendants: int = 0
    lead_descendants: int = 0
    recruiter_descendants: int = 0
    direct_lead_count: int = 0
    direct_recruiter_count: int = 0

    children: List["NetworkNode"] = field(default_factory=list)

    @property
    def is_recruiter(self) -> bool:
        return self.kind is NodeKind.RECRUITER

    @property
    def direct_referrals(self) -> int:
        return self.direct_lead_count + self.direct_recruiter_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "kind": self.kind.value,
            "code": self.code,
            "is_virtual": self.is_virtual,
            "parent_node_id": self.parent_node_id,
            "parent_code": self.parent_code,
            "referral_url": self.referral_url,
            "referrer_name": self.referrer_name,
            "referrer_url": self.referrer_url,
            "phone": self.phone,
            "city": self.city,
            "level": self.level,
            "total_descendants": self.total_descendants,
            "lead_descendants": self.lead_descendants,
            "recruiter_descendants": self.recruiter_descendants,
            "direct_lead_count": self.direct_lead_count,
            "direct_recruiter_count": self.direct_recruiter_count,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True)
class NetworkTreeStats:
    total: int
    leads: int
    recruiters: int
    virtual_recruiters: int
    orphans: int


@dataclass(frozen=True)
class NetworkTreeFocus:
    """
    A resolved subtree focus: the target node and its root-to-node id path.
    """
    code: Optional[str]
    name: Optional[str]
    node_id: Optional[int]
    path: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "node_id": self.node_id,
            "path": list(self.path),
        }


@dataclass
class NetworkTreeResult:
    roots: List[NetworkNode]
    orphans: List[NetworkNode]
    stats: NetworkTreeStats
    focus: Optional[NetworkTreeFocus] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roots": [node.to_dict() for node in self.roots],
            "orphans": [node.to_dict() for node in self.orphans],
            "stats": self.stats.__dict__,
            "focus": self.focus.to_dict() if self.focus is not None else None,
        }
