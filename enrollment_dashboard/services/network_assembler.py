from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence

from ..config import DEFAULT_PRIMARY_ROOT_CODES
from .network_types import NetworkNode, NodeKind
from .recruiters import normalize_recruiter_code


@dataclass
class AssembledForest:
    """
    Parent/child wiring of one build, before metrics and ordering.

    - nodes: every node in materialization order
    - roots: parentless recruiters (normally just the primary root)
    - orphans: parentless leads
    """
    nodes: List[NetworkNode]
    roots: List[NetworkNode]
    orphans: List[NetworkNode]
    primary_root: Optional[NetworkNode] = None
    node_by_id: Dict[int, NetworkNode] = field(default_factory=dict)
    node_by_code: Dict[str, NetworkNode] = field(default_factory=dict)


def _closes_cycle(node: NetworkNode, candidate: NetworkNode, parent_of: Dict[int, NetworkNode]) -> bool:
    """
    True when attaching node under candidate would make node its own ancestor.

    Walks the parents resolved so far, starting at candidate.
    """
    current: Optional[NetworkNode] = candidate
    seen = set()
    while current is not None:
        if current is node:
            return True
        if id(current) in seen:
            return True
        seen.add(id(current))
        current = parent_of.get(id(current))
    return False


def _resolve_parent(
    node: NetworkNode,
    requested_id: Optional[int],
    node_by_id: Dict[int, NetworkNode],
    node_by_code: Dict[str, NetworkNode],
    parent_of: Dict[int, NetworkNode],
) -> Optional[NetworkNode]:
    # 1) explicit parent id
    if requested_id is not None:
        candidate = node_by_id.get(requested_id)
        if candidate is not None and candidate is not node and candidate.id != node.id:
            if not _closes_cycle(node, candidate, parent_of):
                return candidate

    # 2) referrer's code
    if node.parent_code:
        candidate = node_by_code.get(node.parent_code)
        if candidate is not None and candidate is not node and candidate.id != node.id:
            if not _closes_cycle(node, candidate, parent_of):
                return candidate

    return None


def _pick_primary_root(
    nodes: Sequence[NetworkNode],
    node_by_code: Dict[str, NetworkNode],
    root_codes: Sequence[str],
) -> Optional[NetworkNode]:
    for raw in root_codes:
        code = normalize_recruiter_code(raw)
        if not code:
            continue
        candidate = node_by_code.get(code)
        if candidate is not None and candidate.kind is NodeKind.RECRUITER:
            return candidate

    # Input-order dependent: first recruiter in materialization order.
    for node in nodes:
        if node.kind is NodeKind.RECRUITER:
            return node
    return None


def assemble_forest(
    nodes: Sequence[NetworkNode],
    primary_root_codes: Optional[Sequence[str]] = None,
) -> AssembledForest:
    """
    Wire materialized nodes into a forest.

    Parent resolution per node, strictly in order:
      1) explicit parent id, if it names a different existing node
      2) parent referral code, if it names a different existing node
      3) otherwise parentless
    An attachment that would close a cycle is skipped like an unresolved one.

    Then the primary root is forced parentless and every other parentless
    recruiter is hung under it, so recruiters form one connected tree while
    leads may stay legitimately parentless (orphans).

    Works on copies; the input nodes are left untouched.
    """
    root_codes = list(primary_root_codes) if primary_root_codes is not None else list(DEFAULT_PRIMARY_ROOT_CODES)

    working = [replace(node, parent_node_id=None, children=[]) for node in nodes]
    requested_ids = [node.parent_node_id for node in nodes]

    node_by_id: Dict[int, NetworkNode] = {}
    node_by_code: Dict[str, NetworkNode] = {}
    for node in working:
        node_by_id.setdefault(node.id, node)
        if node.kind is NodeKind.RECRUITER and node.code:
            # First claimant keeps the code (real nodes are materialized before virtual ones).
            node_by_code.setdefault(node.code, node)

    # id(child) -> parent node object
    parent_of: Dict[int, NetworkNode] = {}

    for node, requested_id in zip(working, requested_ids):
        parent = _resolve_parent(node, requested_id, node_by_id, node_by_code, parent_of)
        if parent is None:
            continue
        parent.children.append(node)
        parent_of[id(node)] = parent
        node.parent_node_id = parent.id

    primary = _pick_primary_root(working, node_by_code, root_codes)

    if primary is not None:
        former = parent_of.pop(id(primary), None)
        if former is not None:
            former.children = [child for child in former.children if child is not primary]
        primary.parent_node_id = None

        for node in working:
            if node is primary:
                continue
            if node.kind is NodeKind.RECRUITER and node.parent_node_id is None:
                node.parent_node_id = primary.id
                parent_of[id(node)] = primary
                if not any(child is node for child in primary.children):
                    primary.children.append(node)

    roots = [n for n in working if n.parent_node_id is None and n.kind is NodeKind.RECRUITER]
    orphans = [n for n in working if n.parent_node_id is None and n.kind is not NodeKind.RECRUITER]

    return AssembledForest(
        nodes=working,
        roots=roots,
        orphans=orphans,
        primary_root=primary,
        node_by_id=node_by_id,
        node_by_code=node_by_code,
    )
