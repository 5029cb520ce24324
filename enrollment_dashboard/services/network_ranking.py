from __future__ import annotations

import re
import unicodedata
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .network_types import NetworkNode, NetworkTreeFocus, NetworkTreeStats, NodeKind
from .recruiters import normalize_recruiter_code

_INTEGER = re.compile(r"^-?\d+$")

# Longest id text tried as a node id; anything longer cannot be a stored id.
_MAX_ID_CHARS = 20

# build(original, rebuilt_children, level) -> new node
_Builder = Callable[[NetworkNode, List[NetworkNode], int], NetworkNode]


def _rebuild(top: NetworkNode, top_level: int, build: _Builder) -> NetworkNode:
    """
    Post-order copy of one tree without recursion.

    Children are rebuilt before their parent, so build() always sees
    finished children. Levels flow downward: a node keeps its own level
    when it has one, otherwise it gets parent level + 1.
    """
    done: Dict[int, NetworkNode] = {}
    stack: List[Tuple[NetworkNode, int, bool]] = [(top, top_level, False)]

    while stack:
        node, level, expanded = stack.pop()
        if not expanded:
            stack.append((node, level, True))
            for child in node.children:
                child_level = child.level if child.level is not None else level + 1
                stack.append((child, child_level, False))
            continue

        children = [done.pop(id(child)) for child in node.children]
        done[id(node)] = build(node, children, level)

    return done[id(top)]


def _with_metrics(node: NetworkNode, children: List[NetworkNode], level: int) -> NetworkNode:
    total = 0
    leads = 0
    recruiters = 0
    direct_leads = 0
    direct_recruiters = 0

    for child in children:
        total += 1 + child.total_descendants
        if child.kind is NodeKind.RECRUITER:
            direct_recruiters += 1
            recruiters += 1 + child.recruiter_descendants
            leads += child.lead_descendants
        else:
            direct_leads += 1
            leads += 1 + child.lead_descendants
            recruiters += child.recruiter_descendants

    return replace(
        node,
        level=level,
        children=children,
        total_descendants=total,
        lead_descendants=leads,
        recruiter_descendants=recruiters,
        direct_lead_count=direct_leads,
        direct_recruiter_count=direct_recruiters,
    )


def compute_metrics(tops: Sequence[NetworkNode]) -> List[NetworkNode]:
    """
    Aggregation pass: new trees carrying descendant counts and levels.

    Counts are recomputed from scratch from the current child lists.
    Top-level nodes without a known level get 0.
    """
    return [_rebuild(top, top.level if top.level is not None else 0, _with_metrics) for top in tops]


def collation_key(name: str) -> Tuple[str, str]:
    """
    Case- and accent-insensitive sort key ("Ágata" sorts with "agata").

    The second element keeps the ordering total between names that only
    differ by accents.
    """
    folded = unicodedata.normalize("NFKD", name or "")
    base = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return base.casefold(), (name or "").casefold()


def ranking_key(node: NetworkNode):
    """
    Sibling order:
      1) more direct referrals first
      2) more total descendants first
      3) recruiters before leads
      4) display name, case/accent-insensitive
      5) id, so equal names still order deterministically
    """
    return (
        -node.direct_referrals,
        -node.total_descendants,
        0 if node.kind is NodeKind.RECRUITER else 1,
        collation_key(node.display_name),
        node.id,
    )


def _with_sorted_children(node: NetworkNode, children: List[NetworkNode], level: int) -> NetworkNode:
    return replace(node, children=sorted(children, key=ranking_key))


def rank_forest(tops: Sequence[NetworkNode]) -> List[NetworkNode]:
    """
    Ordering pass: new trees with every child list sorted, plus the sorted
    top-level list. Metrics must already be computed.
    """
    ranked = [_rebuild(top, top.level if top.level is not None else 0, _with_sorted_children) for top in tops]
    return sorted(ranked, key=ranking_key)


def compute_stats(nodes: Sequence[NetworkNode], orphans: Sequence[NetworkNode]) -> NetworkTreeStats:
    recruiters = sum(1 for n in nodes if n.kind is NodeKind.RECRUITER)
    virtual_recruiters = sum(1 for n in nodes if n.kind is NodeKind.RECRUITER and n.is_virtual)
    return NetworkTreeStats(
        total=len(nodes),
        leads=len(nodes) - recruiters,
        recruiters=recruiters,
        virtual_recruiters=virtual_recruiters,
        orphans=len(orphans),
    )


def build_focus_path(node: Optional[NetworkNode], node_by_id: Dict[int, NetworkNode]) -> List[int]:
    """
    Ancestor ids of node, oldest ancestor first, ending with node itself.

    Stops at an empty parent slot, a dangling parent id, or an id seen
    twice, so a corrupted parent chain cannot loop forever.
    """
    if node is None:
        return []

    path: List[int] = []
    seen = set()
    current: Optional[NetworkNode] = node

    while current is not None:
        if current.id in seen:
            break
        seen.add(current.id)
        path.append(current.id)
        if current.parent_node_id is None:
            break
        current = node_by_id.get(current.parent_node_id)

    path.reverse()
    return path


def find_focus_node(
    query: Optional[str],
    node_by_id: Dict[int, NetworkNode],
    node_by_code: Dict[str, NetworkNode],
) -> Optional[NetworkNode]:
    """
    Resolve a focus query: integer-looking text is tried as a node id
    first, then anything is tried as a referral code.
    """
    raw = "" if query is None else str(query).strip()
    if not raw:
        return None

    node: Optional[NetworkNode] = None
    if _INTEGER.match(raw) and len(raw) <= _MAX_ID_CHARS:
        node = node_by_id.get(int(raw))

    if node is None:
        code = normalize_recruiter_code(raw)
        if code:
            node = node_by_code.get(code)

    return node


def resolve_focus(
    query: Optional[str],
    node_by_id: Dict[int, NetworkNode],
    node_by_code: Dict[str, NetworkNode],
) -> Optional[NetworkTreeFocus]:
    """
    None means "no focus": callers show the unfiltered view.
    """
    node = find_focus_node(query, node_by_id, node_by_code)
    if node is None:
        return None

    return NetworkTreeFocus(
        code=node.code,
        name=node.display_name,
        node_id=node.id,
        path=build_focus_path(node, node_by_id),
    )
