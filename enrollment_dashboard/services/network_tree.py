from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence

from .enrollment_records import EnrollmentRecord
from .network_assembler import assemble_forest
from .network_materializer import materialize_nodes
from .network_ranking import compute_metrics, compute_stats, rank_forest, resolve_focus
from .network_types import NetworkNode, NetworkTreeResult, NodeKind
from .recruiters import Recruiter, recruiter_url

logger = logging.getLogger(__name__)


def build_network_tree(
    records: Sequence[EnrollmentRecord],
    recruiters: Sequence[Recruiter],
    focus: Optional[str] = None,
    primary_root_codes: Optional[Sequence[str]] = None,
) -> NetworkTreeResult:
    """
    Flat enrollment snapshot -> ranked referral forest.

    Pipeline:
      1) materialize nodes (+ virtual recruiters for unclaimed codes)
      2) assemble parent/child links and the primary root
      3) aggregate descendant counts, then sort every sibling list
      4) resolve the optional focus query

    Pure and synchronous: no I/O, and inputs are not modified. Malformed
    records degrade to conservative defaults instead of raising.
    """
    nodes = materialize_nodes(records, recruiters)
    forest = assemble_forest(nodes, primary_root_codes)

    roots = rank_forest(compute_metrics(forest.roots))
    orphans = rank_forest(compute_metrics(forest.orphans))

    stats = compute_stats(forest.nodes, forest.orphans)
    focus_result = resolve_focus(focus, forest.node_by_id, forest.node_by_code)

    if focus is not None and str(focus).strip() and focus_result is None:
        logger.info("Network focus %r did not resolve to any node", focus)

    logger.debug(
        "Built network tree: total=%d recruiters=%d virtual=%d orphans=%d primary_root=%s",
        stats.total,
        stats.recruiters,
        stats.virtual_recruiters,
        stats.orphans,
        forest.primary_root.id if forest.primary_root is not None else None,
    )

    return NetworkTreeResult(roots=roots, orphans=orphans, stats=stats, focus=focus_result)


def iter_nodes(tops: Sequence[NetworkNode]) -> Iterator[NetworkNode]:
    """
    Pre-order walk over a forest, in display order.
    """
    stack: List[NetworkNode] = list(reversed(tops))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find_node(result: NetworkTreeResult, node_id: int) -> Optional[NetworkNode]:
    for node in iter_nodes(list(result.roots) + list(result.orphans)):
        if node.id == node_id:
            return node
    return None


def focus_subtree(result: NetworkTreeResult) -> Optional[NetworkNode]:
    """
    The ranked node a resolved focus points at, with its whole subtree.
    """
    if result.focus is None or result.focus.node_id is None:
        return None
    return find_node(result, result.focus.node_id)


@dataclass(frozen=True)
class RecruiterDirectoryEntry:
    id: int
    enrollment_id: Optional[int]
    name: str
    code: str
    url: str
    is_virtual: bool
    phone: Optional[str] = None
    city: Optional[str] = None


def _entry_for(node: NetworkNode) -> RecruiterDirectoryEntry:
    code = node.code or ""
    return RecruiterDirectoryEntry(
        id=node.id,
        enrollment_id=node.id if node.id > 0 else None,
        name=node.display_name,
        code=code,
        url=node.referral_url or recruiter_url(code),
        is_virtual=node.is_virtual,
        phone=node.phone,
        city=node.city,
    )


def _code_sort_key(entry: RecruiterDirectoryEntry):
    try:
        return (0, int(entry.code), entry.code)
    except ValueError:
        return (1, 0, entry.code)


def flatten_recruiters(result: NetworkTreeResult) -> List[RecruiterDirectoryEntry]:
    """
    One directory entry per recruiter code found in the forest.

    A real recruiter replaces a virtual placeholder for the same code;
    otherwise the first one met in display order is kept. Sorted by
    numeric code.
    """
    entries: Dict[str, RecruiterDirectoryEntry] = {}

    for node in iter_nodes(list(result.roots) + list(result.orphans)):
        if node.kind is not NodeKind.RECRUITER or not node.code:
            continue
        current = entries.get(node.code)
        if current is None or (current.is_virtual and not node.is_virtual):
            entries[node.code] = _entry_for(node)

    return sorted(entries.values(), key=_code_sort_key)
