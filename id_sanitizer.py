"""
Identifier sanitizer for provider-safe node and edge ids
"""
import re
import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from flowchart_model import Flowchart, GraphEdge

logger = logging.getLogger(__name__)

INVALID_ID_CHARS = re.compile(r'[^A-Za-z0-9_]')
VALID_ID = re.compile(r'^[A-Za-z0-9_]*$')

def sanitize_id(value: str) -> str:
    """Replace every character outside [A-Za-z0-9_] with an underscore"""
    return INVALID_ID_CHARS.sub('_', value)

def is_sanitized(value: str) -> bool:
    return bool(VALID_ID.match(value))

def build_id_map(ids: Iterable[str]) -> Dict[str, str]:
    """
    Map original ids to unique sanitized ids for one compilation pass.

    Ids that are already clean keep their value. A dirty id whose sanitized
    form is taken gets the first free numeric suffix (_2, _3, ...), assigned
    in input order.
    """
    ordered = list(dict.fromkeys(ids))
    table: Dict[str, str] = {}
    used = set()
    for original in ordered:
        if is_sanitized(original):
            table[original] = original
            used.add(original)

    for original in ordered:
        if original in table:
            continue
        candidate = sanitize_id(original)
        if candidate in used:
            suffix = 2
            while f"{candidate}_{suffix}" in used:
                suffix += 1
            logger.warning(f"Id '{original}' collides with '{candidate}' after sanitizing, using '{candidate}_{suffix}'")
            candidate = f"{candidate}_{suffix}"
        table[original] = candidate
        used.add(candidate)

    return table

def _sanitize_handle(handle: Optional[str]) -> Optional[str]:
    return sanitize_id(handle) if handle is not None else None

def sanitize_flowchart(flowchart: Flowchart) -> Tuple[Flowchart, Dict[str, str]]:
    """
    Return a copy of the flowchart with provider-safe ids, plus the node id table.

    Edge endpoints are rewritten through the same table as the node ids.
    Edges pointing at nodes that are not in the graph are dropped.
    """
    node_ids = build_id_map(node.id for node in flowchart.nodes)
    nodes = []
    seen = set()
    for node in flowchart.nodes:
        # duplicate ids keep their first occurrence
        if node.id in seen:
            logger.warning(f"Dropping duplicate node id '{node.id}'")
            continue
        seen.add(node.id)
        nodes.append(replace(node, id=node_ids[node.id]))

    kept_edges: List[GraphEdge] = []
    for edge in flowchart.edges:
        if edge.source not in node_ids or edge.target not in node_ids:
            logger.debug(f"Dropping edge '{edge.id}': {edge.source} -> {edge.target} references an unknown node")
            continue
        kept_edges.append(edge)

    edge_ids = build_id_map(edge.id for edge in kept_edges)
    edges = []
    seen = set()
    for edge in kept_edges:
        if edge.id in seen:
            logger.warning(f"Dropping duplicate edge id '{edge.id}'")
            continue
        seen.add(edge.id)
        edges.append(replace(
            edge,
            id=edge_ids[edge.id],
            source=node_ids[edge.source],
            target=node_ids[edge.target],
            source_handle=_sanitize_handle(edge.source_handle),
            target_handle=_sanitize_handle(edge.target_handle)
        ))

    return replace(flowchart, nodes=nodes, edges=edges), node_ids
