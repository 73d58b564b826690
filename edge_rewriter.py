"""
Edge rewriting for provider pathways

Ordinary edges are copied with a resolved label. Conditional nodes do not
exist in the provider format, so their outgoing edges are re-sourced at the
start node and labeled with the branch condition.
"""
import re
import logging
from typing import Dict, List, Mapping, Optional, Set, Tuple

from flowchart_model import CustomerResponseData, GraphEdge, GraphNode, NodeKind
from condition_parser import ParsedCondition
from id_sanitizer import sanitize_id

logger = logging.getLogger(__name__)

DEFAULT_EDGE_LABEL = "next"
RESPONSE_HANDLE_PATTERN = re.compile(r'^response[-_](\d+)$')

def _response_option(edge: GraphEdge, source: Optional[GraphNode]) -> Optional[str]:
    if source is None or source.kind is not NodeKind.CUSTOMER_RESPONSE or not edge.source_handle:
        return None
    match = RESPONSE_HANDLE_PATTERN.match(edge.source_handle)
    if not match:
        return None
    options = source.data.options if isinstance(source.data, CustomerResponseData) else []
    index = int(match.group(1))
    return options[index] if index < len(options) else None

def resolve_edge_label(edge: GraphEdge, source: Optional[GraphNode] = None) -> str:
    """data.label, then label, then the customer response option, then 'next'"""
    for candidate in (edge.data_label, edge.label, _response_option(edge, source)):
        if candidate and candidate.strip():
            return candidate.strip()
    return DEFAULT_EDGE_LABEL

def conditional_edge_id(source: str, label: str, target: str) -> str:
    return f"{sanitize_id(source)}_{sanitize_id(label)}_{sanitize_id(target)}"

def _output_edge(edge_id: str, source: str, target: str, label: str) -> Dict[str, str]:
    return {'id': edge_id, 'source': source, 'target': target, 'label': label}

def rewrite_edges(edges: List[GraphEdge],
                  nodes: Mapping[str, GraphNode],
                  output_ids: Set[str],
                  start_id: Optional[str],
                  conditions: Mapping[str, Optional[ParsedCondition]]) -> List[Dict[str, str]]:
    """
    Build the provider edge list.

    Args:
        edges: sanitized graph edges, in editor order
        nodes: sanitized graph nodes by id
        output_ids: ids of the nodes present in the output
        start_id: resolved start node, the new source of conditional branches
        conditions: parsed condition per conditional node id (None if unparseable)

    Rewritten branches repeating a source, target and label are emitted once.
    Colliding ids get the first free numeric suffix (_2, _3, ...).
    """
    result: List[Dict[str, str]] = []
    used_ids: Set[str] = set()
    connections: Set[Tuple[str, str, str]] = set()

    def emit(edge: Dict[str, str], collapse: bool = False):
        key = (edge['source'], edge['target'], edge['label'])
        if collapse and key in connections:
            logger.debug(f"Skipping duplicate edge {edge['source']} -> {edge['target']} ({edge['label']})")
            return
        connections.add(key)
        edge_id = edge['id']
        suffix = 2
        while edge_id in used_ids:
            edge_id = f"{edge['id']}_{suffix}"
            suffix += 1
        if edge_id != edge['id']:
            logger.warning(f"Edge id '{edge['id']}' already used, renamed to '{edge_id}'")
        used_ids.add(edge_id)
        result.append({**edge, 'id': edge_id})

    for edge in edges:
        source = nodes.get(edge.source)

        if edge.source in conditions:
            if start_id is None or edge.target not in output_ids:
                logger.debug(f"Dropping conditional edge '{edge.id}' with no start node or removed target")
                continue
            condition = conditions[edge.source]
            if condition is not None:
                label = condition.label_for(edge.source_handle)
            else:
                label = resolve_edge_label(edge, source)
            branch_id = conditional_edge_id(start_id, label, edge.target)
            emit(_output_edge(branch_id, start_id, edge.target, label), collapse=True)
            continue

        if edge.source not in output_ids or edge.target not in output_ids:
            logger.debug(f"Dropping edge '{edge.id}': endpoint not in output")
            continue

        emit(_output_edge(edge.id, edge.source, edge.target, resolve_edge_label(edge, source)))

    return result
