"""
Flowchart shape validator
Checks editor JSON before compilation and supplies fallback substitutions
"""
import logging
from typing import Any, Dict, List, Set
from dataclasses import dataclass, field

from flowchart_model import NodeKind

logger = logging.getLogger(__name__)

FALLBACK_NODE_TYPE = NodeKind.RESPONSE.value

@dataclass
class ValidationResult:
    """Outcome of a shape check, with the cleaned nodes and edges"""
    is_valid: bool
    issues: List[str] = field(default_factory=list)
    nodes_with_fallbacks: List[Dict[str, Any]] = field(default_factory=list)
    edges: List[Dict[str, Any]] = field(default_factory=list)
    is_navigable: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isValid': self.is_valid,
            'issues': list(self.issues),
            'nodesWithFallbacks': self.nodes_with_fallbacks,
            'edges': self.edges,
        }

def invalid_flowchart_result(issues: List[str]) -> Dict[str, Any]:
    """Sentinel returned instead of a pathway when the input is not a graph"""
    return {'isValid': False, 'issues': list(issues)}

def is_invalid_result(result: Any) -> bool:
    return isinstance(result, dict) and result.get('isValid') is False

class FlowchartValidator:
    """Validates the node/edge structure produced by the editor"""

    def __init__(self):
        self.issues: List[str] = []

    def validate(self, flowchart: Any) -> ValidationResult:
        self.issues = []

        if not isinstance(flowchart, dict):
            self.issues.append(f"Flowchart must be an object, got {type(flowchart).__name__}")
            return self._result([], [], navigable=False)

        raw_nodes = flowchart.get('nodes')
        navigable = isinstance(raw_nodes, list)
        if raw_nodes is None:
            self.issues.append("Flowchart has no nodes list")
        elif not navigable:
            self.issues.append(f"Flowchart nodes must be a list, got {type(raw_nodes).__name__}")

        raw_edges = flowchart.get('edges')
        if raw_edges is None:
            self.issues.append("Flowchart has no edges list, assuming no edges")
            raw_edges = []
        elif not isinstance(raw_edges, list):
            self.issues.append(f"Flowchart edges must be a list, got {type(raw_edges).__name__}; ignoring them")
            raw_edges = []

        nodes = self._validate_nodes(raw_nodes if navigable else [])
        edges = self._validate_edges(raw_edges, {node['id'] for node in nodes})
        return self._result(nodes, edges, navigable=navigable)

    def _result(self, nodes: List[Dict[str, Any]], edges: List[Dict[str, Any]], navigable: bool) -> ValidationResult:
        for issue in self.issues:
            logger.warning(f"Flowchart validation: {issue}")
        return ValidationResult(
            is_valid=not self.issues,
            issues=list(self.issues),
            nodes_with_fallbacks=nodes,
            edges=edges,
            is_navigable=navigable
        )

    def _validate_nodes(self, raw_nodes: List[Any]) -> List[Dict[str, Any]]:
        nodes = []
        seen: Set[str] = set()
        for index, raw in enumerate(raw_nodes):
            if not isinstance(raw, dict):
                self.issues.append(f"Node {index}: not an object, removed")
                continue
            node_id = raw.get('id')
            if not isinstance(node_id, str) or not node_id:
                self.issues.append(f"Node {index}: missing or non-string id, removed")
                continue
            if node_id in seen:
                self.issues.append(f"Node {node_id}: duplicate id, later copy removed")
                continue
            seen.add(node_id)

            node = dict(raw)
            if not isinstance(node.get('type'), str) or not node['type']:
                self.issues.append(f"Node {node_id}: missing type, using {FALLBACK_NODE_TYPE}")
                node['type'] = FALLBACK_NODE_TYPE
            elif NodeKind.from_editor_type(node['type']) is None:
                self.issues.append(f"Node {node_id}: unknown type '{node['type']}', using {FALLBACK_NODE_TYPE}")
                node['type'] = FALLBACK_NODE_TYPE

            if not isinstance(node.get('data'), dict):
                if 'data' in node:
                    self.issues.append(f"Node {node_id}: data must be an object, using empty data")
                node['data'] = {}
            else:
                node['data'] = dict(node['data'])
            nodes.append(node)
        return nodes

    def _validate_edges(self, raw_edges: List[Any], node_ids: Set[str]) -> List[Dict[str, Any]]:
        edges = []
        for index, raw in enumerate(raw_edges):
            if not isinstance(raw, dict):
                self.issues.append(f"Edge {index}: not an object, removed")
                continue
            edge_id = raw.get('id')
            if not isinstance(edge_id, str) or not edge_id:
                self.issues.append(f"Edge {index}: missing or non-string id, removed")
                continue
            dangling = [
                f"{key} '{raw.get(key)}'" for key in ('source', 'target')
                if not isinstance(raw.get(key), str) or raw[key] not in node_ids
            ]
            if dangling:
                self.issues.append(f"Edge {edge_id}: unknown {' and '.join(dangling)}, removed")
                continue
            edges.append(dict(raw))
        return edges

def validate_flowchart(flowchart: Any) -> ValidationResult:
    """Convenience wrapper around FlowchartValidator"""
    return FlowchartValidator().validate(flowchart)
