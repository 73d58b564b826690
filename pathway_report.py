"""
Pathway payload checks and summary tables for the dashboard
"""
import logging
from collections import Counter
from typing import Any, Dict, List

import pandas as pd

from id_sanitizer import is_sanitized
from pathway_assembler import DEFAULT_TYPE, END_CALL_TYPE, TRANSFER_TYPE, WEBHOOK_TYPE

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = {DEFAULT_TYPE, END_CALL_TYPE, TRANSFER_TYPE, WEBHOOK_TYPE}

def _content_nodes(pathway: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [node for node in pathway.get('nodes', []) if 'globalConfig' not in node]

def validate_pathway_output(pathway: Dict[str, Any]) -> Dict[str, Any]:
    """Re-check a compiled pathway against the provider's structural rules"""
    errors = []
    warnings = []
    nodes = pathway.get('nodes', [])
    content = _content_nodes(pathway)
    edges = pathway.get('edges', [])

    if not nodes or 'globalConfig' not in nodes[-1]:
        errors.append("Node list must end with the globalConfig entry")

    node_ids = set()
    start_nodes = []
    for i, node in enumerate(content):
        node_id = node.get('id')
        data = node.get('data') or {}
        label = node_id if isinstance(node_id, str) else f"#{i}"

        if not isinstance(node_id, str) or not is_sanitized(node_id):
            errors.append(f"Node {label}: id contains characters outside [A-Za-z0-9_]")
        elif node_id in node_ids:
            errors.append(f"Node {label}: duplicate id")
        else:
            node_ids.add(node_id)

        if node.get('type') not in SUPPORTED_TYPES:
            errors.append(f"Node {label}: unsupported type '{node.get('type')}'")
        if 'isStart' not in data:
            errors.append(f"Node {label}: isStart must be set explicitly")
        elif data['isStart'] is True:
            start_nodes.append(node_id)
        if not data.get('name'):
            warnings.append(f"Node {label}: missing name")
        if 'modelOptions' not in data:
            warnings.append(f"Node {label}: missing modelOptions")

        if node.get('type') == DEFAULT_TYPE and ('prompt' in data or not data.get('text')):
            errors.append(f"Node {label}: Default nodes need text and no prompt")
        if node.get('type') == END_CALL_TYPE and ('text' in data or not data.get('prompt')):
            errors.append(f"Node {label}: End Call nodes need prompt and no text")

    if len(start_nodes) != 1:
        errors.append(f"Expected exactly one start node, found {len(start_nodes)}")

    for edge in edges:
        edge_id = edge.get('id', '?')
        for key in ('id', 'source', 'target'):
            if not isinstance(edge.get(key), str) or not is_sanitized(edge[key]):
                errors.append(f"Edge {edge_id}: {key} contains characters outside [A-Za-z0-9_]")
        if not isinstance(edge.get('label'), str) or not edge['label'].strip():
            errors.append(f"Edge {edge_id}: missing label")
        for key in ('source', 'target'):
            if edge.get(key) not in node_ids:
                warnings.append(f"Edge {edge_id}: {key} '{edge.get(key)}' is not a pathway node")

    logger.info(f"Pathway check: {len(errors)} errors, {len(warnings)} warnings")
    return {
        'is_valid': len(errors) == 0,
        'errors': errors,
        'warnings': warnings,
        'node_count': len(content),
        'edge_count': len(edges),
        'start_nodes': start_nodes,
    }

def create_pathway_report(pathway: Dict[str, Any]) -> Dict[str, Any]:
    """Summary figures for the dashboard"""
    content = _content_nodes(pathway)
    check = validate_pathway_output(pathway)
    start = next((node for node in content if (node.get('data') or {}).get('isStart') is True), None)
    extract_vars = (start or {}).get('data', {}).get('extractVars', [])
    return {
        'name': pathway.get('name'),
        'total_nodes': len(content),
        'total_edges': len(pathway.get('edges', [])),
        'nodes_by_type': dict(Counter(node.get('type') for node in content)),
        'start_node': start.get('id') if start else None,
        'extract_variables': [var[0] for var in extract_vars],
        'edge_labels': sorted({edge.get('label') for edge in pathway.get('edges', [])}),
        'errors': check['errors'],
        'warnings': check['warnings'],
        'deploy_ready': check['is_valid'],
    }

def pathway_nodes_frame(pathway: Dict[str, Any]) -> pd.DataFrame:
    rows = []
    for node in _content_nodes(pathway):
        data = node.get('data') or {}
        rows.append({
            'ID': node.get('id'),
            'Type': node.get('type'),
            'Name': data.get('name'),
            'Start': bool(data.get('isStart')),
            'Content': data.get('text') or data.get('prompt') or "",
        })
    return pd.DataFrame(rows, columns=['ID', 'Type', 'Name', 'Start', 'Content'])

def pathway_edges_frame(pathway: Dict[str, Any]) -> pd.DataFrame:
    rows = [
        {'ID': edge.get('id'), 'Source': edge.get('source'), 'Target': edge.get('target'), 'Label': edge.get('label')}
        for edge in pathway.get('edges', [])
    ]
    return pd.DataFrame(rows, columns=['ID', 'Source', 'Target', 'Label'])

def variables_frame(pathway: Dict[str, Any]) -> pd.DataFrame:
    """Extraction variables declared on the start node"""
    rows = []
    for node in _content_nodes(pathway):
        data = node.get('data') or {}
        if data.get('isStart') is True:
            for name, var_type, description, required in data.get('extractVars', []):
                rows.append({'Variable': name, 'Type': var_type, 'Description': description, 'Required': required})
    return pd.DataFrame(rows, columns=['Variable', 'Type', 'Description', 'Required'])
