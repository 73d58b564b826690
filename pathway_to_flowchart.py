"""
Reverse conversion: Bland.ai pathway data back into editor flowchart JSON
Used when importing a pathway that was built or edited on the provider side
"""
import logging
from typing import Any, Dict, List, Tuple

from flowchart_model import NodeKind

logger = logging.getLogger(__name__)

# Provider node types and the short names used by older exports
PROVIDER_TYPE_KINDS = {
    "Default": NodeKind.RESPONSE,
    "End Call": NodeKind.END_CALL,
    "Transfer Call": NodeKind.TRANSFER,
    "Webhook": NodeKind.WEBHOOK,
    "greeting": NodeKind.GREETING,
    "question": NodeKind.QUESTION,
    "response": NodeKind.RESPONSE,
    "customer-response": NodeKind.CUSTOMER_RESPONSE,
    "end-call": NodeKind.END_CALL,
    "transfer": NodeKind.TRANSFER,
    "webhook": NodeKind.WEBHOOK,
    "conditional": NodeKind.CONDITIONAL,
    "zapier": NodeKind.ZAPIER,
    "facebook-lead": NodeKind.FACEBOOK_LEAD,
    "google-lead": NodeKind.GOOGLE_LEAD,
}

GRID_COLUMNS = 3

def grid_position(index: int) -> Dict[str, int]:
    return {'x': 200 + (index % GRID_COLUMNS) * 300, 'y': 100 + (index // GRID_COLUMNS) * 200}

def map_provider_type(provider_type: Any, is_start: bool = False) -> str:
    """Editor type for a provider or legacy node type"""
    if is_start and provider_type in (None, "Default", "greeting"):
        return NodeKind.GREETING.value
    if isinstance(provider_type, str) and NodeKind.from_editor_type(provider_type):
        return provider_type
    kind = PROVIDER_TYPE_KINDS.get(provider_type, NodeKind.RESPONSE)
    return kind.value

def _node_text(raw: Dict[str, Any], data: Dict[str, Any], node_id: str) -> str:
    for candidate in (raw.get('message'), raw.get('text'), data.get('text'), data.get('prompt')):
        if isinstance(candidate, str) and candidate:
            return candidate
    return f"Node {node_id}"

def convert_pathway_node(raw: Dict[str, Any], index: int) -> Dict[str, Any]:
    node_id = raw.get('id') if isinstance(raw.get('id'), str) and raw.get('id') else f"node-{index}"
    data = dict(raw['data']) if isinstance(raw.get('data'), dict) else {}
    is_start = data.get('isStart') is True or raw.get('isStart') is True
    data['text'] = _node_text(raw, data, node_id)
    position = raw.get('position') if isinstance(raw.get('position'), dict) else grid_position(index)
    return {
        'id': node_id,
        'type': map_provider_type(raw.get('type'), is_start),
        'position': position,
        'data': data,
    }

def convert_pathway_edge(raw: Dict[str, Any]) -> Dict[str, Any]:
    edge = {
        'id': raw.get('id') or f"{raw.get('source')}-{raw.get('target')}",
        'source': raw.get('source'),
        'target': raw.get('target'),
        'type': "default",
    }
    data = raw.get('data') if isinstance(raw.get('data'), dict) else {}
    label = raw.get('label') or data.get('label')
    if label:
        edge['data'] = {'label': label}
    return edge

def _next_edges(source_id: str, next_value: Any) -> List[Dict[str, Any]]:
    if isinstance(next_value, str):
        return [{'id': f"{source_id}-{next_value}", 'source': source_id, 'target': next_value, 'type': "default"}]
    if isinstance(next_value, list):
        return [
            {'id': f"{source_id}-{target}-{i}", 'source': source_id, 'target': target, 'type': "default"}
            for i, target in enumerate(next_value) if isinstance(target, str)
        ]
    return []

def _convert_pathway_mapping(pathway: Dict[str, Any]) -> Tuple[List[Dict], List[Dict]]:
    nodes, edges = [], []
    for index, (node_id, node_data) in enumerate(pathway.items()):
        if not isinstance(node_data, dict):
            continue
        nodes.append(convert_pathway_node({**node_data, 'id': node_id}, index))
        edges.extend(_next_edges(node_id, node_data.get('next')))
    return nodes, edges

def _convert_node_list(raw_nodes: List[Any]) -> Tuple[List[Dict], List[Dict]]:
    nodes, edges = [], []
    for index, raw in enumerate(n for n in raw_nodes if isinstance(n, dict) and 'globalConfig' not in n):
        node = convert_pathway_node(raw, index)
        nodes.append(node)
        edges.extend(_next_edges(node['id'], raw.get('next')))
    return nodes, edges

def convert_pathway_to_flowchart(pathway_data: Any) -> Dict[str, Any]:
    """
    Convert provider pathway data into editor {nodes, edges}.

    Accepts a {nodes, edges} document, a legacy {pathway: {id: node}} mapping,
    or a bare list of nodes linked through their "next" field.
    """
    nodes: List[Dict[str, Any]] = []
    edges: List[Dict[str, Any]] = []

    if isinstance(pathway_data, dict) and isinstance(pathway_data.get('pathway'), dict):
        nodes, edges = _convert_pathway_mapping(pathway_data['pathway'])
    elif isinstance(pathway_data, dict) and isinstance(pathway_data.get('nodes'), list):
        nodes, edges = _convert_node_list(pathway_data['nodes'])
        edges.extend(
            convert_pathway_edge(edge) for edge in pathway_data.get('edges') or []
            if isinstance(edge, dict)
        )
    elif isinstance(pathway_data, list):
        nodes, edges = _convert_node_list(pathway_data)
    else:
        logger.warning("Unrecognized pathway data, returning an empty flowchart")

    flowchart: Dict[str, Any] = {'nodes': nodes, 'edges': edges}
    if isinstance(pathway_data, dict):
        for key in ('name', 'description'):
            if isinstance(pathway_data.get(key), str):
                flowchart[key] = pathway_data[key]
    logger.info(f"Imported pathway: {len(nodes)} nodes, {len(edges)} edges")
    return flowchart
