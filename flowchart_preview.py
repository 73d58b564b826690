"""
Mermaid preview of flowcharts and compiled pathways
"""
from typing import Any, Dict, List

from flowchart_model import NodeKind, flowchart_from_dict
from id_sanitizer import sanitize_flowchart, sanitize_id
from edge_rewriter import resolve_edge_label

MAX_NODE_TEXT = 60

def _node_text(text: str) -> str:
    text = ' '.join(text.split()).replace('"', "'")
    if len(text) > MAX_NODE_TEXT:
        text = text[:MAX_NODE_TEXT - 3] + "..."
    return text

def _edge_label(label: str) -> str:
    return label.replace('"', "'").replace('|', '/')

def _shape(node_id: str, text: str, shape: str) -> str:
    if shape == 'decision':
        return f'    {node_id}{{"{text}"}}'
    if shape == 'terminal':
        return f'    {node_id}(("{text}"))'
    if shape == 'start':
        return f'    {node_id}(["{text}"])'
    return f'    {node_id}["{text}"]'

def flowchart_to_mermaid(flowchart: Any) -> str:
    """Mermaid text for an editor flowchart (dict or Flowchart)"""
    if isinstance(flowchart, dict):
        flowchart = flowchart_from_dict(flowchart)
    graph, _ = sanitize_flowchart(flowchart)
    nodes = graph.node_map()

    lines: List[str] = ["flowchart TD"]
    for node in graph.nodes:
        if node.kind is NodeKind.CONDITIONAL:
            shape = 'decision'
            text = node.data.expression or node.display_name
        elif node.kind is NodeKind.END_CALL:
            shape = 'terminal'
            text = node.data.text or node.display_name
        else:
            shape = 'start' if node.kind is NodeKind.GREETING else 'process'
            text = node.data.text or node.display_name
        lines.append(_shape(node.id, _node_text(f"{node.kind.display_name}: {text}"), shape))

    for edge in graph.edges:
        label = resolve_edge_label(edge, nodes.get(edge.source))
        lines.append(f'    {edge.source} -->|"{_edge_label(label)}"| {edge.target}')

    return '\n'.join(lines)

def pathway_to_mermaid(pathway: Dict[str, Any]) -> str:
    """Mermaid text for a compiled provider pathway"""
    lines: List[str] = ["flowchart TD"]
    for node in pathway.get('nodes', []):
        if 'globalConfig' in node or not isinstance(node.get('data'), dict):
            continue
        data = node['data']
        text = data.get('text') or data.get('prompt') or ""
        label = _node_text(f"{data.get('name', node.get('type'))}: {text}")
        if data.get('isStart'):
            shape = 'start'
        elif node.get('type') == "End Call":
            shape = 'terminal'
        else:
            shape = 'process'
        lines.append(_shape(sanitize_id(str(node.get('id'))), label, shape))

    for edge in pathway.get('edges', []):
        lines.append(
            f'    {sanitize_id(str(edge.get("source")))} -->|"{_edge_label(str(edge.get("label", "")))}"| '
            f'{sanitize_id(str(edge.get("target")))}'
        )
    return '\n'.join(lines)
