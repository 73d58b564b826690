"""
Start node selection

Exactly one node of a pathway is the conversation entry point. Candidates
are chosen by an ordered list of rules; the first rule that matches any
node wins and the first matching node in source order is selected.
"""
import re
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from flowchart_model import GraphNode, NodeKind
from variable_collector import ExtractedVariable

logger = logging.getLogger(__name__)

START_NODE_NAME = "Start"
DEFAULT_NODE_TYPE = "Default"

START_MODEL_OPTIONS = {
    'isSMSReturnNode': False,
    'skipUserResponse': False,
    'disableEndCallTool': False,
    'block_interruptions': False,
    'disableSilenceRepeat': False,
}

GREETING_PATTERN = re.compile(r'\b(hello|hi|hey|welcome|greet\w*|thanks? (you )?for calling)\b', re.IGNORECASE)

def is_greeting_node(node: GraphNode) -> bool:
    return node.kind is NodeKind.GREETING

def is_labeled_start(node: GraphNode) -> bool:
    return node.data.label == START_NODE_NAME or node.data.name == START_NODE_NAME

def is_any_node(node: GraphNode) -> bool:
    return True

START_NODE_RULES: List[Tuple[str, Callable[[GraphNode], bool]]] = [
    ('greeting node', is_greeting_node),
    ('node labeled Start', is_labeled_start),
    ('first node', is_any_node),
]

def select_start_node(nodes: Sequence[GraphNode]) -> Optional[GraphNode]:
    """Pick the entry node; None only for an empty collection"""
    for rule_name, rule in START_NODE_RULES:
        for node in nodes:
            if rule(node):
                logger.info(f"Start node '{node.id}' selected by rule: {rule_name}")
                return node
    return None

def _mentions_greeting(text: Any) -> bool:
    return isinstance(text, str) and bool(GREETING_PATTERN.search(text))

def is_start_output_node(node: Dict[str, Any]) -> bool:
    return isinstance(node.get('data'), dict) and node['data'].get('isStart') is True

def _is_output_node(node: Dict[str, Any]) -> bool:
    return 'globalConfig' not in node and isinstance(node.get('data'), dict)

def promote_to_start(node: Dict[str, Any], variables: Sequence[ExtractedVariable]) -> Dict[str, Any]:
    """Copy of an output node configured as the pathway entry point"""
    data = dict(node['data'])
    data['name'] = START_NODE_NAME
    data['isStart'] = True
    data['modelOptions'] = {**data.get('modelOptions', {}), **START_MODEL_OPTIONS}
    data['extractVars'] = [variable.as_extract_var() for variable in variables]
    data['extractVarSettings'] = {
        variable.name: {'type': variable.type, 'required': variable.required}
        for variable in variables
    }
    return {**node, 'data': data}

def demote_from_start(node: Dict[str, Any]) -> Dict[str, Any]:
    data = {k: v for k, v in node['data'].items() if k not in ('extractVars', 'extractVarSettings')}
    data['isStart'] = False
    return {**node, 'data': data}

def mark_start_node(nodes: Sequence[Dict[str, Any]], start_id: Optional[str],
                    variables: Sequence[ExtractedVariable]) -> List[Dict[str, Any]]:
    """Flag start_id as the entry node and every other node as non-start"""
    marked = []
    for node in nodes:
        if not _is_output_node(node):
            marked.append(node)
        elif node.get('id') == start_id:
            marked.append(promote_to_start(node, variables))
        else:
            marked.append(demote_from_start(node))
    return marked

def enforce_single_start(nodes: Sequence[Dict[str, Any]],
                         variables: Sequence[ExtractedVariable]) -> List[Dict[str, Any]]:
    """Guarantee that exactly one output node carries isStart"""
    result = list(nodes)
    flagged = [i for i, node in enumerate(result) if _is_output_node(node) and is_start_output_node(node)]

    if not flagged:
        candidates = [i for i, node in enumerate(result) if _is_output_node(node)]
        if not candidates:
            return result
        greeting = [
            i for i in candidates
            if result[i].get('type') == DEFAULT_NODE_TYPE and _mentions_greeting(result[i]['data'].get('text'))
        ]
        chosen = greeting[0] if greeting else candidates[0]
        logger.warning(f"No start node flagged, falling back to '{result[chosen].get('id')}'")
        result[chosen] = promote_to_start(result[chosen], variables)
        return result

    if len(flagged) > 1:
        logger.warning(f"{len(flagged)} start nodes flagged, keeping '{result[flagged[0]].get('id')}'")
        for i in flagged[1:]:
            result[i] = demote_from_start(result[i])

    return result
