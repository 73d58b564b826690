"""
Flowchart graph model for the pathway editor
Node kinds, per-kind data payloads and the conversion from editor JSON
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

class NodeKind(Enum):
    """Node kinds offered by the flowchart editor"""
    GREETING = "greetingNode"
    QUESTION = "questionNode"
    RESPONSE = "responseNode"
    CUSTOMER_RESPONSE = "customerResponseNode"
    TRANSFER = "transferNode"
    END_CALL = "endCallNode"
    WEBHOOK = "webhookNode"
    CONDITIONAL = "conditionalNode"
    FACEBOOK_LEAD = "facebookLeadNode"
    GOOGLE_LEAD = "googleLeadNode"
    ZAPIER = "zapierNode"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_editor_type(cls, value: Any) -> Optional['NodeKind']:
        """Look up a kind by its editor type string"""
        for kind in cls:
            if kind.value == value:
                return kind
        return None

_DISPLAY_NAMES = {
    NodeKind.GREETING: "Greeting",
    NodeKind.QUESTION: "Question",
    NodeKind.RESPONSE: "Response",
    NodeKind.CUSTOMER_RESPONSE: "Customer Response",
    NodeKind.TRANSFER: "Transfer",
    NodeKind.END_CALL: "End Call",
    NodeKind.WEBHOOK: "Webhook",
    NodeKind.CONDITIONAL: "Conditional",
    NodeKind.FACEBOOK_LEAD: "Facebook Lead",
    NodeKind.GOOGLE_LEAD: "Google Lead",
    NodeKind.ZAPIER: "Zapier",
}

@dataclass
class NodeData:
    """Fields shared by every node kind"""
    text: str = ""
    name: Optional[str] = None
    label: Optional[str] = None
    title: Optional[str] = None
    is_start: bool = False
    temperature: Optional[float] = None
    extract_variables: List[str] = field(default_factory=list)

@dataclass
class GreetingData(NodeData):
    pass

@dataclass
class QuestionData(NodeData):
    pass

@dataclass
class ResponseData(NodeData):
    pass

@dataclass
class CustomerResponseData(NodeData):
    options: List[str] = field(default_factory=list)
    variable_name: Optional[str] = None
    is_open_ended: bool = False

@dataclass
class TransferData(NodeData):
    transfer_number: Optional[str] = None
    transfer_type: str = "cold"

@dataclass
class EndCallData(NodeData):
    prompt: Optional[str] = None

@dataclass
class WebhookData(NodeData):
    url: Optional[str] = None
    method: Optional[str] = None
    body: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

@dataclass
class ConditionalData(NodeData):
    condition: str = ""

    @property
    def expression(self) -> str:
        """Condition text, falling back to the node text"""
        return self.condition or self.text

@dataclass
class LeadData(NodeData):
    """Lead-capture integrations (Facebook, Google, Zapier)"""
    url: Optional[str] = None

@dataclass
class GraphNode:
    """A node as placed on the editor canvas"""
    id: str
    kind: NodeKind
    data: NodeData
    position: Tuple[float, float] = (0.0, 0.0)

    @property
    def display_name(self) -> str:
        return self.data.name or self.data.label or self.data.title or self.kind.display_name

@dataclass
class GraphEdge:
    """A directed connection between two canvas nodes"""
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    label: Optional[str] = None
    data_label: Optional[str] = None

@dataclass
class Flowchart:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    name: Optional[str] = None
    description: Optional[str] = None

    def node_map(self) -> Dict[str, GraphNode]:
        return {node.id: node for node in self.nodes}

def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None

def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []

def _str_list(values: Any) -> List[str]:
    return [v.strip() for v in _as_list(values) if isinstance(v, str) and v.strip()]

def _explicit_variable_names(raw: Dict[str, Any]) -> List[str]:
    """Variable names from extractVariables, variables[] and extractVars tuples"""
    names = _str_list(raw.get('extractVariables'))
    for variable in _as_list(raw.get('variables')):
        if isinstance(variable, dict):
            names.extend(_str_list([variable.get('name')]))
    for entry in _as_list(raw.get('extractVars')):
        if isinstance(entry, (list, tuple)) and entry:
            names.extend(_str_list([entry[0]]))
    return names

def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)

def _common_fields(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'text': raw.get('text') if isinstance(raw.get('text'), str) else "",
        'name': _optional_str(raw.get('name') or raw.get('nodeTitle') or raw.get('nodeName')),
        'label': _optional_str(raw.get('label')),
        'title': _optional_str(raw.get('title')),
        'is_start': raw.get('isStart') is True,
        'temperature': _number(raw.get('temperature')),
        'extract_variables': _explicit_variable_names(raw),
    }

def _greeting_data(raw: Dict[str, Any]) -> GreetingData:
    return GreetingData(**_common_fields(raw))

def _question_data(raw: Dict[str, Any]) -> QuestionData:
    return QuestionData(**_common_fields(raw))

def _response_data(raw: Dict[str, Any]) -> ResponseData:
    return ResponseData(**_common_fields(raw))

def _positional_options(values: Any) -> List[str]:
    """Option texts by position, blank entries kept as empty strings"""
    return [v.strip() if isinstance(v, str) else "" for v in _as_list(values)]

def _customer_response_data(raw: Dict[str, Any]) -> CustomerResponseData:
    candidates = [_positional_options(raw.get(key)) for key in ('options', 'responses', 'expectedResponses')]
    options = next((o for o in candidates if any(o)), next((o for o in candidates if o), []))
    return CustomerResponseData(
        options=options,
        variable_name=_optional_str(raw.get('variableName')),
        is_open_ended=raw.get('isOpenEnded') is True,
        **_common_fields(raw)
    )

def _transfer_data(raw: Dict[str, Any]) -> TransferData:
    return TransferData(
        transfer_number=_optional_str(raw.get('transferNumber')) or _optional_str(raw.get('phoneNumber')),
        transfer_type=raw.get('transferType') if raw.get('transferType') in ('warm', 'cold') else 'cold',
        **_common_fields(raw)
    )

def _end_call_data(raw: Dict[str, Any]) -> EndCallData:
    return EndCallData(prompt=_optional_str(raw.get('prompt')), **_common_fields(raw))

def _webhook_data(raw: Dict[str, Any]) -> WebhookData:
    headers = raw.get('headers')
    return WebhookData(
        url=_optional_str(raw.get('url')),
        method=_optional_str(raw.get('method')),
        body=_optional_str(raw.get('body')),
        headers={str(k): str(v) for k, v in headers.items()} if isinstance(headers, dict) else {},
        **_common_fields(raw)
    )

def _conditional_data(raw: Dict[str, Any]) -> ConditionalData:
    condition = raw.get('condition')
    return ConditionalData(condition=condition if isinstance(condition, str) else "", **_common_fields(raw))

def _lead_data(raw: Dict[str, Any]) -> LeadData:
    return LeadData(url=_optional_str(raw.get('url') or raw.get('webhookUrl')), **_common_fields(raw))

_DATA_PARSERS: Dict[NodeKind, Callable[[Dict[str, Any]], NodeData]] = {
    NodeKind.GREETING: _greeting_data,
    NodeKind.QUESTION: _question_data,
    NodeKind.RESPONSE: _response_data,
    NodeKind.CUSTOMER_RESPONSE: _customer_response_data,
    NodeKind.TRANSFER: _transfer_data,
    NodeKind.END_CALL: _end_call_data,
    NodeKind.WEBHOOK: _webhook_data,
    NodeKind.CONDITIONAL: _conditional_data,
    NodeKind.FACEBOOK_LEAD: _lead_data,
    NodeKind.GOOGLE_LEAD: _lead_data,
    NodeKind.ZAPIER: _lead_data,
}

def node_from_dict(raw: Any) -> Optional[GraphNode]:
    """Convert one editor node; None when it has no usable id"""
    if not isinstance(raw, dict) or not isinstance(raw.get('id'), str) or not raw['id']:
        logger.warning(f"Skipping node without a string id: {raw!r}")
        return None

    kind = NodeKind.from_editor_type(raw.get('type'))
    if kind is None:
        logger.info(f"Node {raw['id']}: unknown type {raw.get('type')!r}, treating as response")
        kind = NodeKind.RESPONSE

    data = raw.get('data') if isinstance(raw.get('data'), dict) else {}
    position = raw.get('position') if isinstance(raw.get('position'), dict) else {}
    return GraphNode(
        id=raw['id'],
        kind=kind,
        data=_DATA_PARSERS[kind](data),
        position=(_number(position.get('x')) or 0.0, _number(position.get('y')) or 0.0)
    )

def edge_from_dict(raw: Any) -> Optional[GraphEdge]:
    """Convert one editor edge; None when id, source or target is missing"""
    if not isinstance(raw, dict):
        logger.warning(f"Skipping malformed edge: {raw!r}")
        return None
    for key in ('id', 'source', 'target'):
        if not isinstance(raw.get(key), str) or not raw[key]:
            logger.warning(f"Skipping edge without a string {key}: {raw!r}")
            return None

    data = raw.get('data') if isinstance(raw.get('data'), dict) else {}
    return GraphEdge(
        id=raw['id'],
        source=raw['source'],
        target=raw['target'],
        source_handle=_optional_str(raw.get('sourceHandle')),
        target_handle=_optional_str(raw.get('targetHandle')),
        label=_optional_str(raw.get('label')),
        data_label=_optional_str(data.get('label'))
    )

def flowchart_from_dict(raw: Dict[str, Any]) -> Flowchart:
    """Convert editor JSON into the graph model, dropping unusable entries"""
    nodes = [node for node in map(node_from_dict, raw.get('nodes') or []) if node]
    edges = [edge for edge in map(edge_from_dict, raw.get('edges') or []) if edge]
    return Flowchart(
        nodes=nodes,
        edges=edges,
        name=_optional_str(raw.get('name')),
        description=_optional_str(raw.get('description'))
    )

def initial_flowchart() -> Dict[str, Any]:
    """Starting canvas for a new pathway"""
    return {
        'nodes': [{
            'id': "start-greeting-node",
            'type': NodeKind.GREETING.value,
            'position': {'x': 250, 'y': 100},
            'data': {
                'text': "Hello! Thank you for calling. How can I help you today?",
                'isStart': True,
                'isDefault': True,
                'temperature': 0.2,
                'skipUserResponse': False,
                'disableRepeatOnSilence': False,
                'enableSmsReturnNode': False,
                'disableEndCallTool': False,
                'isGlobal': False,
                'globalLabel': "",
                'variables': [],
            },
            'deletable': False,
        }],
        'edges': [],
    }
