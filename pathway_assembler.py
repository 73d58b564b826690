"""
Pathway assembler: compiles an editor flowchart into a Bland.ai pathway.

Runs the compilation stages in order (id sanitizing, start node selection,
variable collection, conditional parsing, edge rewriting) and then makes
sure the result is deployable: a Default node, an End Call node, a
connecting edge and exactly one start node are always present.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from flowchart_model import (
    EndCallData, Flowchart, GraphNode, NodeKind, TransferData, WebhookData,
    flowchart_from_dict
)
from flowchart_validator import invalid_flowchart_result, validate_flowchart
from id_sanitizer import sanitize_flowchart
from condition_parser import parse_condition
from variable_collector import collect_variables
from start_node_selector import enforce_single_start, mark_start_node, select_start_node
from edge_rewriter import DEFAULT_EDGE_LABEL, conditional_edge_id, rewrite_edges
from phone_utils import to_e164_format

logger = logging.getLogger(__name__)

DEFAULT_TYPE = "Default"
END_CALL_TYPE = "End Call"
TRANSFER_TYPE = "Transfer Call"
WEBHOOK_TYPE = "Webhook"

PROVIDER_NODE_TYPES = {
    NodeKind.GREETING: DEFAULT_TYPE,
    NodeKind.QUESTION: DEFAULT_TYPE,
    NodeKind.CUSTOMER_RESPONSE: DEFAULT_TYPE,
    NodeKind.END_CALL: END_CALL_TYPE,
    NodeKind.TRANSFER: TRANSFER_TYPE,
    NodeKind.WEBHOOK: WEBHOOK_TYPE,
}

SYNTHESIZED_START_ID = "default_start_node"
SYNTHESIZED_END_ID = "default_end_call_node"

DEFAULT_CONFIG = {
    'defaultText': "Default message",
    'defaultGreeting': "Hello! Thank you for calling. How can I help you today?",
    'defaultGoodbye': "Thank you for calling. Goodbye!",
    'defaultTransferNumber': "+1234567890",
    'defaultWebhookUrl': "https://example.com/webhook",
    'defaultWebhookMethod': "POST",
    'defaultTemperature': 0.2,
    'seedVariables': ["Age"],
    'globalPrompt': "",
}

def provider_node_type(kind: NodeKind) -> str:
    return PROVIDER_NODE_TYPES.get(kind, DEFAULT_TYPE)

def global_config_node(global_prompt: str = "") -> Dict[str, Any]:
    return {'globalConfig': {'globalPrompt': global_prompt}}

class PathwayAssembler:
    """Builds provider pathways from the flowchart graph model"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = dict(DEFAULT_CONFIG)
        if config:
            self.config.update(config)

    def assemble(self, flowchart: Flowchart, name: Optional[str] = None,
                 description: Optional[str] = None) -> Dict[str, Any]:
        """Compile a flowchart; incomplete graphs degrade to a minimal pathway"""
        graph, _ = sanitize_flowchart(flowchart)
        nodes_by_id = graph.node_map()

        conditionals = [node for node in graph.nodes if node.kind is NodeKind.CONDITIONAL]
        candidates = [node for node in graph.nodes if node.kind is not NodeKind.CONDITIONAL]

        start = select_start_node(candidates)
        start_id = start.id if start else None
        variables = collect_variables(graph.nodes, start_id, self.config.get('seedVariables') or [])

        output_nodes = [self._build_node(node) for node in candidates]
        taken_ids = set(nodes_by_id)

        if not any(node['type'] == DEFAULT_TYPE for node in output_nodes):
            greeting = self._synthesize_default(self._free_id(SYNTHESIZED_START_ID, taken_ids))
            output_nodes.insert(0, greeting)
            logger.info(f"No Default node in flowchart, added '{greeting['id']}'")
            if start_id is None:
                start_id = greeting['id']

        conditions = {node.id: parse_condition(node.data.expression) for node in conditionals}
        for node_id, condition in conditions.items():
            if condition is None:
                logger.warning(f"Conditional node '{node_id}' has no parseable condition, branches use plain labels")

        output_ids = {node['id'] for node in output_nodes}
        edges = rewrite_edges(graph.edges, nodes_by_id, output_ids, start_id, conditions)

        if not any(node['type'] == END_CALL_TYPE for node in output_nodes):
            end_call = self._synthesize_end_call(self._free_id(SYNTHESIZED_END_ID, taken_ids))
            output_nodes.append(end_call)
            logger.info(f"No End Call node in flowchart, added '{end_call['id']}'")

        if not edges and len(output_nodes) >= 2:
            edges.append(self._connecting_edge(output_nodes))

        output_nodes = mark_start_node(output_nodes, start_id, variables)
        output_nodes = enforce_single_start(output_nodes, variables)
        output_nodes.append(global_config_node(self.config.get('globalPrompt', "")))

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        pathway = {
            'name': name or flowchart.name or f"Pathway {timestamp}",
            'description': description or flowchart.description or f"Generated pathway {timestamp}",
            'nodes': output_nodes,
            'edges': edges,
        }
        logger.info(f"Compiled pathway '{pathway['name']}': {len(output_nodes) - 1} nodes, {len(edges)} edges")
        return pathway

    def _build_node(self, node: GraphNode) -> Dict[str, Any]:
        """Provider node for one graph node; isStart is settled later"""
        node_type = provider_node_type(node.kind)
        data: Dict[str, Any] = {'name': node.display_name, 'isStart': False}

        if node_type == END_CALL_TYPE:
            prompt = node.data.prompt if isinstance(node.data, EndCallData) else None
            data['prompt'] = prompt or node.data.text or self.config['defaultGoodbye']
        else:
            data['text'] = node.data.text or self.config['defaultText']

        if node_type == TRANSFER_TYPE:
            number = node.data.transfer_number if isinstance(node.data, TransferData) else None
            e164 = to_e164_format(number) if number else ""
            # "+" alone means the number had no digits
            data['transferNumber'] = e164 if len(e164) > 1 else self.config['defaultTransferNumber']
        elif node_type == WEBHOOK_TYPE and isinstance(node.data, WebhookData):
            data['url'] = node.data.url or self.config['defaultWebhookUrl']
            data['method'] = (node.data.method or self.config['defaultWebhookMethod']).upper()
            if node.data.headers:
                data['headers'] = dict(node.data.headers)
            if node.data.body:
                data['body'] = node.data.body

        data['modelOptions'] = {'temperature': self._temperature(node)}
        return {'id': node.id, 'type': node_type, 'data': data}

    def _temperature(self, node: Optional[GraphNode] = None) -> float:
        if node is not None and node.data.temperature is not None:
            return node.data.temperature
        return self.config['defaultTemperature']

    def _synthesize_default(self, node_id: str) -> Dict[str, Any]:
        return {
            'id': node_id,
            'type': DEFAULT_TYPE,
            'data': {
                'name': "Greeting",
                'isStart': False,
                'text': self.config['defaultGreeting'],
                'modelOptions': {'temperature': self._temperature()},
            },
        }

    def _synthesize_end_call(self, node_id: str) -> Dict[str, Any]:
        return {
            'id': node_id,
            'type': END_CALL_TYPE,
            'data': {
                'name': "End Call",
                'isStart': False,
                'prompt': self.config['defaultGoodbye'],
                'modelOptions': {'temperature': self._temperature()},
            },
        }

    @staticmethod
    def _connecting_edge(nodes: List[Dict[str, Any]]) -> Dict[str, str]:
        source = next(node['id'] for node in nodes if node['type'] == DEFAULT_TYPE)
        target = next(node['id'] for node in nodes if node['type'] == END_CALL_TYPE)
        logger.info(f"No edges survived compilation, connecting '{source}' to '{target}'")
        return {
            'id': conditional_edge_id(source, DEFAULT_EDGE_LABEL, target),
            'source': source,
            'target': target,
            'label': DEFAULT_EDGE_LABEL,
        }

    @staticmethod
    def _free_id(base: str, taken: set) -> str:
        candidate = base
        suffix = 2
        while candidate in taken:
            candidate = f"{base}_{suffix}"
            suffix += 1
        taken.add(candidate)
        return candidate

def convert_flowchart_to_pathway(flowchart: Any, name: Optional[str] = None,
                                 description: Optional[str] = None,
                                 config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Compile editor flowchart JSON into a Bland.ai pathway document.

    Returns {name, description, nodes, edges}, or {isValid: False, issues}
    when the input is not an object with a node list.
    """
    validation = validate_flowchart(flowchart)
    if not validation.is_navigable:
        logger.error(f"Flowchart cannot be compiled: {validation.issues}")
        return invalid_flowchart_result(validation.issues)

    graph = flowchart_from_dict({
        'nodes': validation.nodes_with_fallbacks,
        'edges': validation.edges,
        'name': flowchart.get('name'),
        'description': flowchart.get('description'),
    })
    return PathwayAssembler(config).assemble(graph, name, description)
