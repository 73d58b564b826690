"""
Extraction variable collector

Walks the graph once and gathers every variable the pathway should extract:
the start node's explicit list, customer-response variables, response-node
extraction lists and the variables tested by conditional nodes.
"""
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence

from flowchart_model import (
    ConditionalData, CustomerResponseData, GraphNode, ResponseData
)
from condition_parser import parse_condition

logger = logging.getLogger(__name__)

# Extracted on every pathway
DEFAULT_SEED_VARIABLES = ("Age",)
INTEGER_VARIABLES = frozenset({"Age", "Zip"})

@dataclass(frozen=True)
class ExtractedVariable:
    name: str
    type: str
    description: str
    required: bool = False

    def as_extract_var(self) -> List[Any]:
        """Provider tuple form: [name, type, description, required]"""
        return [self.name, self.type, self.description, self.required]

def infer_variable_type(name: str) -> str:
    return "integer" if name in INTEGER_VARIABLES else "string"

def _start_node_variables(node: GraphNode) -> List[str]:
    """Explicit extraction list, read from the start node whatever its kind"""
    return list(node.data.extract_variables)

def _node_variables(node: GraphNode) -> List[str]:
    data = node.data
    if isinstance(data, CustomerResponseData) and data.variable_name:
        return [data.variable_name.strip()]
    if isinstance(data, ResponseData):
        return data.extract_variables
    if isinstance(data, ConditionalData):
        condition = parse_condition(data.expression)
        return [condition.variable] if condition else []
    return []

def collect_variable_names(nodes: Sequence[GraphNode],
                           start_node_id: Optional[str] = None,
                           seed: Iterable[str] = DEFAULT_SEED_VARIABLES) -> List[str]:
    """Unique variable names in discovery order, seed first"""
    names = dict.fromkeys(name for name in seed if name)
    for node in nodes:
        found = _node_variables(node)
        if node.id == start_node_id:
            found = _start_node_variables(node) + found
        for name in found:
            if name and name not in names:
                names[name] = None
    return list(names)

def collect_variables(nodes: Sequence[GraphNode],
                      start_node_id: Optional[str] = None,
                      seed: Iterable[str] = DEFAULT_SEED_VARIABLES) -> List[ExtractedVariable]:
    variables = [
        ExtractedVariable(
            name=name,
            type=infer_variable_type(name),
            description=f"Extract the caller's {name} from the conversation"
        )
        for name in collect_variable_names(nodes, start_node_id, seed)
    ]
    logger.debug(f"Collected extraction variables: {[v.name for v in variables]}")
    return variables
