"""
Conditional node parser
Extracts {variable, operator, value} from text such as "if (Age <= 65) { ... }"
"""
import re
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

CONDITION_PATTERN = re.compile(
    r'if\s*\(\s*([A-Za-z_]\w*)\s*(<=|>=|==|!=|<|>)\s*([^\s()]+)\s*\)',
    re.IGNORECASE
)

OPERATOR_INVERSES = {
    '<=': '>',
    '>': '<=',
    '<': '>=',
    '>=': '<',
    '==': '!=',
    '!=': '==',
}

FALLBACK_FALSE_LABEL = "Else"

def invert_operator(operator: str) -> Optional[str]:
    return OPERATOR_INVERSES.get(operator)

@dataclass(frozen=True)
class ParsedCondition:
    variable: str
    operator: str
    value: str

    @property
    def true_label(self) -> str:
        return f"{self.variable}{self.operator}{self.value}"

    @property
    def false_label(self) -> str:
        inverse = invert_operator(self.operator)
        if inverse is None:
            return FALLBACK_FALSE_LABEL
        return f"{self.variable}{inverse}{self.value}"

    def label_for(self, branch_handle: Optional[str]) -> str:
        """Edge label for the branch leaving through the given handle"""
        return self.true_label if branch_handle == "true" else self.false_label

def parse_condition(text: Optional[str]) -> Optional[ParsedCondition]:
    """Parse a conditional expression; None when the text does not match"""
    if not isinstance(text, str):
        return None
    match = CONDITION_PATTERN.search(text)
    if not match:
        logger.debug(f"No condition found in {text!r}")
        return None
    variable, operator, value = match.groups()
    return ParsedCondition(variable=variable, operator=operator, value=value)
