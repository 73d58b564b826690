"""Pytest configuration and fixtures."""
import pytest

from flowchart_model import flowchart_from_dict


def make_node(node_id, node_type, **data):
    return {'id': node_id, 'type': node_type, 'position': {'x': 0, 'y': 0}, 'data': data}


def make_edge(edge_id, source, target, **extra):
    return {'id': edge_id, 'source': source, 'target': target, **extra}


@pytest.fixture
def dirty_id_flowchart():
    """Two nodes whose ids need sanitizing, joined by one unlabeled edge."""
    return {
        'nodes': [
            make_node("start!", "greetingNode", text="Hi"),
            make_node("end#1", "endCallNode", text="Bye"),
        ],
        'edges': [make_edge("e-1", "start!", "end#1")],
    }


@pytest.fixture
def conditional_flowchart():
    """Greeting, an Age conditional and two branch targets."""
    return {
        'nodes': [
            make_node("g", "greetingNode", text="Hello"),
            make_node("c", "conditionalNode", condition="if (Age <= 65) {...}"),
            make_node("y", "responseNode", text="Young"),
            make_node("o", "responseNode", text="Old"),
        ],
        'edges': [
            make_edge("e1", "g", "c"),
            make_edge("e2", "c", "y", sourceHandle="true"),
            make_edge("e3", "c", "o", sourceHandle="false"),
        ],
    }


@pytest.fixture
def support_flowchart():
    """Customer response branching into transfer and webhook nodes."""
    return {
        'name': "Support",
        'nodes': [
            make_node("welcome", "greetingNode", text="Welcome to support"),
            make_node("choice", "customerResponseNode",
                      options=["Billing", "Technical"], variableName="issue_type"),
            make_node("billing", "transferNode", text="Transferring", transferNumber="(978) 783-6427"),
            make_node("tech", "webhookNode", text="Opening a ticket",
                      url="https://example.com/tickets", method="post"),
            make_node("bye", "endCallNode", prompt="Goodbye!"),
        ],
        'edges': [
            make_edge("e1", "welcome", "choice"),
            make_edge("e2", "choice", "billing", sourceHandle="response-0"),
            make_edge("e3", "choice", "tech", sourceHandle="response-1"),
            make_edge("e4", "tech", "bye"),
        ],
    }


@pytest.fixture
def conditional_graph(conditional_flowchart):
    return flowchart_from_dict(conditional_flowchart)


@pytest.fixture
def support_graph(support_flowchart):
    return flowchart_from_dict(support_flowchart)
