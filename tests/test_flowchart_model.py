"""Tests for the flowchart graph model."""
from flowchart_model import (
    ConditionalData, CustomerResponseData, EndCallData, GreetingData, LeadData, NodeKind,
    ResponseData, TransferData, WebhookData, edge_from_dict, flowchart_from_dict,
    initial_flowchart, node_from_dict
)


class TestNodeKind:
    def test_from_editor_type(self):
        assert NodeKind.from_editor_type("greetingNode") is NodeKind.GREETING
        assert NodeKind.from_editor_type("zapierNode") is NodeKind.ZAPIER

    def test_unknown_editor_type(self):
        assert NodeKind.from_editor_type("mysteryNode") is None
        assert NodeKind.from_editor_type(None) is None

    def test_display_names(self):
        assert NodeKind.END_CALL.display_name == "End Call"
        assert NodeKind.CUSTOMER_RESPONSE.display_name == "Customer Response"


class TestNodeFromDict:
    def test_greeting_collects_explicit_variables(self):
        node = node_from_dict({
            'id': "g",
            'type': "greetingNode",
            'data': {
                'text': "Hi",
                'extractVariables': ["Name"],
                'variables': [{'name': "Zip"}],
                'extractVars': [["Email", "string", "desc", False]],
            },
        })
        assert isinstance(node.data, GreetingData)
        assert node.data.extract_variables == ["Name", "Zip", "Email"]

    def test_malformed_variable_lists_are_ignored(self):
        node = node_from_dict({'id': "g", 'type': "greetingNode", 'data': {'variables': "Age", 'extractVars': 3}})
        assert node.data.extract_variables == []

    def test_missing_id_returns_none(self):
        assert node_from_dict({'type': "greetingNode"}) is None
        assert node_from_dict({'id': 7, 'type': "greetingNode"}) is None
        assert node_from_dict("not a node") is None

    def test_unknown_type_becomes_response(self):
        node = node_from_dict({'id': "x", 'type': "mysteryNode", 'data': {'text': "?"}})
        assert node.kind is NodeKind.RESPONSE
        assert isinstance(node.data, ResponseData)

    def test_customer_response_options(self):
        node = node_from_dict({
            'id': "c", 'type': "customerResponseNode",
            'data': {'responses': ["Yes", " No ", ""], 'variableName': "answer"},
        })
        assert isinstance(node.data, CustomerResponseData)
        assert node.data.options == ["Yes", "No", ""]
        assert node.data.variable_name == "answer"

    def test_blank_options_keep_their_position(self):
        node = node_from_dict({'id': "c", 'type': "customerResponseNode", 'data': {'options': ["Yes", "", "Maybe"]}})
        assert node.data.options == ["Yes", "", "Maybe"]

    def test_node_title_is_the_name(self):
        node = node_from_dict({'id': "e", 'type': "endCallNode", 'data': {'nodeTitle': "Say goodbye"}})
        assert node.data.name == "Say goodbye"
        assert node.display_name == "Say goodbye"

    def test_every_kind_reads_explicit_variables(self):
        node = node_from_dict({'id': "q", 'type': "questionNode", 'data': {'extractVariables': ["Email"]}})
        assert node.data.extract_variables == ["Email"]

    def test_transfer_number_falls_back_to_phone_number(self):
        node = node_from_dict({'id': "t", 'type': "transferNode", 'data': {'phoneNumber': "5551234567"}})
        assert isinstance(node.data, TransferData)
        assert node.data.transfer_number == "5551234567"
        assert node.data.transfer_type == "cold"

    def test_end_call_prompt(self):
        node = node_from_dict({'id': "e", 'type': "endCallNode", 'data': {'prompt': "Bye"}})
        assert isinstance(node.data, EndCallData)
        assert node.data.prompt == "Bye"

    def test_webhook_fields(self):
        node = node_from_dict({
            'id': "w", 'type': "webhookNode",
            'data': {'url': "https://x.test", 'method': "get", 'headers': {'X-Key': 1}},
        })
        assert isinstance(node.data, WebhookData)
        assert node.data.headers == {'X-Key': "1"}

    def test_conditional_expression_falls_back_to_text(self):
        node = node_from_dict({'id': "c", 'type': "conditionalNode", 'data': {'text': "if (Age > 1)"}})
        assert isinstance(node.data, ConditionalData)
        assert node.data.expression == "if (Age > 1)"

    def test_lead_nodes(self):
        node = node_from_dict({'id': "f", 'type': "facebookLeadNode", 'data': {'webhookUrl': "https://x.test"}})
        assert isinstance(node.data, LeadData)
        assert node.data.url == "https://x.test"

    def test_display_name_order(self):
        node = node_from_dict({'id': "q", 'type': "questionNode", 'data': {'label': "Ask", 'title': "T"}})
        assert node.display_name == "Ask"
        node = node_from_dict({'id': "q", 'type': "questionNode", 'data': {}})
        assert node.display_name == "Question"

    def test_position_and_temperature(self):
        node = node_from_dict({
            'id': "r", 'type': "responseNode",
            'position': {'x': 10, 'y': "bad"}, 'data': {'temperature': 0.7},
        })
        assert node.position == (10.0, 0.0)
        assert node.data.temperature == 0.7


class TestEdgeFromDict:
    def test_edge_fields(self):
        edge = edge_from_dict({
            'id': "e", 'source': "a", 'target': "b",
            'sourceHandle': "true", 'label': "go", 'data': {'label': "Yes"},
        })
        assert edge.source_handle == "true"
        assert edge.label == "go"
        assert edge.data_label == "Yes"

    def test_missing_endpoint(self):
        assert edge_from_dict({'id': "e", 'source': "a"}) is None
        assert edge_from_dict({'source': "a", 'target': "b"}) is None


class TestFlowchartFromDict:
    def test_drops_unusable_entries(self):
        graph = flowchart_from_dict({
            'name': "Demo",
            'nodes': [{'id': "a", 'type': "greetingNode"}, {'type': "responseNode"}],
            'edges': [{'id': "e", 'source': "a"}],
        })
        assert [node.id for node in graph.nodes] == ["a"]
        assert graph.edges == []
        assert graph.name == "Demo"

    def test_initial_flowchart(self):
        graph = flowchart_from_dict(initial_flowchart())
        assert len(graph.nodes) == 1
        assert graph.nodes[0].kind is NodeKind.GREETING
        assert graph.nodes[0].data.is_start is True
