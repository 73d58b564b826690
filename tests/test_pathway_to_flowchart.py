"""Tests for importing provider pathways back into the editor."""
from pathway_assembler import convert_flowchart_to_pathway
from pathway_to_flowchart import convert_pathway_to_flowchart, grid_position, map_provider_type


class TestMapProviderType:
    def test_provider_types(self):
        assert map_provider_type("End Call") == "endCallNode"
        assert map_provider_type("Transfer Call") == "transferNode"
        assert map_provider_type("Webhook") == "webhookNode"
        assert map_provider_type("Default") == "responseNode"

    def test_start_default_becomes_greeting(self):
        assert map_provider_type("Default", is_start=True) == "greetingNode"

    def test_legacy_and_editor_types(self):
        assert map_provider_type("customer-response") == "customerResponseNode"
        assert map_provider_type("questionNode") == "questionNode"
        assert map_provider_type("Knowledge Base") == "responseNode"


class TestConvertPathwayToFlowchart:
    def test_compiled_pathway_round_trip(self, support_flowchart):
        pathway = convert_flowchart_to_pathway(support_flowchart)
        flowchart = convert_pathway_to_flowchart(pathway)
        assert [node['id'] for node in flowchart['nodes']] == ["welcome", "choice", "billing", "tech", "bye"]
        assert flowchart['nodes'][0]['type'] == "greetingNode"
        assert flowchart['nodes'][-1]['data']['text'] == "Goodbye!"
        labels = [edge['data']['label'] for edge in flowchart['edges']]
        assert labels == ["next", "Billing", "Technical", "next"]
        assert flowchart['name'] == "Support"

    def test_legacy_mapping(self):
        flowchart = convert_pathway_to_flowchart({'pathway': {
            'a': {'type': "greeting", 'message': "Hi", 'next': "b", 'isStart': True},
            'b': {'type': "end-call", 'message': "Bye"},
        }})
        assert [(n['id'], n['type']) for n in flowchart['nodes']] == [("a", "greetingNode"), ("b", "endCallNode")]
        assert flowchart['nodes'][0]['data']['text'] == "Hi"
        assert flowchart['edges'] == [{'id': "a-b", 'source': "a", 'target': "b", 'type': "default"}]

    def test_node_list_with_next_lists(self):
        flowchart = convert_pathway_to_flowchart([
            {'id': "a", 'type': "Default", 'data': {'text': "Hi"}, 'next': ["b", "c"]},
            {'type': "Default"},
        ])
        assert [e['target'] for e in flowchart['edges']] == ["b", "c"]
        assert flowchart['nodes'][1]['id'] == "node-1"
        assert flowchart['nodes'][1]['data']['text'] == "Node node-1"
        assert flowchart['nodes'][1]['position'] == grid_position(1)

    def test_unrecognized_input(self):
        assert convert_pathway_to_flowchart("nope") == {'nodes': [], 'edges': []}
