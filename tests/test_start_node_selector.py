"""Tests for start node selection and the single-start guarantee."""
from flowchart_model import flowchart_from_dict
from start_node_selector import (
    START_MODEL_OPTIONS, START_NODE_NAME, enforce_single_start, mark_start_node, select_start_node
)
from variable_collector import ExtractedVariable


def graph(*nodes):
    return flowchart_from_dict({'nodes': list(nodes)}).nodes


def output_node(node_id, node_type="Default", text="Some text", is_start=False):
    return {'id': node_id, 'type': node_type, 'data': {'name': node_id, 'text': text, 'isStart': is_start}}


AGE = [ExtractedVariable("Age", "integer", "Extract the caller's Age from the conversation")]


class TestSelectStartNode:
    def test_greeting_wins(self):
        nodes = graph(
            {'id': "r", 'type': "responseNode", 'data': {'label': "Start"}},
            {'id': "g", 'type': "greetingNode"},
        )
        assert select_start_node(nodes).id == "g"

    def test_labeled_start(self):
        nodes = graph(
            {'id': "r1", 'type': "responseNode"},
            {'id': "r2", 'type': "responseNode", 'data': {'name': "Start"}},
        )
        assert select_start_node(nodes).id == "r2"

    def test_first_node(self):
        nodes = graph({'id': "q", 'type': "questionNode"}, {'id': "r", 'type': "responseNode"})
        assert select_start_node(nodes).id == "q"

    def test_empty(self):
        assert select_start_node([]) is None


class TestMarkStartNode:
    def test_promotes_only_the_chosen_node(self):
        nodes = mark_start_node([output_node("a"), output_node("b", is_start=True)], "a", AGE)
        start, other = nodes
        assert start['data']['isStart'] is True
        assert start['data']['name'] == START_NODE_NAME
        assert start['data']['extractVars'] == [["Age", "integer", "Extract the caller's Age from the conversation", False]]
        assert start['data']['extractVarSettings'] == {'Age': {'type': "integer", 'required': False}}
        for key, value in START_MODEL_OPTIONS.items():
            assert start['data']['modelOptions'][key] is value
        assert other['data']['isStart'] is False
        assert 'extractVars' not in other['data']

    def test_global_config_untouched(self):
        sentinel = {'globalConfig': {'globalPrompt': ""}}
        nodes = mark_start_node([output_node("a"), sentinel], "a", AGE)
        assert nodes[1] is sentinel


class TestEnforceSingleStart:
    def test_falls_back_to_greeting_text(self):
        nodes = enforce_single_start([
            output_node("a", text="Please hold"),
            output_node("b", text="Hello and welcome"),
        ], AGE)
        assert [n['data']['isStart'] for n in nodes] == [False, True]

    def test_falls_back_to_first_node(self):
        nodes = enforce_single_start([output_node("a", "End Call"), output_node("b")], AGE)
        assert nodes[0]['data']['isStart'] is True

    def test_keeps_first_of_many(self):
        nodes = enforce_single_start([
            output_node("a", is_start=True),
            output_node("b", is_start=True),
        ], AGE)
        assert [n['data']['isStart'] for n in nodes] == [True, False]

    def test_no_output_nodes(self):
        assert enforce_single_start([{'globalConfig': {}}], AGE) == [{'globalConfig': {}}]
