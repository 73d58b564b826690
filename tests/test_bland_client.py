"""Tests for the Bland.ai API client."""
from unittest.mock import MagicMock

import pytest
import requests

from bland_client import API_KEY_ENV_VAR, BLAND_API_BASE, BlandAPIError, BlandClient


def make_response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    if body is None:
        response.json.side_effect = ValueError("no json")
        response.text = "plain body"
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return BlandClient(api_key="test-key", session=session)


class TestClientSetup:
    def test_key_from_environment(self, monkeypatch, session):
        monkeypatch.setenv(API_KEY_ENV_VAR, "env-key")
        assert BlandClient(session=session).api_key == "env-key"

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv(API_KEY_ENV_VAR, raising=False)
        with pytest.raises(ValueError):
            BlandClient()


class TestRequests:
    def test_get_pathway(self, client, session):
        session.request.return_value = make_response(body={'name': "Demo"})
        assert client.get_pathway("pw1") == {'name': "Demo"}
        method, url = session.request.call_args.args
        assert (method, url) == ("GET", f"{BLAND_API_BASE}/convo_pathway/pw1")
        kwargs = session.request.call_args.kwargs
        assert kwargs['headers']['Authorization'] == "Bearer test-key"
        assert kwargs['timeout'] == 30

    def test_assign_uses_e164(self, client, session):
        session.request.return_value = make_response(body={'status': "success"})
        client.assign_pathway_to_number("(978) 783-6427", "pw1")
        method, url = session.request.call_args.args
        assert url.endswith("/inbound/+19787836427")
        assert session.request.call_args.kwargs['json'] == {'pathway_id': "pw1"}

    def test_error_status(self, client, session):
        session.request.return_value = make_response(401, {'error': "Invalid key"})
        with pytest.raises(BlandAPIError) as excinfo:
            client.get_pathway("pw1")
        assert excinfo.value.status_code == 401
        assert "Invalid key" in str(excinfo.value)

    def test_non_json_error(self, client, session):
        session.request.return_value = make_response(500)
        with pytest.raises(BlandAPIError) as excinfo:
            client.get_pathway("pw1")
        assert excinfo.value.payload == {'raw': "plain body"}

    def test_connection_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("down")
        with pytest.raises(BlandAPIError, match="Could not reach"):
            client.get_pathway("pw1")


class TestDeployFlowchart:
    def test_creates_updates_and_assigns(self, client, session, support_flowchart):
        session.request.side_effect = [
            make_response(body={'status': "success", 'data': {'pathway_id': "pw-new"}}),
            make_response(body={'status': "success"}),
            make_response(body={'status': "success"}),
        ]
        result = client.deploy_flowchart(support_flowchart, phone_number="9787836427")
        assert result['pathway_id'] == "pw-new"
        calls = [call.args for call in session.request.call_args_list]
        assert calls[0] == ("POST", f"{BLAND_API_BASE}/convo_pathway/create")
        assert calls[1] == ("POST", f"{BLAND_API_BASE}/convo_pathway/pw-new")
        assert calls[2] == ("POST", f"{BLAND_API_BASE}/inbound/+19787836427")
        uploaded = session.request.call_args_list[1].kwargs['json']
        assert uploaded['nodes'][-1] == {'globalConfig': {'globalPrompt': ""}}

    def test_updates_existing_pathway(self, client, session, dirty_id_flowchart):
        session.request.return_value = make_response(body={'status': "success"})
        result = client.deploy_flowchart(dirty_id_flowchart, pathway_id="pw1")
        assert session.request.call_count == 1
        assert 'created' not in result and 'assigned' not in result

    def test_invalid_flowchart(self, client, session):
        with pytest.raises(ValueError):
            client.deploy_flowchart({'edges': []}, pathway_id="pw1")
        session.request.assert_not_called()

    def test_missing_pathway_id_in_create_response(self, client, session, dirty_id_flowchart):
        session.request.return_value = make_response(body={'status': "success"})
        with pytest.raises(BlandAPIError):
            client.deploy_flowchart(dirty_id_flowchart)
