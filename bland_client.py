"""
Bland.ai pathway API client
Creates and updates conversational pathways and binds them to inbound numbers
"""
import os
import logging
from typing import Any, Dict, Optional

import requests

from pathway_assembler import convert_flowchart_to_pathway
from flowchart_validator import is_invalid_result
from phone_utils import to_e164_format

logger = logging.getLogger(__name__)

BLAND_API_BASE = "https://api.bland.ai/v1"
API_KEY_ENV_VAR = "BLAND_AI_API_KEY"

class BlandAPIError(RuntimeError):
    """Raised when the pathway API cannot be reached or rejects a request"""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

class BlandClient:
    """Thin wrapper over the Bland.ai REST endpoints used for deployment"""

    def __init__(self, api_key: Optional[str] = None, base_url: str = BLAND_API_BASE,
                 timeout: int = 30, session: Optional[requests.Session] = None):
        self.api_key = api_key or os.getenv(API_KEY_ENV_VAR)
        if not self.api_key:
            raise ValueError(f"Bland.ai API key not provided and {API_KEY_ENV_VAR} is not set")
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {
            'Authorization': f"Bearer {self.api_key}",
            'Content-Type': "application/json",
        }
        logger.info(f"{method} {url}")
        try:
            response = self.session.request(method, url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Bland.ai request failed: {str(e)}")
            raise BlandAPIError(f"Could not reach Bland.ai: {str(e)}") from e

        try:
            body = response.json()
        except ValueError:
            body = {'raw': response.text}

        if not response.ok:
            message = (body.get('error') or body.get('message')) if isinstance(body, dict) else None
            logger.error(f"Bland.ai returned {response.status_code}: {message or body}")
            raise BlandAPIError(
                f"Bland.ai request failed with status {response.status_code}: {message or 'unknown error'}",
                status_code=response.status_code,
                payload=body
            )
        return body

    def create_pathway(self, name: str, description: str = "") -> Dict[str, Any]:
        return self._request("POST", "convo_pathway/create", {'name': name, 'description': description})

    def get_pathway(self, pathway_id: str) -> Dict[str, Any]:
        return self._request("GET", f"convo_pathway/{pathway_id}")

    def update_pathway(self, pathway_id: str, pathway: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the pathway's nodes and edges with a compiled document"""
        return self._request("POST", f"convo_pathway/{pathway_id}", pathway)

    def assign_pathway_to_number(self, phone_number: str, pathway_id: str) -> Dict[str, Any]:
        return self._request("POST", f"inbound/{to_e164_format(phone_number)}", {'pathway_id': pathway_id})

    def deploy_flowchart(self, flowchart: Dict[str, Any], pathway_id: Optional[str] = None,
                         name: Optional[str] = None, description: Optional[str] = None,
                         phone_number: Optional[str] = None,
                         config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Compile a flowchart and push it to Bland.ai.

        Creates the pathway when no id is given, uploads the compiled nodes and
        edges, and binds the pathway to phone_number when provided.

        Returns:
            Dict with pathway_id, the compiled pathway and the API responses
        """
        pathway = convert_flowchart_to_pathway(flowchart, name, description, config)
        if is_invalid_result(pathway):
            raise ValueError(f"Flowchart is not valid: {'; '.join(pathway['issues'])}")

        result: Dict[str, Any] = {'pathway': pathway}
        if not pathway_id:
            created = self.create_pathway(pathway['name'], pathway['description'])
            pathway_id = created.get('pathway_id') or (created.get('data') or {}).get('pathway_id')
            if not pathway_id:
                raise BlandAPIError("Bland.ai did not return a pathway id", payload=created)
            result['created'] = created
            logger.info(f"Created pathway {pathway_id}")

        result['pathway_id'] = pathway_id
        result['updated'] = self.update_pathway(pathway_id, pathway)

        if phone_number:
            result['assigned'] = self.assign_pathway_to_number(phone_number, pathway_id)
            logger.info(f"Pathway {pathway_id} assigned to {to_e164_format(phone_number)}")

        return result
