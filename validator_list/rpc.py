"""
JSON-RPC client used by the command line to look up validator manifests.
"""

import json
import logging
from typing import Any, Dict

import requests
import urllib3

logger = logging.getLogger(__name__)


def truncate_long_fields(obj, max_length=128):
    """Recursively truncate string fields longer than max_length, for logging."""
    if isinstance(obj, dict):
        return {key: truncate_long_fields(value, max_length) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [truncate_long_fields(item, max_length) for item in obj]
    elif isinstance(obj, str) and len(obj) > max_length:
        return obj[:max_length] + "..."
    else:
        return obj


class RPCClient:
    def __init__(self, url: str, verify_ssl: bool = True, timeout: float = 10.0):
        self.url = url
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}
        self.session = requests.Session()
        if not verify_ssl:
            # self-signed node certificates (equivalent to curl -k)
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def call(self, method: str, params: list) -> dict:
        """
        Make an RPC call to the server.

        Args:
            method: The RPC method name
            params: List of parameters for the method

        Returns:
            The JSON response from the server
        """
        payload = {"method": method, "params": params}

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(">>> RPC Request: %s %s", method, json.dumps(truncate_long_fields(payload)))

        response = self.session.post(
            self.url,
            headers=self.headers,
            json=payload,
            verify=self.verify_ssl,
            timeout=self.timeout,
        )
        response.raise_for_status()
        result = response.json()

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("<<< RPC Response: %s %s", method, json.dumps(truncate_long_fields(result)))

        return result

    def close(self):
        self.session.close()


class RPCManifestSource:
    """ManifestSource backed by the node's `manifest` RPC command."""

    def __init__(self, client: RPCClient):
        self.client = client

    def fetch_manifest(self, public_key: str) -> Dict[str, Any]:
        response = self.client.call("manifest", [{"public_key": public_key}])
        result = response.get("result", {})
        if "error" in result:
            return result
        if result.get("status") == "error":
            return dict(result, error="unknownError")
        # unknown validators come back as a success without a manifest
        if "manifest" not in result:
            return dict(result, error="manifestNotFound")
        return result
