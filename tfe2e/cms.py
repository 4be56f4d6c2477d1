"""
Clusters management API client.

Scenarios use it to cross-check that what terraform created is visible
server-side. Responses keep the HTTP status so callers can assert on it.
"""
import json
import ssl
from dataclasses import dataclass
from http.client import HTTPConnection, HTTPSConnection, HTTPException
from urllib.parse import urlencode, urlparse

from tfe2e.errors import ExecutionError

API_PREFIX = "/api/clusters_mgmt/v1"


@dataclass
class Response:
    status: int
    body: dict

    def items(self):
        return self.body.get("items", []) if isinstance(self.body, dict) else []


class Connection:
    """Bearer-token connection to the gateway."""

    def __init__(self, url, token, timeout=30):
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"invalid gateway URL '{url}'")
        self.url = url
        self.token = token
        self.timeout = timeout
        self.use_https = parsed.scheme == "https"
        self.host = parsed.hostname
        self.port = parsed.port or (443 if self.use_https else 80)
        self.base_path = parsed.path.rstrip("/")

    def _connect(self):
        if self.use_https:
            ctx = ssl.create_default_context()
            return HTTPSConnection(self.host, self.port, timeout=self.timeout, context=ctx)
        return HTTPConnection(self.host, self.port, timeout=self.timeout)

    def request(self, method, path, params=None, body=None):
        """Send a request. Returns Response(status, decoded JSON body)."""
        target = self.base_path + path
        params = {k: v for k, v in (params or {}).items() if v}
        if params:
            target += "?" + urlencode(params)
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
        }
        payload = None
        if body is not None:
            payload = json.dumps(body)
            headers["Content-Type"] = "application/json"
        conn = self._connect()
        try:
            conn.request(method, target, body=payload, headers=headers)
            resp = conn.getresponse()
            raw = resp.read().decode("utf-8", errors="replace")
            status = resp.status
        except (OSError, HTTPException) as e:
            raise ExecutionError(f"{method} {self.url}{target} failed: {e}") from e
        finally:
            conn.close()
        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError:
            data = {"raw": raw}
        return Response(status, data)

    def get(self, path, params=None):
        return self.request("GET", path, params=params)


def retrieve_cluster_detail(conn, cluster_id):
    return conn.get(f"{API_PREFIX}/clusters/{cluster_id}")


def retrieve_cluster_idp_detail(conn, cluster_id, idp_id):
    return conn.get(f"{API_PREFIX}/clusters/{cluster_id}/identity_providers/{idp_id}")


def list_htpasswd_users(conn, cluster_id, idp_id):
    return conn.get(
        f"{API_PREFIX}/clusters/{cluster_id}/identity_providers/{idp_id}/htpasswd_users")


def retrieve_machine_pool(conn, cluster_id, pool_id):
    return conn.get(f"{API_PREFIX}/clusters/{cluster_id}/machine_pools/{pool_id}")


def list_cloud_providers(conn, search=None, order=None):
    return conn.get(f"{API_PREFIX}/cloud_providers", params={"search": search, "order": order})
