"""Stub clusters management API for harness validation.

Serves the slice of /api/clusters_mgmt/v1 the e2e scenarios touch:
clusters, identity providers (with htpasswd users), machine pools and the
cloud provider catalog. State lives in memory for the life of the app.

Run locally with:
    python3 -m tfe2e.stub_api
"""
import os
import re
import secrets
import threading

from flask import Flask, jsonify, request

API_PREFIX = "/api/clusters_mgmt/v1"

DEFAULT_CATALOG = [
    {"id": "aws", "name": "aws", "display_name": "AWS"},
    {"id": "gcp", "name": "gcp", "display_name": "GCP"},
]

_LIKE_RE = re.compile(r"^\s*(\w+)\s+like\s+'([^']*)'\s*$", re.IGNORECASE)
_EQ_RE = re.compile(r"^\s*(\w+)\s*=\s*'([^']*)'\s*$")
_ORDER_RE = re.compile(r"^\s*(\w+)(?:\s+(asc|desc))?\s*$", re.IGNORECASE)


def new_id():
    return secrets.token_hex(16)


def search_matcher(search):
    """Predicate for a `field like 'pat%'` or `field = 'value'` search."""
    if not search:
        return lambda item: True
    m = _LIKE_RE.match(search)
    if m:
        field, pattern = m.groups()
        regex = re.compile(
            "^" + ".*".join(re.escape(p) for p in pattern.split("%")) + "$", re.DOTALL)
        return lambda item: bool(regex.match(str(item.get(field, ""))))
    m = _EQ_RE.match(search)
    if m:
        field, value = m.groups()
        return lambda item: str(item.get(field, "")) == value
    raise ValueError(f"unsupported search expression '{search}'")


def order_items(items, order):
    """Sort items by a comma-separated `field [asc|desc]` list."""
    if not order:
        return list(items)
    keys = []
    for part in order.split(","):
        m = _ORDER_RE.match(part)
        if not m:
            raise ValueError(f"unsupported order expression '{order}'")
        keys.append((m.group(1), (m.group(2) or "asc").lower() == "desc"))
    result = list(items)
    for field, descending in reversed(keys):
        result.sort(key=lambda item: str(item.get(field, "")), reverse=descending)
    return result


def error(status, reason):
    body = {
        "kind": "Error",
        "id": str(status),
        "code": f"CLUSTERS-MGMT-{status}",
        "reason": reason,
    }
    return jsonify(body), status


def page(items):
    return jsonify({"page": 1, "size": len(items), "total": len(items), "items": items})


def create_app(catalog=None, clusters=None, token=None):
    """Build the stub app.

    catalog  - cloud provider entries (default: aws, gcp)
    clusters - {cluster_id: cluster body} present from the start
    token    - when set, the only bearer token accepted
    """
    app = Flask(__name__)
    lock = threading.Lock()
    store = {
        "catalog": list(DEFAULT_CATALOG if catalog is None else catalog),
        "clusters": {},
        "idps": {},
        "machine_pools": {},
    }
    for cluster_id, body in (clusters or {}).items():
        store["clusters"][cluster_id] = _cluster(cluster_id, body)
        store["idps"][cluster_id] = {}
        store["machine_pools"][cluster_id] = {}
    app.config["STORE"] = store
    app.config["TOKEN"] = token

    @app.before_request
    def check_token():
        if request.path == "/up":
            return None
        auth = request.headers.get("Authorization", "")
        presented = auth[len("Bearer "):] if auth.startswith("Bearer ") else ""
        if not presented:
            return error(401, "Request is missing a bearer token")
        if app.config["TOKEN"] and presented != app.config["TOKEN"]:
            return error(401, "Bearer token is not valid")
        return None

    @app.route("/up")
    def health():
        """Health check endpoint."""
        return "OK", 200

    # --- Cloud providers ---

    @app.route(f"{API_PREFIX}/cloud_providers")
    def list_cloud_providers():
        try:
            match = search_matcher(request.args.get("search", ""))
            items = order_items(
                [p for p in store["catalog"] if match(p)], request.args.get("order", ""))
        except ValueError as e:
            return error(400, str(e))
        return page(items)

    # --- Clusters ---

    @app.route(f"{API_PREFIX}/clusters", methods=["POST"])
    def create_cluster():
        body = request.get_json(silent=True) or {}
        cluster_id = new_id()
        with lock:
            store["clusters"][cluster_id] = _cluster(cluster_id, body)
            store["idps"][cluster_id] = {}
            store["machine_pools"][cluster_id] = {}
        return jsonify(store["clusters"][cluster_id]), 201

    @app.route(f"{API_PREFIX}/clusters/<cluster_id>", methods=["GET", "DELETE"])
    def cluster_detail(cluster_id):
        with lock:
            if cluster_id not in store["clusters"]:
                return error(404, f"Cluster '{cluster_id}' not found")
            if request.method == "DELETE":
                del store["clusters"][cluster_id]
                store["idps"].pop(cluster_id, None)
                store["machine_pools"].pop(cluster_id, None)
                return "", 204
            return jsonify(store["clusters"][cluster_id])

    # --- Identity providers ---

    @app.route(f"{API_PREFIX}/clusters/<cluster_id>/identity_providers",
               methods=["GET", "POST"])
    def identity_providers(cluster_id):
        with lock:
            if cluster_id not in store["clusters"]:
                return error(404, f"Cluster '{cluster_id}' not found")
            idps = store["idps"][cluster_id]
            if request.method == "GET":
                return page(list(idps.values()))
            body = request.get_json(silent=True) or {}
            if not body.get("name"):
                return error(400, "Identity provider name is mandatory")
            if any(i.get("name") == body["name"] for i in idps.values()):
                return error(409, f"Identity provider '{body['name']}' already exists")
            idp = dict(body, id=new_id(), kind="IdentityProvider")
            idps[idp["id"]] = idp
        return jsonify(_public_idp(idp)), 201

    @app.route(f"{API_PREFIX}/clusters/<cluster_id>/identity_providers/<idp_id>",
               methods=["GET", "PATCH", "DELETE"])
    def identity_provider(cluster_id, idp_id):
        with lock:
            idp = store["idps"].get(cluster_id, {}).get(idp_id)
            if idp is None:
                return error(404, f"Identity provider '{idp_id}' not found")
            if request.method == "DELETE":
                del store["idps"][cluster_id][idp_id]
                return "", 204
            if request.method == "PATCH":
                idp.update(request.get_json(silent=True) or {})
            return jsonify(_public_idp(idp))

    @app.route(f"{API_PREFIX}/clusters/<cluster_id>/identity_providers/<idp_id>/htpasswd_users")
    def htpasswd_users(cluster_id, idp_id):
        with lock:
            idp = store["idps"].get(cluster_id, {}).get(idp_id)
            if idp is None:
                return error(404, f"Identity provider '{idp_id}' not found")
            users = [
                {"id": f"{idp_id}-{i}", "kind": "HTPasswdUser", "username": u.get("username", "")}
                for i, u in enumerate(idp.get("htpasswd_users") or [])
            ]
        return page(users)

    # --- Machine pools ---

    @app.route(f"{API_PREFIX}/clusters/<cluster_id>/machine_pools", methods=["GET", "POST"])
    def machine_pools(cluster_id):
        with lock:
            if cluster_id not in store["clusters"]:
                return error(404, f"Cluster '{cluster_id}' not found")
            pools = store["machine_pools"][cluster_id]
            if request.method == "GET":
                return page(list(pools.values()))
            body = request.get_json(silent=True) or {}
            pool_id = body.get("name") or new_id()
            if pool_id in pools:
                return error(409, f"Machine pool '{pool_id}' already exists")
            pool = dict(body, id=pool_id, kind="MachinePool")
            pools[pool_id] = pool
        return jsonify(pool), 201

    @app.route(f"{API_PREFIX}/clusters/<cluster_id>/machine_pools/<pool_id>",
               methods=["GET", "PATCH", "DELETE"])
    def machine_pool(cluster_id, pool_id):
        with lock:
            pool = store["machine_pools"].get(cluster_id, {}).get(pool_id)
            if pool is None:
                return error(404, f"Machine pool '{pool_id}' not found")
            if request.method == "DELETE":
                del store["machine_pools"][cluster_id][pool_id]
                return "", 204
            if request.method == "PATCH":
                pool.update(request.get_json(silent=True) or {})
            return jsonify(pool)

    return app


def _cluster(cluster_id, body):
    name = body.get("name") or body.get("cluster_name") or f"cluster-{cluster_id[:6]}"
    cluster = {
        "kind": "Cluster",
        "id": cluster_id,
        "name": name,
        "state": "ready",
        "api": {"url": f"https://api.{name}.stub.example.com:6443"},
        "console": {"url": f"https://console-openshift-console.apps.{name}.stub.example.com"},
    }
    cluster.update({k: v for k, v in body.items() if k not in ("id", "kind")})
    return cluster


def _public_idp(idp):
    public = {k: v for k, v in idp.items() if k not in ("client_secret", "bind_password")}
    if "htpasswd_users" in public:
        public["htpasswd_users"] = [
            {"username": u.get("username", "")} for u in public["htpasswd_users"]
        ]
    return public


if __name__ == "__main__":
    create_app(token=os.environ.get("STUB_TOKEN") or None).run(
        host="127.0.0.1", port=int(os.environ.get("STUB_PORT", "8000")))
