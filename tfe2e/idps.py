"""Identity provider resource kinds.

Every provider type has its own workspace under manifests/idps/ but they
share one argument record; fields a type does not declare are left unset.
The gateway URL goes to `gateway_url` because `url` is the provider's own
server (LDAP, GitLab).
"""
from dataclasses import dataclass

from tfe2e import config, dig
from tfe2e.service import ResourceKind, new_service


@dataclass
class IDPArgs:
    token: str = None
    gateway_url: str = None
    cluster_id: str = None
    name: str = None
    mapping_method: str = None
    client_id: str = None
    client_secret: str = None
    url: str = None
    ca: str = None
    attributes: dict = None
    insecure: bool = None
    bind_dn: str = None
    bind_password: str = None
    htpasswd_users: list = None
    organizations: list = None
    teams: list = None
    hostname: str = None
    hosted_domain: str = None
    issuer: str = None
    claims: dict = None
    extra_scopes: list = None


@dataclass
class IDPOutput:
    id: str = ""
    name: str = ""
    type: str = ""


IDP_OUTPUTS = {
    "id": (("idp_id", "value"), dig.dig_string),
    "name": (("name", "value"), dig.dig_string),
    "type": (("type", "value"), dig.dig_string),
}


def _idp_kind(idp_type, manifest):
    return ResourceKind(
        name=f"{idp_type} identity provider",
        args_type=IDPArgs,
        output_type=IDPOutput,
        outputs=IDP_OUTPUTS,
        manifest=manifest,
        endpoint_field="gateway_url",
    )


HTPASSWD = _idp_kind("htpasswd", config.HTPASSWD_MANIFEST)
LDAP = _idp_kind("ldap", config.LDAP_MANIFEST)
GITHUB = _idp_kind("github", config.GITHUB_MANIFEST)
GITLAB = _idp_kind("gitlab", config.GITLAB_MANIFEST)
GOOGLE = _idp_kind("google", config.GOOGLE_MANIFEST)
OPENID = _idp_kind("openid", config.OPENID_MANIFEST)

IDP_KINDS = {
    "htpasswd": HTPASSWD,
    "ldap": LDAP,
    "github": GITHUB,
    "gitlab": GITLAB,
    "google": GOOGLE,
    "openid": OPENID,
}


def new_idp_service(idp_type, manifest_dir=None):
    """Initialized service for one identity provider type (htpasswd, ldap, ...)."""
    if idp_type not in IDP_KINDS:
        raise ValueError(f"unknown identity provider type '{idp_type}'")
    return new_service(IDP_KINDS[idp_type], manifest_dir)


def htpasswd_users(*pairs):
    """[(username, password), ...] -> htpasswd_users value, dropping empty fields."""
    users = []
    for username, password in pairs:
        user = {}
        if username:
            user["username"] = username
        if password:
            user["password"] = password
        users.append(user)
    return users
