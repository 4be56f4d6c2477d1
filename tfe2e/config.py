"""
Harness configuration.

Every value is read from the process environment first, then from an
optional dotenv file (E2E_ENV_FILE, default ./.env), then falls back to the
default below.

Environment variables:
  TF_BINARY       - terraform executable, may carry arguments (default: terraform)
  TF_TIMEOUT      - seconds before one terraform invocation is killed (default: 1800)
  RHCS_URL        - gateway URL stamped into every resource (default: https://api.openshift.com)
  RHCS_TOKEN      - offline token for the gateway
  CLUSTER_ID      - existing cluster used by day-2 scenarios
  MANIFESTS_DIR   - root of the terraform manifests (default: <repo>/manifests)
  PROFILES_FILE   - cluster profiles YAML (default: <repo>/profiles.yml)
  CLUSTER_PROFILE - profile name inside PROFILES_FILE (default: rosa-sts-ad)
  SCENARIO        - e2e scenario to run (default: all)
  RESULTS_PATH    - where the e2e results JSON is written
  KUBECONFIG_DIR  - directory for kubeconfigs written by `oc login`
"""
import os
import shlex

import yaml
from dotenv import dotenv_values

from tfe2e.errors import ConfigError

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

ENV_FILE = os.environ.get("E2E_ENV_FILE", ".env")
ENV_FILE_VALUES = dotenv_values(ENV_FILE) if os.path.isfile(ENV_FILE) else {}


def _get(name, default=""):
    value = os.environ.get(name)
    if value is None:
        value = ENV_FILE_VALUES.get(name)
    if value is None or value == "":
        return default
    return value


# ---------------------------------------------------------------------------
# terraform
# ---------------------------------------------------------------------------

TF_BINARY = _get("TF_BINARY", "terraform")
TF_TIMEOUT = float(_get("TF_TIMEOUT", "1800"))

# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

GATEWAY_URL = _get("RHCS_URL", "https://api.openshift.com")
TOKEN = _get("RHCS_TOKEN")
CLUSTER_ID = _get("CLUSTER_ID")

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

MANIFESTS_DIR = _get("MANIFESTS_DIR", os.path.join(ROOT_DIR, "manifests"))
PROFILES_FILE = _get("PROFILES_FILE", os.path.join(ROOT_DIR, "profiles.yml"))
CLUSTER_PROFILE = _get("CLUSTER_PROFILE", "rosa-sts-ad")
SCENARIO = _get("SCENARIO", "all")
RESULTS_PATH = _get("RESULTS_PATH", "/tmp/tf-e2e-results.json")
KUBECONFIG_DIR = _get("KUBECONFIG_DIR", "/tmp/tf-e2e-kubeconfigs")

# Workspaces, relative to MANIFESTS_DIR
CLUSTER_MANIFEST = "cluster"
MACHINE_POOL_MANIFEST = "machine_pool"
CLOUD_PROVIDERS_MANIFEST = "cloud_providers"
HTPASSWD_MANIFEST = os.path.join("idps", "htpasswd")
LDAP_MANIFEST = os.path.join("idps", "ldap")
GITHUB_MANIFEST = os.path.join("idps", "github")
GITLAB_MANIFEST = os.path.join("idps", "gitlab")
GOOGLE_MANIFEST = os.path.join("idps", "google")
OPENID_MANIFEST = os.path.join("idps", "openid")

# ---------------------------------------------------------------------------
# Identity provider fixtures
# ---------------------------------------------------------------------------

LDAP_URL = _get("LDAP_URL", "ldap://ldap.forumsys.com/dc=example,dc=com?uid")
GITLAB_URL = _get("GITLAB_URL", "https://gitlab.com")
ORGANIZATIONS = [o for o in _get("GITHUB_ORGANIZATIONS", "openshift").split(",") if o]
HOSTED_DOMAIN = _get("GOOGLE_HOSTED_DOMAIN", "redhat.com")

DEFAULT_PROFILE = {
    "cluster_type": "rosa-classic",
    "region": "us-west-2",
    "version": "",
    "channel_group": "stable",
    "multi_az": False,
    "private_link": False,
    "compute_machine_type": "m5.xlarge",
    "replicas": 3,
    "autoscaling_enabled": False,
    "tags": {},
}


def tf_command():
    """terraform executable as an argv prefix."""
    return shlex.split(TF_BINARY)


def manifest_dir(relative):
    """Absolute workspace path for a manifest below MANIFESTS_DIR."""
    return os.path.join(MANIFESTS_DIR, relative)


def load_profile(name=None, path=None):
    """Load a cluster profile from the profiles YAML, merged over defaults."""
    name = name or CLUSTER_PROFILE
    path = path or PROFILES_FILE
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read profiles file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"malformed profiles file {path}: {e}") from e
    profiles = data.get("profiles") or {}
    if not isinstance(profiles, dict):
        raise ConfigError(f"'profiles' in {path} must be a mapping")
    if name not in profiles:
        raise ConfigError(f"Profile '{name}' not found in {path}")
    profile = dict(DEFAULT_PROFILE)
    profile.update(profiles[name] or {})
    profile["name"] = name
    return profile
