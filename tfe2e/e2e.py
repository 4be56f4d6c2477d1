"""
E2E scenarios for the terraform provider.

Each scenario provisions resources through the terraform manifests, reads
their outputs back, cross-checks them against the clusters management API
and tears them down again. Day-2 scenarios run against an existing cluster
(CLUSTER_ID); the cluster itself is never modified.

Scenarios:
  cloud-providers - catalog listing, search/order, single `item`
  machine-pool    - create, output round-trip, scale 3->4, destroy
  htpasswd, ldap, github, gitlab, google - identity provider provisioning
  idp-negative    - mandatory identity provider attributes
  cluster         - day-1 cluster from the selected profile (not in "all")
  all             - every scenario above except cluster
"""
import dataclasses
import os
import random
import string

from tfe2e import cms, config, dig, openshift
from tfe2e.cloud_providers import CloudProvidersArgs, new_cloud_providers_service
from tfe2e.clusters import cluster_args_from_profile, new_cluster_service
from tfe2e.errors import HarnessError
from tfe2e.idps import IDPArgs, htpasswd_users, new_idp_service
from tfe2e.machine_pools import MachinePoolArgs, new_machine_pool_service
from tfe2e.scenario import Scenario, rand_string_with_upper, save_results
from tfe2e.service import INITIALIZED

UNSET_NAME = 'The root module input variable "name" is not set, and has no default value'
REQUIRED_VARIABLE = "No value for required variable"
PROVIDER_REQUIRED = "provider has marked it as required"

LDAP_ATTRIBUTES = {
    "id": ["dn"],
    "email": ["mail"],
    "name": ["cn"],
    "preferred_username": ["uid"],
}


def rand_name(prefix, n=6):
    suffix = "".join(random.choice(string.ascii_lowercase + string.digits) for _ in range(n))
    return f"{prefix}-{suffix}"


class E2ETestRunner:
    """Orchestrates the e2e scenarios."""

    def __init__(self, cluster_id, token, profile=None, scenario="all",
                 results_path=None, login=True):
        self.cluster_id = cluster_id
        self.token = token
        self.profile = profile or dict(config.DEFAULT_PROFILE)
        self.scenario = scenario
        self.results_path = results_path or config.RESULTS_PATH
        self.login = login
        self.conn = cms.Connection(config.GATEWAY_URL, token)
        self.scenarios = []

    def run(self):
        """Run the selected scenario(s). Returns True when all passed."""
        day2 = [
            self._scenario_cloud_providers,
            self._scenario_machine_pool,
            self._scenario_htpasswd,
            self._scenario_ldap,
            self._scenario_github,
            self._scenario_gitlab,
            self._scenario_google,
            self._scenario_idp_negative,
        ]
        scenario_map = {
            "cloud-providers": [self._scenario_cloud_providers],
            "machine-pool": [self._scenario_machine_pool],
            "htpasswd": [self._scenario_htpasswd],
            "ldap": [self._scenario_ldap],
            "github": [self._scenario_github],
            "gitlab": [self._scenario_gitlab],
            "google": [self._scenario_google],
            "idp-negative": [self._scenario_idp_negative],
            "cluster": [self._scenario_cluster],
            "all": day2,
        }
        if self.scenario not in scenario_map:
            raise ValueError(
                f"unknown scenario '{self.scenario}' (choose from {', '.join(scenario_map)})")
        for runner in scenario_map[self.scenario]:
            runner()
        return save_results(self.scenarios, self.results_path)

    # --- Helpers ---

    def _cleanup(self, s, service, label):
        """Destroy what a scenario created, recording the outcome."""
        if service is None or service.creation_args is None:
            return
        try:
            service.destroy()
            s.assert_true(True, f"{label} destroyed")
        except HarnessError as e:
            s.assert_true(False, f"{label} destroyed\n    {e}")

    def _check_login(self, s, username, password):
        if not self.login:
            print("  login check disabled, skipping login command check.")
            return
        if self.profile.get("private_link"):
            print("  private_link is enabled, skipping login command check.")
            return
        if not openshift.oc_available():
            print("  oc not found in PATH, skipping login command check.")
            return
        resp = cms.retrieve_cluster_detail(self.conn, self.cluster_id)
        s.assert_equal(resp.status, 200, "Cluster detail retrieved")
        server = dig.dig_string(resp.body, "api", "url")
        kubeconfig = os.path.join(config.KUBECONFIG_DIR, f"{self.cluster_id}.{username}")
        rc, _, err = openshift.wait_for_login(server, username, password, kubeconfig)
        s.assert_equal(rc, 0, f"oc login as {username} {err}".rstrip())

    def _idp_args(self, **fields):
        return IDPArgs(token=self.token, cluster_id=self.cluster_id, **fields)

    # ------------------------------------------------------------------
    # Cloud providers data source
    # ------------------------------------------------------------------

    def _scenario_cloud_providers(self):
        s = Scenario("Cloud providers data source")
        service = None
        with s:
            service = new_cloud_providers_service()

            s.step("List every cloud provider")
            service.create(CloudProvidersArgs(token=self.token))
            out = service.output()
            ids = [p.id for p in out.items]
            resp = cms.list_cloud_providers(self.conn)
            s.assert_equal(resp.status, 200, "API lists cloud providers")
            s.assert_equal(ids, [p.get("id") for p in resp.items()],
                           "Data source items match the API")
            s.assert_true("aws" in ids, "aws is in the catalog")
            if len(out.items) == 1:
                s.assert_equal(out.item, out.items[0], "item holds the only result")
            else:
                s.assert_true(out.item is None, "item unset for multiple results")

            s.step("Search and order the catalog")
            search = "display_name like 'A%'"
            order = "display_name asc"
            service.create(CloudProvidersArgs(token=self.token, search=search, order=order))
            out = service.output()
            s.assert_equal(out.search, search, "search echoed")
            s.assert_equal(out.order, order, "order echoed")
            names = [p.display_name for p in out.items]
            s.assert_true(names, "search matched at least one provider")
            s.assert_true(all(n.startswith("A") for n in names),
                          f"every display_name starts with A {names}")
            s.assert_equal(names, sorted(names), "items ordered by display_name")

            s.step("A single result populates item")
            service.create(CloudProvidersArgs(token=self.token, search="id = 'aws'"))
            out = service.output()
            s.assert_equal(len(out.items), 1, "exactly one provider matched")
            if out.items:
                s.assert_equal(out.item, out.items[0], "item equals the only result")
                s.assert_equal(out.item.id, "aws", "item is aws")
        self._cleanup(s, service, "cloud providers data source")
        self.scenarios.append(s)

    # ------------------------------------------------------------------
    # Machine pool
    # ------------------------------------------------------------------

    def _scenario_machine_pool(self):
        s = Scenario("Machine pool lifecycle")
        service = None
        with s:
            service = new_machine_pool_service()
            name = rand_name("tf-mp")
            labels = {"fo1": "bar1", "fo2": "baz2"}
            args = MachinePoolArgs(
                token=self.token,
                cluster=self.cluster_id,
                name=name,
                machine_type="m5.xlarge",
                replicas=3,
                labels=labels,
            )

            s.step(f"Create machine pool {name}")
            service.create(args)
            out = service.output()
            s.assert_equal(out.name, name, "Output name")
            s.assert_equal(out.replicas, 3, "Output replicas")
            s.assert_equal(out.machine_type, "m5.xlarge", "Output machine_type")
            s.assert_equal(out.labels, labels, "Output labels")
            s.assert_equal(out.autoscaling_enabled, False, "Autoscaling disabled")

            pool_id = out.id or name
            resp = cms.retrieve_machine_pool(self.conn, self.cluster_id, pool_id)
            s.assert_equal(resp.status, 200, "Machine pool visible in the API")
            s.assert_equal(resp.body.get("replicas"), 3, "API replicas")

            s.step("Scale machine pool 3->4")
            service.create(dataclasses.replace(args, replicas=4))
            out = service.output()
            s.assert_equal(out.replicas, 4, "Output replicas after scale")
            resp = cms.retrieve_machine_pool(self.conn, self.cluster_id, pool_id)
            s.assert_equal(resp.body.get("replicas"), 4, "API replicas after scale")

            s.step("Destroy machine pool")
            service.destroy()
            resp = cms.retrieve_machine_pool(self.conn, self.cluster_id, pool_id)
            s.assert_equal(resp.status, 404, "Machine pool gone from the API")
            service = None
        self._cleanup(s, service, "machine pool")
        self.scenarios.append(s)

    # ------------------------------------------------------------------
    # Identity providers
    # ------------------------------------------------------------------

    def _scenario_htpasswd(self):
        s = Scenario("Htpasswd identity provider")
        service = None
        with s:
            username = "jacko"
            password = rand_string_with_upper(15)
            service = new_idp_service("htpasswd")

            s.step("Create htpasswd idp for an existing cluster")
            service.create(self._idp_args(
                name="tf-e2e-htpasswd-idp",
                htpasswd_users=htpasswd_users((username, password)),
            ))
            out = service.output()
            s.assert_true(out.id, "Identity provider id in outputs")

            s.step("List existing htpasswd users and compare to the created one")
            resp = cms.list_htpasswd_users(self.conn, self.cluster_id, out.id)
            s.assert_equal(resp.status, 200, "htpasswd users listed")
            s.assert_equal([u.get("username") for u in resp.items()], [username],
                           "htpasswd users")

            s.step("Login with created htpasswd idp")
            self._check_login(s, username, password)
        self._cleanup(s, service, "htpasswd identity provider")
        self.scenarios.append(s)

    def _scenario_ldap(self):
        s = Scenario("LDAP identity provider")
        service = None
        with s:
            service = new_idp_service("ldap")

            s.step("Create LDAP idp for an existing cluster")
            service.create(self._idp_args(
                name="tf-e2e-ldap-idp",
                url=config.LDAP_URL,
                attributes=LDAP_ATTRIBUTES,
                insecure=True,
            ))
            out = service.output()
            resp = cms.retrieve_cluster_idp_detail(self.conn, self.cluster_id, out.id)
            s.assert_equal(resp.status, 200, "LDAP idp visible in the API")

            s.step("Login with created ldap idp")
            self._check_login(s, "newton", "password")
        self._cleanup(s, service, "ldap identity provider")
        self.scenarios.append(s)

    def _oauth_idp(self, idp_type, title, **fields):
        s = Scenario(f"{title} identity provider")
        service = None
        with s:
            service = new_idp_service(idp_type)

            s.step(f"Create {title} idp for an existing cluster")
            service.create(self._idp_args(
                name=f"tf-e2e-{idp_type}-idp",
                client_id=rand_string_with_upper(20),
                client_secret=rand_string_with_upper(30),
                **fields,
            ))
            out = service.output()
            s.assert_true(out.id, "Identity provider id in outputs")

            s.step(f"Check {title} idp created for the cluster")
            resp = cms.retrieve_cluster_idp_detail(self.conn, self.cluster_id, out.id)
            s.assert_equal(resp.status, 200, f"{title} idp visible in the API")
        self._cleanup(s, service, f"{idp_type} identity provider")
        self.scenarios.append(s)

    def _scenario_github(self):
        self._oauth_idp("github", "GitHub", organizations=config.ORGANIZATIONS)

    def _scenario_gitlab(self):
        self._oauth_idp("gitlab", "GitLab", url=config.GITLAB_URL)

    def _scenario_google(self):
        self._oauth_idp("google", "Google", hosted_domain=config.HOSTED_DOMAIN)

    def _scenario_idp_negative(self):
        s = Scenario("Identity provider mandatory attributes")
        with s:
            services = {
                t: new_idp_service(t) for t in ("htpasswd", "ldap", "github", "gitlab", "google")
            }
            password = rand_string_with_upper(15)
            github = dict(client_id=rand_string_with_upper(30),
                          client_secret=rand_string_with_upper(20),
                          organizations=config.ORGANIZATIONS)
            gitlab = dict(client_id=rand_string_with_upper(20),
                          client_secret=rand_string_with_upper(30),
                          url=config.GITLAB_URL)
            google = dict(client_id=rand_string_with_upper(30),
                          client_secret=rand_string_with_upper(20),
                          hosted_domain=config.HOSTED_DOMAIN)
            ldap = dict(url=config.LDAP_URL, attributes=LDAP_ATTRIBUTES, insecure=True)

            cases = [
                ("htpasswd", "htpasswd idp without name",
                 self._idp_args(htpasswd_users=htpasswd_users(("jacko", password))),
                 UNSET_NAME),
                ("htpasswd", "htpasswd idp without username",
                 self._idp_args(name="htpasswd-idp-test",
                                htpasswd_users=htpasswd_users(("", password))),
                 'attribute "username" is required'),
                ("htpasswd", "htpasswd idp without password",
                 self._idp_args(name="htpasswd-idp-test",
                                htpasswd_users=htpasswd_users(("jacko", ""))),
                 'attribute "password" is required'),
                ("ldap", "ldap idp without name",
                 self._idp_args(**ldap),
                 UNSET_NAME),
                ("ldap", "ldap idp without url",
                 self._idp_args(name="ldap-idp-test", **dict(ldap, url=None)),
                 "Must set a configuration value for the ldap.url attribute"),
                ("ldap", "ldap idp without attributes",
                 self._idp_args(name="ldap-idp-test", **dict(ldap, attributes={})),
                 PROVIDER_REQUIRED),
                ("github", "github idp without name",
                 self._idp_args(**github),
                 UNSET_NAME),
                ("github", "github idp without client_id",
                 self._idp_args(name="github-idp-test", **dict(github, client_id="")),
                 REQUIRED_VARIABLE),
                ("github", "github idp without client_secret",
                 self._idp_args(name="github-idp-test", **dict(github, client_secret="")),
                 REQUIRED_VARIABLE),
                ("gitlab", "gitlab idp without name",
                 self._idp_args(**gitlab),
                 UNSET_NAME),
                ("gitlab", "gitlab idp without client_id",
                 self._idp_args(name="gitlab-idp-test", **dict(gitlab, client_id="")),
                 PROVIDER_REQUIRED),
                ("gitlab", "gitlab idp without client_secret",
                 self._idp_args(name="gitlab-idp-test", **dict(gitlab, client_secret="")),
                 PROVIDER_REQUIRED),
                ("gitlab", "gitlab idp without url",
                 self._idp_args(name="gitlab-idp-test", **dict(gitlab, url="")),
                 "Must set a configuration value for the gitlab.url"),
                ("google", "google idp without name",
                 self._idp_args(**google),
                 UNSET_NAME),
                ("google", "google idp without client_id",
                 self._idp_args(name="google-idp-test", **dict(google, client_id="")),
                 PROVIDER_REQUIRED),
                ("google", "google idp without client_secret",
                 self._idp_args(name="google-idp-test", **dict(google, client_secret="")),
                 PROVIDER_REQUIRED),
            ]
            for idp_type, label, args, expected in cases:
                s.step(f"Create {label}")
                s.assert_raises(expected, services[idp_type].create, args,
                                message=f"{label} rejected with '{expected}'")

            for idp_type, service in services.items():
                s.assert_equal(service.state, INITIALIZED,
                               f"{idp_type} service still only initialized")
        self.scenarios.append(s)

    # ------------------------------------------------------------------
    # Cluster (day 1)
    # ------------------------------------------------------------------

    def _scenario_cluster(self):
        s = Scenario(f"Cluster from profile {self.profile.get('name', 'default')}")
        service = None
        with s:
            service = new_cluster_service()
            name = rand_name("tf-e2e", 4)
            args = cluster_args_from_profile(self.profile, name, token=self.token)

            s.step(f"Create cluster {name}")
            service.create(args)
            out = service.output()
            s.assert_equal(out.cluster_name, name, "Output cluster_name")
            s.assert_true(out.cluster_id, "Output cluster_id")

            resp = cms.retrieve_cluster_detail(self.conn, out.cluster_id)
            s.assert_equal(resp.status, 200, "Cluster visible in the API")
            s.assert_equal(resp.body.get("name"), name, "API cluster name")
        self._cleanup(s, service, "cluster")
        self.scenarios.append(s)
