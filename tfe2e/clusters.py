"""ROSA classic cluster resource kind (manifests/cluster)."""
from dataclasses import dataclass

from tfe2e import config, dig
from tfe2e.args import tfvar
from tfe2e.service import ResourceKind, new_service


@dataclass
class ClusterArgs:
    token: str = None
    url: str = None
    ocm_environment: str = None
    cluster_name: str = None
    openshift_version: str = None
    channel_group: str = None
    aws_region: str = None
    availability_zones: list = None
    multi_az: bool = None
    private_link: bool = tfvar("private")
    compute_machine_type: str = None
    replicas: int = None
    autoscaling_enabled: bool = None
    min_replicas: int = None
    max_replicas: int = None
    aws_subnet_ids: list = None
    tags: dict = None
    etcd_encryption: bool = None
    fips: bool = None


@dataclass
class ClusterOutput:
    cluster_id: str = ""
    cluster_name: str = ""
    cluster_version: str = ""
    state: str = ""
    api_url: str = ""
    console_url: str = ""


CLUSTER = ResourceKind(
    name="cluster",
    args_type=ClusterArgs,
    output_type=ClusterOutput,
    outputs={
        "cluster_id": (("cluster_id", "value"), dig.dig_string),
        "cluster_name": (("cluster_name", "value"), dig.dig_string),
        "cluster_version": (("cluster_version", "value"), dig.dig_string),
        "state": (("state", "value"), dig.dig_string),
        "api_url": (("api_url", "value"), dig.dig_string),
        "console_url": (("console_url", "value"), dig.dig_string),
    },
    manifest=config.CLUSTER_MANIFEST,
)


def new_cluster_service(manifest_dir=None):
    return new_service(CLUSTER, manifest_dir)


def cluster_args_from_profile(profile, cluster_name, token=None):
    """Build ClusterArgs from a profile loaded by config.load_profile."""
    return ClusterArgs(
        token=token,
        cluster_name=cluster_name,
        openshift_version=profile.get("version"),
        channel_group=profile.get("channel_group"),
        aws_region=profile.get("region"),
        multi_az=profile.get("multi_az"),
        private_link=profile.get("private_link"),
        compute_machine_type=profile.get("compute_machine_type"),
        replicas=profile.get("replicas"),
        autoscaling_enabled=profile.get("autoscaling_enabled"),
        tags=profile.get("tags"),
    )
