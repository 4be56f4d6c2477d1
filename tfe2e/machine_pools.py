"""Machine pool resource kind (manifests/machine_pool)."""
from dataclasses import dataclass, field

from tfe2e import config, dig
from tfe2e.args import tfvar
from tfe2e.service import ResourceKind, new_service


@dataclass
class MachinePoolArgs:
    cluster: str = None
    ocm_environment: str = None
    name: str = None
    token: str = None
    url: str = None
    machine_type: str = None
    replicas: int = None
    autoscaling_enabled: bool = None
    use_spot_instances: bool = None
    max_replicas: int = None
    min_replicas: int = None
    max_spot_price: float = None
    labels: dict = None
    taints: list = None
    id: str = None
    availability_zone: str = None
    subnet_id: str = None
    multi_az: bool = tfvar("multi_availability_zone")


@dataclass
class MachinePoolOutput:
    id: str = ""
    name: str = ""
    cluster_id: str = ""
    replicas: int = 0
    machine_type: str = ""
    autoscaling_enabled: bool = False
    labels: dict = field(default_factory=dict)


MACHINE_POOL = ResourceKind(
    name="machine pool",
    args_type=MachinePoolArgs,
    output_type=MachinePoolOutput,
    outputs={
        "id": (("machine_pool_id", "value"), dig.dig_string),
        "name": (("name", "value"), dig.dig_string),
        "cluster_id": (("cluster_id", "value"), dig.dig_string),
        "replicas": (("replicas", "value"), dig.dig_int),
        "machine_type": (("machine_type", "value"), dig.dig_string),
        "autoscaling_enabled": (("autoscaling_enabled", "value"), dig.dig_bool),
        "labels": (("labels", "value"), dig.dig_map),
    },
    manifest=config.MACHINE_POOL_MANIFEST,
)


def new_machine_pool_service(manifest_dir=None):
    return new_service(MACHINE_POOL, manifest_dir)
