"""
Generic resource lifecycle: init -> create -> output -> destroy.

One ResourceService drives one terraform workspace. What changes between
resource kinds (argument record, output record, where each output lives)
is described by a ResourceKind, so every kind shares the same lifecycle
code.
"""
import dataclasses
from dataclasses import dataclass

from tfe2e import config, runner
from tfe2e.args import combine_struct_args
from tfe2e.errors import ContractViolation

UNINITIALIZED = "uninitialized"
INITIALIZED = "initialized"
CREATED = "created"
DESTROYED = "destroyed"


@dataclass(frozen=True)
class ResourceKind:
    """Static description of one resource kind.

    outputs maps each output record field to (path, coerce), where path is
    the key sequence into the `terraform output -json` payload and coerce a
    digger such as dig.dig_string.
    """

    name: str
    args_type: type
    output_type: type
    outputs: dict
    manifest: str
    endpoint_field: str = "url"


class ResourceService:
    def __init__(self, kind, manifest_dir=None, ctx=None):
        self.kind = kind
        self.manifest_dir = manifest_dir or config.manifest_dir(kind.manifest)
        self.ctx = ctx or runner.Context(config.TF_TIMEOUT)
        self.creation_args = None
        self.state = UNINITIALIZED
        self.applied = False

    def __repr__(self):
        return f"<{self.kind.name} service {self.manifest_dir} [{self.state}]>"

    def init(self, manifest_dir=None):
        """Initialize the workspace. InitError leaves the service unusable."""
        if manifest_dir:
            self.manifest_dir = manifest_dir
        self.state = UNINITIALIZED
        runner.init(self.manifest_dir, ctx=self.ctx)
        self.state = INITIALIZED

    def create(self, args, *extra_args):
        """Apply the workspace with args. The caller's record is not modified."""
        self._require_initialized("create")
        if not isinstance(args, self.kind.args_type):
            raise TypeError(
                f"{self.kind.name} expects {self.kind.args_type.__name__}, "
                f"got {type(args).__name__}")
        args = self._stamp(args)
        self.creation_args = args
        runner.apply(self.manifest_dir, combine_struct_args(args, *extra_args), ctx=self.ctx)
        self.state = CREATED
        self.applied = True

    def output(self):
        """Read the workspace outputs into the kind's output record."""
        if not self.applied:
            raise ContractViolation(
                f"{self.kind.name}: output requested before a successful create")
        out = runner.output(self.manifest_dir, ctx=self.ctx)
        values = {
            name: coerce(out, *path)
            for name, (path, coerce) in self.kind.outputs.items()
        }
        return self.kind.output_type(**values)

    def destroy(self, args=None):
        """Destroy with args, or with the arguments of the last create."""
        if args is None and self.creation_args is None:
            raise ContractViolation(
                "got unset destroy args, set it in object or pass as a parameter")
        self._require_initialized("destroy")
        destroy_args = self._stamp(args if args is not None else self.creation_args)
        runner.destroy(self.manifest_dir, combine_struct_args(destroy_args), ctx=self.ctx)
        self.state = DESTROYED

    def _require_initialized(self, step):
        if self.state == UNINITIALIZED:
            raise ContractViolation(
                f"{self.kind.name}: {step} on uninitialized workspace {self.manifest_dir}")

    def _stamp(self, args):
        return dataclasses.replace(args, **{self.kind.endpoint_field: config.GATEWAY_URL})


def new_service(kind, manifest_dir=None, ctx=None):
    """Build a service for kind and initialize its workspace."""
    service = ResourceService(kind, manifest_dir, ctx)
    service.init()
    return service
