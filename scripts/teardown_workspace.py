#!/usr/bin/env python3
"""
Destroy whatever a terraform manifest workspace still holds.

Used to clean up after an interrupted e2e run, when the arguments the
resource was created with are no longer in memory. Variables come from
tfvars files and/or --var flags; the gateway URL is stamped the same way
resource services do.

Usage:
    python3 scripts/teardown_workspace.py --manifest-dir manifests/idps/htpasswd \\
        --var-file /tmp/htpasswd.tfvars.json --var cluster_id=abc123
"""
import argparse
import sys

from tfe2e import config, runner
from tfe2e.errors import HarnessError


def teardown(manifest_dir, var_files=(), variables=(), endpoint_var="url"):
    """Init and destroy manifest_dir. Raises HarnessError on failure."""
    args = []
    for var in variables:
        args.extend(["-var", var])
    if endpoint_var and config.GATEWAY_URL:
        args.extend(["-var", f"{endpoint_var}={config.GATEWAY_URL}"])
    if config.TOKEN and not any(v.startswith("token=") for v in variables):
        args.extend(["-var", f"token={config.TOKEN}"])

    print(f"\n{'=' * 60}")
    print(f"Tearing down: {manifest_dir}")
    print(f"{'=' * 60}\n")
    ctx = runner.Context(config.TF_TIMEOUT)
    print("[1/2] Initializing workspace...")
    runner.init(manifest_dir, ctx=ctx)
    print("[2/2] Destroying resources...")
    runner.destroy(manifest_dir, args, ctx=ctx, var_files=var_files)
    print(f"\n{'=' * 60}")
    print("Teardown complete!")
    print(f"{'=' * 60}\n")


def main():
    parser = argparse.ArgumentParser(
        description="Destroy the resources held by a terraform workspace")
    parser.add_argument("--manifest-dir", required=True,
                        help="Workspace directory (e.g. manifests/machine_pool)")
    parser.add_argument("--var-file", action="append", default=[],
                        help="tfvars file, may be repeated")
    parser.add_argument("--var", action="append", default=[],
                        help="name=value variable, may be repeated")
    parser.add_argument("--endpoint-var", default="url",
                        help="Variable receiving the gateway URL "
                             "(gateway_url for identity providers, empty to skip)")
    args = parser.parse_args()

    try:
        teardown(args.manifest_dir, var_files=args.var_file, variables=args.var,
                 endpoint_var=args.endpoint_var)
    except HarnessError as e:
        print(f"\nFATAL: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
