"""
terraform process runner.

Runs one terraform subcommand per call with the workspace as working
directory. Failures are never retried: an apply that terraform rejects is
often exactly what a negative scenario wants to see.
"""
import json
import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass

from tfe2e import config
from tfe2e.args import mask_args
from tfe2e.errors import (
    ApplyError,
    DestroyError,
    ExecutionError,
    InitError,
    OutputError,
)

POLL_INTERVAL = 0.5


class Context:
    """Timeout and cancellation for terraform invocations.

    The timeout applies to each process invocation as a whole. cancel() may
    be called from another thread; a running process is killed.
    """

    def __init__(self, timeout=None):
        self.timeout = timeout
        self._cancelled = threading.Event()

    def cancel(self):
        self._cancelled.set()

    def cancelled(self):
        return self._cancelled.is_set()

    def deadline(self):
        if self.timeout is None:
            return None
        return time.monotonic() + self.timeout


@dataclass
class ProcessResult:
    exit_code: int
    stdout: str
    stderr: str

    @property
    def combined(self):
        return self.stdout + self.stderr

    @property
    def ok(self):
        return self.exit_code == 0


def _terraform_env():
    env = os.environ.copy()
    env["TF_IN_AUTOMATION"] = "1"
    env["TF_INPUT"] = "0"
    return env


def _kill_group(proc):
    # the tool may be a wrapper whose children hold the output pipes
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        proc.kill()


def run(workspace, subcommand, args=(), ctx=None):
    """Run `terraform <subcommand> <args>` inside workspace.

    Returns a ProcessResult whatever the exit code. Raises ExecutionError
    when the process cannot be started or does not finish in time.
    """
    if ctx is None:
        ctx = Context(config.TF_TIMEOUT)
    if not os.path.isdir(workspace):
        raise ExecutionError(f"workspace {workspace} is not a directory")
    if ctx.cancelled():
        raise ExecutionError(f"terraform {subcommand} in {workspace} cancelled before start")

    cmd = config.tf_command() + [subcommand] + list(args)
    print(f"  $ {' '.join(mask_args(cmd))}  (in {workspace})")
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=workspace,
            env=_terraform_env(),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            start_new_session=True,
        )
    except OSError as e:
        raise ExecutionError(f"cannot run {cmd[0]}: {e}") from e

    deadline = ctx.deadline()
    while True:
        wait = POLL_INTERVAL
        if deadline is not None:
            wait = max(0, min(wait, deadline - time.monotonic()))
        try:
            stdout, stderr = proc.communicate(timeout=wait)
            break
        except subprocess.TimeoutExpired:
            timed_out = deadline is not None and time.monotonic() >= deadline
            if timed_out or ctx.cancelled():
                _kill_group(proc)
                proc.communicate()
                reason = "cancelled" if ctx.cancelled() else f"timed out after {ctx.timeout}s"
                raise ExecutionError(f"terraform {subcommand} in {workspace} {reason}")
    return ProcessResult(proc.returncode, stdout, stderr)


def _var_file_args(var_files):
    return [f"-var-file={os.path.abspath(f)}" for f in var_files]


def init(workspace, ctx=None):
    """Initialize workspace. Safe to call repeatedly."""
    try:
        result = run(workspace, "init", ["-input=false", "-no-color"], ctx)
    except ExecutionError as e:
        raise InitError(workspace, detail=str(e)) from e
    if not result.ok:
        raise InitError(workspace, result)
    return result


def apply(workspace, args=(), ctx=None, var_files=()):
    """Apply with auto-approval. Variable files come before `-var` flags so
    explicit variables win."""
    cmd_args = ["-auto-approve", "-input=false", "-no-color"]
    cmd_args += _var_file_args(var_files) + list(args)
    result = run(workspace, "apply", cmd_args, ctx)
    if not result.ok:
        raise ApplyError(workspace, result)
    return result


def destroy(workspace, args=(), ctx=None, var_files=()):
    cmd_args = ["-auto-approve", "-input=false", "-no-color"]
    cmd_args += _var_file_args(var_files) + list(args)
    result = run(workspace, "destroy", cmd_args, ctx)
    if not result.ok:
        raise DestroyError(workspace, result)
    return result


def output(workspace, ctx=None):
    """Return the parsed `terraform output -json` mapping.

    Each entry keeps terraform's own shape ({"value": ..., "type": ...}).
    """
    result = run(workspace, "output", ["-json", "-no-color"], ctx)
    if not result.ok:
        raise OutputError(workspace, result)
    if not result.stdout.strip():
        return {}
    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise OutputError(workspace, result, detail=f"unparsable output JSON: {e}") from e
    if not isinstance(data, dict):
        raise OutputError(workspace, result, detail="output JSON is not an object")
    return data
