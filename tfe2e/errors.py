"""Error taxonomy for the terraform harness.

The harness only decides which step failed. The text terraform printed is
carried through untouched so scenarios can match on it.
"""


class HarnessError(RuntimeError):
    """Base class for every error raised by the harness."""


class ExecutionError(HarnessError):
    """terraform could not be run: missing binary, bad workspace, timeout."""


class ConfigError(HarnessError):
    """Missing or malformed harness configuration."""


class ContractViolation(HarnessError):
    """A resource service was driven out of order."""


class CommandError(HarnessError):
    """terraform ran and exited non-zero.

    The message embeds the raw stdout/stderr verbatim.
    """

    step = "command"

    def __init__(self, workspace, result=None, detail=None):
        self.workspace = workspace
        self.result = result
        self.exit_code = result.exit_code if result is not None else None
        self.stdout = result.stdout if result is not None else ""
        self.stderr = result.stderr if result is not None else ""
        header = f"terraform {self.step} failed in {workspace}"
        if self.exit_code is not None:
            header += f" (exit {self.exit_code})"
        parts = [header]
        if detail:
            parts.append(detail)
        if self.stdout.strip():
            parts.append(self.stdout.rstrip())
        if self.stderr.strip():
            parts.append(self.stderr.rstrip())
        super().__init__("\n".join(parts))


class InitError(CommandError):
    step = "init"


class ApplyError(CommandError):
    step = "apply"


class DestroyError(CommandError):
    step = "destroy"


class OutputError(CommandError):
    step = "output"
