"""Argument records -> terraform `-var` tokens.

Each argument record is a dataclass whose fields map one-to-one to root
module variables. The variable name comes from the field's `tfvar`
metadata, or the field name when none is declared. Fields left at None or
at a zero value are skipped so terraform keeps its own defaults.

Lists and maps are always sent as one JSON literal per variable
(`-var labels={"role":"infra"}`), which terraform accepts for list, map and
object variables.
"""
import json
import re
from dataclasses import field, fields, is_dataclass

from tfe2e.values import is_zero

SENSITIVE_NAMES = ("token", "secret", "password", "htpasswd")
_VAR_RE = re.compile(r"^([A-Za-z0-9_-]+)=(.*)$", re.DOTALL)


def tfvar(name, default=None):
    """Dataclass field bound to the terraform variable `name`."""
    return field(default=default, metadata={"tfvar": name})


def variables(record):
    """Yield (variable, value) for every non-zero field, in field order."""
    if not is_dataclass(record):
        raise TypeError(f"argument record must be a dataclass, got {type(record).__name__}")
    for f in fields(record):
        value = getattr(record, f.name)
        if is_zero(value):
            continue
        yield f.metadata.get("tfvar", f.name), value


def format_value(value):
    """Render a value the way terraform parses it from the command line."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"))
    if isinstance(value, float):
        return repr(value)
    return str(value)


def combine_struct_args(record, *extra_args):
    """Encode record as ["-var", "name=value", ...] followed by extra_args."""
    args = []
    for name, value in variables(record):
        args.extend(["-var", f"{name}={format_value(value)}"])
    args.extend(extra_args)
    return args


def is_sensitive(name):
    lowered = name.lower()
    return any(s in lowered for s in SENSITIVE_NAMES)


def mask_args(args):
    """Copy of a token list with sensitive variable values replaced by ***."""
    masked = []
    for token in args:
        m = _VAR_RE.match(token)
        if m and is_sensitive(m.group(1)):
            token = f"{m.group(1)}=***"
        masked.append(token)
    return masked
