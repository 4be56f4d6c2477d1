"""Path lookups into `terraform output -json` payloads.

Missing paths are not errors: each typed helper returns the zero value of
its type, and the scenario decides whether "unset" is what it expected.
"""
from tfe2e.values import coerce


def dig(obj, *path):
    """Follow dict keys and list indexes; None when any step is missing."""
    for key in path:
        if isinstance(obj, dict):
            if key not in obj:
                return None
            obj = obj[key]
        elif isinstance(obj, list) and isinstance(key, int) and not isinstance(key, bool):
            if not -len(obj) <= key < len(obj):
                return None
            obj = obj[key]
        else:
            return None
    return obj


def dig_string(obj, *path):
    return coerce(dig(obj, *path), str)


def dig_int(obj, *path):
    return coerce(dig(obj, *path), int)


def dig_float(obj, *path):
    return coerce(dig(obj, *path), float)


def dig_bool(obj, *path):
    return coerce(dig(obj, *path), bool)


def dig_list(obj, *path):
    return coerce(dig(obj, *path), list)


def dig_map(obj, *path):
    return coerce(dig(obj, *path), dict)
