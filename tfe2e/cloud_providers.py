"""Cloud provider catalog data source (manifests/cloud_providers).

The data source echoes `search` and `order`, lists every matching provider
in `items`, and fills `item` only when exactly one provider matched.
"""
from dataclasses import dataclass, field

from tfe2e import config, dig
from tfe2e.service import ResourceKind, new_service


@dataclass
class CloudProvidersArgs:
    token: str = None
    url: str = None
    search: str = None
    order: str = None


@dataclass
class CloudProvider:
    id: str = ""
    name: str = ""
    display_name: str = ""


@dataclass
class CloudProvidersOutput:
    search: str = ""
    order: str = ""
    items: list = field(default_factory=list)
    item: CloudProvider = None


def _provider(entry):
    return CloudProvider(
        id=dig.dig_string(entry, "id"),
        name=dig.dig_string(entry, "name"),
        display_name=dig.dig_string(entry, "display_name"),
    )


def dig_providers(obj, *path):
    return [_provider(entry) for entry in dig.dig_list(obj, *path) if isinstance(entry, dict)]


def dig_provider(obj, *path):
    """CloudProvider at path, or None when the output is null or missing."""
    entry = dig.dig(obj, *path)
    if not isinstance(entry, dict):
        return None
    return _provider(entry)


CLOUD_PROVIDERS = ResourceKind(
    name="cloud providers",
    args_type=CloudProvidersArgs,
    output_type=CloudProvidersOutput,
    outputs={
        "search": (("search", "value"), dig.dig_string),
        "order": (("order", "value"), dig.dig_string),
        "items": (("items", "value"), dig_providers),
        "item": (("item", "value"), dig_provider),
    },
    manifest=config.CLOUD_PROVIDERS_MANIFEST,
)


def new_cloud_providers_service(manifest_dir=None):
    return new_service(CLOUD_PROVIDERS, manifest_dir)
