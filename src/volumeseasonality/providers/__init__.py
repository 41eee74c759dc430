"""Volume bar provider registry."""

from __future__ import annotations

import importlib

from volumeseasonality.config import ProviderType
from volumeseasonality.providers.base import BaseVolumeProvider

# Lazy registry: provider modules are imported only when requested.
PROVIDER_CLASSES: dict[ProviderType, str] = {
    ProviderType.POLYGON: "volumeseasonality.providers.polygon.PolygonProvider",
    ProviderType.MOCK: "volumeseasonality.providers.mock.MockProvider",
}


def create_provider(
    provider_type: ProviderType,
    **kwargs,
) -> BaseVolumeProvider:
    """Instantiate a provider by type, forwarding kwargs to its constructor."""
    dotted = PROVIDER_CLASSES[provider_type]
    module_path, cls_name = dotted.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls = getattr(module, cls_name)
    return cls(**kwargs)


__all__ = ["BaseVolumeProvider", "PROVIDER_CLASSES", "create_provider"]
