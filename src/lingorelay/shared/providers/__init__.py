"""Provider failover framework.

Provides quota tracking and ordered failover for the outbound
translation providers.
"""

from lingorelay.shared.providers.types import ProviderConfig, ProviderTier
from lingorelay.shared.providers.quota import QuotaStore
from lingorelay.shared.providers.gateway import FailoverGateway

__all__ = [
    "FailoverGateway",
    "ProviderConfig",
    "ProviderTier",
    "QuotaStore",
]
