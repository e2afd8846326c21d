"""
Escrow Relayer package.

Gas-sponsored meta-transaction relay for escrow actions, plus a rate-limited
onboarding drip for first-time addresses.
"""

from .chain import ChainConnection
from .config import RelayerConfig
from .drip_gateway import DripGateway
from .models import DripResult, MetaTxRequest, RelayResult
from .rate_limit import InMemoryRateLimitStore, RateLimitStore
from .relay_gateway import RelayGateway

__all__ = [
    "ChainConnection",
    "DripGateway",
    "DripResult",
    "InMemoryRateLimitStore",
    "MetaTxRequest",
    "RateLimitStore",
    "RelayerConfig",
    "RelayGateway",
    "RelayResult",
]
__version__ = "0.1.0"
