"""
Configuration Module for the did:nft resolver service

Settings are loaded from environment variables with pydantic-settings, with
defaults that resolve Ethereum mainnet NFTs against the public subgraphs.
Shared resources are handed to request handlers through typed aiohttp AppKeys.

Key configuration areas include:
- Chain configuration (subgraph endpoints and skew per CAIP-2 chain)
- The Ceramic node used for caip10-link controller lookups
- HTTP driver networking
- Error reporting and metrics
"""

import json
import logging
from typing import Annotated, Any, Dict, Final, Optional

from aiohttp import ClientSession, web
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from ceramic.nftdid.app.metrics import MetricsClient
from ceramic.nftdid.resolve.chains import (
    DEFAULT_ASSET_ENDPOINTS,
    DEFAULT_BLOCKS_ENDPOINT,
    DEFAULT_SKEW,
)
from ceramic.nftdid.resolve.identifier import ErcNamespace
from ceramic.nftdid.resolve.resolver import NftResolver

logger = logging.getLogger(__name__)

ETHEREUM_MAINNET = "eip155:1"


def default_chains() -> Dict[str, Dict[str, Any]]:
    return {
        ETHEREUM_MAINNET: {
            "blocks": DEFAULT_BLOCKS_ENDPOINT,
            "skew": DEFAULT_SKEW,
            "assets": {
                namespace.value: DEFAULT_ASSET_ENDPOINTS[namespace]
                for namespace in ErcNamespace
            },
        }
    }


def load_chains(path: str) -> Dict[str, Any]:
    """Read a chain configuration map from a JSON file."""
    with open(path) as fd:
        return json.load(fd)


class Settings(BaseSettings):
    """
    Application settings for the did:nft resolver.

    Values are read from environment variables of the same name. The chain
    map is not validated here; NftResolver validates it once at construction
    so that a bad map fails startup with a ConfigError.
    """

    debug: bool = False
    """
    Enable debug logging of outgoing subgraph requests.
    Set with DEBUG=true environment variable.
    """

    http_port: int = Field(alias="port", default=5200)
    """
    HTTP port for the driver to listen on.
    Set with PORT environment variable.
    """

    ceramic_api_url: str = "https://ceramic-clay.3boxlabs.com"
    """
    Ceramic node used to load caip10-link streams for controller attribution.
    Set with CERAMIC_API_URL environment variable.
    """

    chains: Annotated[Dict[str, Any], NoDecode] = Field(default_factory=default_chains)
    """
    Chain configuration keyed by CAIP-2 chain id.
    Set with CHAINS environment variable, either as a JSON object or as the
    path to a JSON file.
    """

    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    metrics_backend: str = "none"
    """
    Metrics backend, 'telegraf' or 'none'.
    Set with METRICS_BACKEND environment variable.
    """

    statsd_host: str = Field(alias="TELEGRAF_HOST", default="telegraf")
    """
    StatsD/Telegraf host for metrics collection.
    Set with TELEGRAF_HOST environment variable.
    """

    statsd_port: int = Field(alias="TELEGRAF_PORT", default=8125)
    """
    StatsD/Telegraf port for metrics collection.
    Set with TELEGRAF_PORT environment variable.
    """

    @field_validator("chains", mode="before")
    @classmethod
    def decode_chains(cls, v) -> Dict[str, Any]:
        """
        Accept the chain map as a dict, a JSON string or a JSON file path.

        Raises:
            ValueError: If the value is none of those
        """
        if isinstance(v, str):
            if v.lstrip().startswith(("{", "[")):
                v = json.loads(v)
            else:
                v = load_chains(v)
        if isinstance(v, dict):
            return v
        raise ValueError("chains must be a mapping, a JSON object or a JSON file path")


SettingsAppKey: Final = web.AppKey("settings", Settings)
"""AppKey for accessing the application settings"""

SessionAppKey: Final = web.AppKey("http_session", ClientSession)
"""AppKey for accessing the shared aiohttp client session"""

ResolverAppKey: Final = web.AppKey("resolver", NftResolver)
"""AppKey for accessing the did:nft resolver"""

MetricsClientAppKey: Final = web.AppKey("metrics_client", MetricsClient)
"""AppKey for accessing the metrics client"""
