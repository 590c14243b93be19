"""Per-chain indexer configuration.

A resolver is configured with a map from CAIP-2 chain ids to the subgraph
endpoints used for that chain:

    {
        "eip155:1": {
            "blocks": "https://api.thegraph.com/subgraphs/name/yyong1010/ethereumblocks",
            "skew": 15000,
            "assets": {
                "erc721": "https://api.thegraph.com/subgraphs/name/touchain/erc721track",
                "erc1155": "https://api.thegraph.com/subgraphs/name/amxx/eip1155-subgraph",
            },
        }
    }

The map is validated once by validate_chains() and then frozen in a
ChainRegistry that is shared read-only by every resolution.
"""

from types import MappingProxyType
import logging
from typing import Any, Dict, Iterator, Mapping, Optional

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic_core import PydanticCustomError

from ceramic.nftdid.resolve.errors import ChainNotConfigured, ConfigError
from ceramic.nftdid.resolve.identifier import ErcNamespace, split_chain_id

logger = logging.getLogger(__name__)

GRAPH_API_PREFIX = "https://api.thegraph.com/subgraphs/name"

DEFAULT_BLOCKS_ENDPOINT = f"{GRAPH_API_PREFIX}/yyong1010/ethereumblocks"
"""Ethereum mainnet block timestamps subgraph."""

DEFAULT_ASSET_ENDPOINTS: Mapping[ErcNamespace, str] = MappingProxyType(
    {
        ErcNamespace.erc721: f"{GRAPH_API_PREFIX}/touchain/erc721track",
        ErcNamespace.erc1155: f"{GRAPH_API_PREFIX}/amxx/eip1155-subgraph",
    }
)
"""Fallback ownership subgraphs used when a chain has no override."""

DEFAULT_SKEW = 15000
"""Roughly one Ethereum block interval, in milliseconds."""

_url_adapter = TypeAdapter(AnyHttpUrl)


def _check_url(value: Any) -> str:
    if not isinstance(value, str):
        raise PydanticCustomError("invalid_url", "Invalid URL")
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        raise PydanticCustomError("invalid_url", "Invalid URL")
    # The caller's spelling is kept; the parsed form may add a trailing slash.
    return value


class AssetEndpoints(BaseModel):
    """Per-namespace ownership subgraph overrides for one chain."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    erc721: Optional[str] = None
    erc1155: Optional[str] = None

    @field_validator("erc721", "erc1155", mode="before")
    @classmethod
    def validate_endpoint(cls, v) -> Optional[str]:
        if v is None:
            return None
        return _check_url(v)


class ChainConfig(BaseModel):
    """Indexer endpoints and clock skew for one CAIP-2 chain."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    blocks: str
    skew: int = Field(default=DEFAULT_SKEW, ge=0)
    assets: AssetEndpoints = AssetEndpoints()

    @field_validator("blocks", mode="before")
    @classmethod
    def validate_blocks(cls, v) -> str:
        return _check_url(v)

    def asset_endpoint(self, namespace: ErcNamespace) -> str:
        custom = getattr(self.assets, namespace.value)
        return custom or DEFAULT_ASSET_ENDPOINTS[namespace]


class ChainRegistry(Mapping[str, ChainConfig]):
    """Immutable, validated view of the configured chains."""

    def __init__(self, chains: Dict[str, ChainConfig]):
        self._chains = MappingProxyType(dict(chains))

    def __getitem__(self, chain_id: str) -> ChainConfig:
        return self._chains[chain_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._chains)

    def __len__(self) -> int:
        return len(self._chains)

    def get_chain(self, chain_id: str) -> ChainConfig:
        """Return the configuration for chain_id or raise ChainNotConfigured."""
        chain = self._chains.get(chain_id)
        if chain is None:
            raise ChainNotConfigured.for_chain(chain_id)
        return chain

    def asset_endpoint(self, chain_id: str, namespace: ErcNamespace) -> str:
        return self.get_chain(chain_id).asset_endpoint(namespace)


def _chain_config(chain_id: str, entry: Any) -> ChainConfig:
    if isinstance(entry, ChainConfig):
        return entry
    try:
        return ChainConfig.model_validate(entry)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "entry"
        if first["type"] == "invalid_url":
            raise ConfigError.invalid_url(chain_id, field) from e
        raise ConfigError.invalid_chain(chain_id, f"{field}: {first['msg']}") from e


def validate_chains(config: Optional[Mapping[str, Any]]) -> ChainRegistry:
    """
    Validate a chain configuration map and freeze it.

    Args:
        config: Mapping of CAIP-2 chain ids to ChainConfig values or plain dicts

    Returns:
        ChainRegistry: The validated, read-only registry

    Raises:
        ConfigError: If the map is empty, a key is not a CAIP-2 chain id, or
            an endpoint is not a valid URL
    """
    if not config:
        raise ConfigError.no_chains()

    chains: Dict[str, ChainConfig] = {}
    for chain_id, entry in config.items():
        if not isinstance(chain_id, str) or split_chain_id(chain_id) is None:
            raise ConfigError.invalid_chain_id(str(chain_id))
        chains[chain_id] = _chain_config(chain_id, entry)

    logger.debug("Configured chains: %s", ", ".join(chains))
    return ChainRegistry(chains)
