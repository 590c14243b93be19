"""Owner lookups against ERC721 and ERC1155 subgraphs.

ERC721 tokens have exactly one owner. ERC1155 tokens may be held by many
accounts; only holders with a strictly positive balance count as owners.
Both lookups can be pinned to a block height for historical resolution.
"""

import logging
from typing import Any, Dict, List, Optional

from ceramic.nftdid.resolve.chains import ChainRegistry
from ceramic.nftdid.resolve.errors import OwnerNotFound, TransportError
from ceramic.nftdid.resolve.identifier import AssetReference, ErcNamespace
from ceramic.nftdid.subgraph.client import SubgraphClient

logger = logging.getLogger(__name__)


def block_argument(block_number: Optional[int]) -> Optional[Dict[str, int]]:
    if block_number is None:
        return None
    return {"number": block_number}


def erc721_query(asset: AssetReference, block_number: Optional[int]) -> Dict[str, Any]:
    return {
        "tokens": {
            "__args": {
                "where": {"id": f"{asset.contract}-{asset.token_id}"},
                "first": 1,
                "block": block_argument(block_number),
            },
            "owner": {"id": True},
        }
    }


def erc1155_query(asset: AssetReference, block_number: Optional[int]) -> Dict[str, Any]:
    return {
        "tokens": {
            "__args": {
                "where": {
                    "registry": asset.contract,
                    "identifier": str(asset.token_number),
                },
                "first": 1,
                "block": block_argument(block_number),
            },
            "balances": {
                "__args": {"where": {"value_gt": 0}},
                "account": {"id": True},
                "value": True,
            },
        }
    }


def _has_positive_balance(balance: Dict[str, Any]) -> bool:
    value = balance.get("value")
    if value is None:
        # The query already filters on value_gt: 0.
        return True
    try:
        return int(value) > 0
    except (TypeError, ValueError):
        return False


async def erc721_owner_of(
    client: SubgraphClient,
    endpoint: str,
    asset: AssetReference,
    block_number: Optional[int] = None,
) -> str:
    """Return the single owner of an ERC721 token."""
    data = await client.query(endpoint, erc721_query(asset, block_number))
    tokens = data.get("tokens")
    if not isinstance(tokens, list):
        raise TransportError.missing_data()
    if len(tokens) == 0:
        raise OwnerNotFound.for_token("ERC721", asset.token_id, asset.contract)
    try:
        return tokens[0]["owner"]["id"]
    except (KeyError, TypeError) as e:
        raise TransportError.missing_data() from e


async def erc1155_owners_of(
    client: SubgraphClient,
    endpoint: str,
    asset: AssetReference,
    block_number: Optional[int] = None,
) -> List[str]:
    """Return every account holding a positive balance of an ERC1155 token.

    Owners are returned in the order the subgraph lists them.
    """
    data = await client.query(endpoint, erc1155_query(asset, block_number))
    tokens = data.get("tokens")
    if not isinstance(tokens, list):
        raise TransportError.missing_data()
    if len(tokens) == 0:
        raise OwnerNotFound.for_token("ERC1155", asset.token_id, asset.contract)

    try:
        balances = tokens[0].get("balances") or []
        owners = [
            balance["account"]["id"]
            for balance in balances
            if _has_positive_balance(balance)
        ]
    except (AttributeError, KeyError, TypeError) as e:
        raise TransportError.missing_data() from e

    if len(owners) == 0:
        raise OwnerNotFound.for_token("ERC1155", asset.token_id, asset.contract)
    return owners


async def owners_of(
    client: SubgraphClient,
    registry: ChainRegistry,
    asset: AssetReference,
    block_number: Optional[int] = None,
) -> List[str]:
    """
    Look up the owning accounts of an asset.

    The subgraph endpoint is the chain's override for the asset namespace,
    falling back to the default public subgraph.

    Args:
        client: Subgraph transport
        registry: Validated chain configuration
        asset: Asset to look up
        block_number: Block height to query at, or None for the latest state

    Returns:
        Owner addresses, exactly one for erc721 and one or more for erc1155

    Raises:
        ChainNotConfigured: If the asset's chain is not configured
        OwnerNotFound: If the token has no owner
        TransportError: If the subgraph call fails
    """
    endpoint = registry.asset_endpoint(asset.chain_id, asset.asset_namespace)
    if asset.asset_namespace == ErcNamespace.erc721:
        return [await erc721_owner_of(client, endpoint, asset, block_number)]
    return await erc1155_owners_of(client, endpoint, asset, block_number)
