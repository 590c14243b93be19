"""
NFT DID Resolver

Resolves did:nft identifiers, which name a single ERC721 or ERC1155 token on a
CAIP-2 chain, into DID documents whose verification methods are the accounts
owning the token. Owners are read from TheGraph-style subgraphs, optionally
at the block current at a requested ``versionTime``, and controller DIDs are
attributed through Ceramic caip10-link streams.

Key Components:
- resolve: The resolution pipeline and the did:nft method handler
- subgraph: GraphQL transport to the ownership and block indexers
- app: HTTP driver, settings, metrics and CLI entry points
"""

from ceramic.nftdid.resolve.identifier import (
    AssetReference,
    ErcNamespace,
    caip_to_did,
    did_to_caip,
)
from ceramic.nftdid.resolve.resolver import NftResolver, get_resolver

__all__ = [
    "AssetReference",
    "ErcNamespace",
    "NftResolver",
    "caip_to_did",
    "did_to_caip",
    "get_resolver",
]
