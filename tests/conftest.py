"""
Shared test configuration and fixtures for the did:nft resolver tests.

Subgraph and Ceramic traffic is faked at the aiohttp session boundary: each
fake session returns queued JSON responses from ``post`` and records the
calls so tests can assert on URLs, query documents and ordering.
"""

from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from aiohttp import ClientResponse, ClientSession

ERC721_QUERY_URL = "https://api.thegraph.com/subgraphs/name/touchain/erc721track"
ERC1155_QUERY_URL = "https://api.thegraph.com/subgraphs/name/amxx/eip1155-subgraph"
BLOCK_QUERY_URL = "https://api.thegraph.com/subgraphs/name/yyong1010/ethereumblocks"

ETH_CHAIN_ID = "eip155:1"

ERC721_CONTRACT = "0x7e789e2dd1340971de0a9bca35b14ac0939aa330"
ERC721_OWNER = "0x431cf61e7aff8e68142f6263e9fadde40aff8c7d"

ERC1155_CONTRACT = "0x06eb48572a2ef9a3b230d69ca731330793b65bdc"
ERC1155_OWNERS = [
    "0xef1bd3fc679a6f0cd296b59aff99ddc21409869f",
    "0x5bb822302e78c978f3d73cd7565ad92240779cae",
    "0xa84de981f6f6d2d78e8d59239db73c89f058cb58",
]

BLOCK_NUMBER = "1234567"

CONTROLLER_DID = "did:3:testing"


def erc721_owner_response(owner: str = ERC721_OWNER) -> Dict[str, Any]:
    return {"data": {"tokens": [{"owner": {"id": owner}}]}}


def erc1155_owners_response(owners=ERC1155_OWNERS, values=None) -> Dict[str, Any]:
    values = values or ["1"] * len(owners)
    balances = [
        {"account": {"id": owner}, "value": value}
        for owner, value in zip(owners, values)
    ]
    return {"data": {"tokens": [{"balances": balances}]}}


def block_response(number: str = BLOCK_NUMBER) -> Dict[str, Any]:
    return {"data": {"blocks": [{"number": number}]}}


NO_TOKENS_RESPONSE = {"data": {"tokens": []}}
NO_BALANCES_RESPONSE = {"data": {"tokens": [{"balances": []}]}}


def json_response(payload: Any, status: int = 200) -> MagicMock:
    """An async context manager yielding a response with the given JSON body."""
    response = AsyncMock(spec=ClientResponse)
    response.status = status
    response.json.return_value = payload

    context = MagicMock()
    context.__aenter__.return_value = response
    context.__aexit__.return_value = False
    return context


def mock_session(*payloads: Any) -> AsyncMock:
    """A ClientSession whose successive post() calls return the given payloads."""
    session = AsyncMock(spec=ClientSession)
    session.post = Mock(side_effect=[json_response(payload) for payload in payloads])
    return session


def posted_url(session: AsyncMock, index: int) -> str:
    return session.post.call_args_list[index].args[0]


def posted_query(session: AsyncMock, index: int) -> str:
    return session.post.call_args_list[index].kwargs["json"]["query"]


def chain_entry(
    erc721: Optional[str] = ERC721_QUERY_URL,
    erc1155: Optional[str] = ERC1155_QUERY_URL,
    skew: int = 15000,
    blocks: str = BLOCK_QUERY_URL,
) -> Dict[str, Any]:
    assets = {}
    if erc721 is not None:
        assets["erc721"] = erc721
    if erc1155 is not None:
        assets["erc1155"] = erc1155
    return {"blocks": blocks, "skew": skew, "assets": assets}


@pytest.fixture
def chains() -> Dict[str, Any]:
    """Ethereum mainnet configured with the public subgraphs."""
    return {ETH_CHAIN_ID: chain_entry()}


@pytest.fixture
def link_store() -> AsyncMock:
    """Identity-link store with no links."""
    store = AsyncMock()
    store.controller_of.return_value = None
    return store


def linked_store(links: Dict[str, str]) -> AsyncMock:
    """Identity-link store resolving the given CAIP-10 account ids."""
    store = AsyncMock()
    store.controller_of.side_effect = lambda account: links.get(account)
    return store
