"""Controller attribution through CAIP-10 identity links.

An account that owns a token can publish a caip10-link stream on Ceramic
asserting which DID controls it. Every owner is looked up independently and
concurrently, and the linked DIDs are reported as controllers of the NFT's DID
document in owner order.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from aiohttp import ClientError, ClientSession

from ceramic.nftdid.resolve.errors import TransportError

logger = logging.getLogger(__name__)

CAIP10_LINK_STREAM_TYPE = 1
CAIP10_LINK_FAMILY = "caip10-link"


class LinkStore(Protocol):
    """Identity-link lookup: CAIP-10 account id to at most one controller DID."""

    async def controller_of(self, account_id: str) -> Optional[str]: ...


def account_id(chain_id: str, address: str) -> str:
    """Format a CAIP-10 account id, e.g. ``eip155:1:0xabc``."""
    return f"{chain_id}:{address}"


class CeramicLinkStore:
    """LinkStore backed by caip10-link streams on a Ceramic node.

    The stream for an account is deterministic, so the lookup creates (or
    loads) it from its genesis header and reads the linked DID from the
    stream's content.
    """

    def __init__(self, session: ClientSession, api_url: str):
        self.session = session
        self.api_url = api_url.rstrip("/")

    def genesis_request(self, account: str) -> Dict[str, Any]:
        return {
            "type": CAIP10_LINK_STREAM_TYPE,
            "genesis": {
                "header": {
                    "family": CAIP10_LINK_FAMILY,
                    "controllers": [account],
                }
            },
            "opts": {"anchor": False, "publish": False},
        }

    async def controller_of(self, account_id: str) -> Optional[str]:
        url = f"{self.api_url}/api/v0/streams"
        try:
            async with self.session.post(
                url, json=self.genesis_request(account_id)
            ) as resp:
                if resp.status != 200:
                    raise TransportError.link_lookup_failed(
                        account_id, f"HTTP {resp.status}"
                    )
                body = await resp.json()
        except (ClientError, ValueError) as e:
            raise TransportError.link_lookup_failed(account_id, str(e)) from e

        state = body.get("state") if isinstance(body, dict) else None
        content = (state or {}).get("content")
        if isinstance(content, str) and content.startswith("did:"):
            return content
        return None


async def link_controllers(
    store: LinkStore, chain_id: str, owners: Sequence[str]
) -> List[str]:
    """
    Resolve the controller DID linked to each owning account.

    Lookups run concurrently; results keep the order of ``owners`` regardless
    of completion order. Owners without a link are skipped. A controller
    linked from several owners is listed once per owner.

    Args:
        store: Identity-link store
        chain_id: CAIP-2 chain id of the owning accounts
        owners: Owner addresses in ownership order

    Returns:
        Controller DIDs, empty when no owner is linked

    Raises:
        TransportError: If any lookup fails
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [
                tg.create_task(store.controller_of(account_id(chain_id, owner)))
                for owner in owners
            ]
    except ExceptionGroup as group:
        raise group.exceptions[0] from group

    controllers = [task.result() for task in tasks]
    return [controller for controller in controllers if controller is not None]
