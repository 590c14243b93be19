"""Pin historical resolutions to a block height.

A versionTime older than the chain's skew window is translated into the
number of the last block mined at or before that time. Requests without a
versionTime, or with one inside the skew window, resolve against the latest
state and make no block query at all.
"""

import logging
import time
from typing import Optional

from ceramic.nftdid.resolve.chains import ChainConfig
from ceramic.nftdid.resolve.errors import NoBlockBeforeTimestamp, TransportError
from ceramic.nftdid.subgraph.client import SubgraphClient
from ceramic.nftdid.subgraph.query import GraphEnum

logger = logging.getLogger(__name__)


def now_millis() -> int:
    return int(time.time() * 1000)


def is_within_skew(timestamp: int, skew: int, now: Optional[int] = None) -> bool:
    """Check whether a unix timestamp (seconds) is within skew ms of now.

    The boundary is inclusive: a timestamp exactly ``skew`` ms old still
    counts as current. Timestamps in the future are current as well.
    """
    if now is None:
        now = now_millis()
    return now - timestamp * 1000 <= skew


def block_query(timestamp: int) -> dict:
    return {
        "blocks": {
            "__args": {
                "first": 1,
                "orderBy": GraphEnum("timestamp"),
                "orderDirection": GraphEnum("desc"),
                # lte: the last block known at the given time, never a later one
                "where": {"timestamp_lte": timestamp},
            },
            "number": True,
        }
    }


async def block_at_time(
    client: SubgraphClient,
    chain: ChainConfig,
    timestamp: Optional[int],
    now: Optional[int] = None,
) -> Optional[int]:
    """
    Decide which block height a resolution should be pinned to.

    Args:
        client: Subgraph transport
        chain: Configuration of the asset's chain
        timestamp: Requested versionTime as unix seconds, or None
        now: Current time in unix milliseconds, defaults to the wall clock

    Returns:
        The block number to query at, or None for the latest state

    Raises:
        NoBlockBeforeTimestamp: If the chain has no block at or before timestamp
        TransportError: If the blocks subgraph call fails
    """
    if timestamp is None:
        return None
    if is_within_skew(timestamp, chain.skew, now):
        logger.debug("versionTime %s is within skew, using latest state", timestamp)
        return None

    data = await client.query(chain.blocks, block_query(timestamp))
    blocks = data.get("blocks")
    if not isinstance(blocks, list):
        raise TransportError.missing_data()
    if len(blocks) == 0:
        raise NoBlockBeforeTimestamp.at(timestamp)

    try:
        number = int(blocks[0]["number"])
    except (KeyError, TypeError, ValueError) as e:
        raise TransportError.missing_data() from e
    logger.debug("versionTime %s pinned to block %s", timestamp, number)
    return number
