from typing import List
import argparse
import aiohttp
import asyncio
import json
import logging

from ceramic.nftdid.app.cli import configure_logging
from ceramic.nftdid.app.config import Settings, load_chains
from ceramic.nftdid.resolve.controllers import CeramicLinkStore
from ceramic.nftdid.resolve.resolver import NftResolver

logger = logging.getLogger(__name__)


async def realMain() -> None:
    parser = argparse.ArgumentParser(prog="resolve", description="Resolve did:nft DIDs")
    parser.add_argument("did", nargs="+", help="The DID(s) to resolve.")
    parser.add_argument(
        "--config",
        default=None,
        help="JSON file with the chain configuration. Defaults to the CHAINS setting.",
    )
    parser.add_argument(
        "--ceramic",
        default=None,
        help="The Ceramic API URL used to look up caip10-link controllers.",
    )
    parser.add_argument(
        "--accept",
        default=None,
        help="The representation to request, e.g. application/did+ld+json.",
    )

    args = vars(parser.parse_args())

    settings = Settings()  # type: ignore
    chains = load_chains(args["config"]) if args.get("config") else settings.chains
    ceramic_api_url = args.get("ceramic") or settings.ceramic_api_url

    dids: List[str] = args.get("did", [])

    async with aiohttp.ClientSession() as session:
        resolver = NftResolver(
            chains, CeramicLinkStore(session, ceramic_api_url), session
        )
        for did in dids:
            result = await resolver.resolve(did, accept=args.get("accept"))
            print(json.dumps(result.to_dict(), indent=2))


def main() -> None:
    configure_logging()
    asyncio.run(realMain())


if __name__ == "__main__":
    main()
