"""Universal-resolver style driver endpoint for did:nft."""

import logging
from typing import Optional
from urllib.parse import urlencode

from aiohttp import web

from ceramic.nftdid.app.config import ResolverAppKey

logger = logging.getLogger(__name__)

RESOLUTION_RESULT_TYPES = (
    "*/*",
    "application/json",
    "application/ld+json",
)
"""Accept values that ask for the resolution result rather than a representation."""

ERROR_STATUS = {
    "invalidDid": 400,
    "representationNotSupported": 406,
}


def requested_representation(accept_header: Optional[str]) -> Optional[str]:
    """Pick the DID document representation asked for by an Accept header."""
    if not accept_header:
        return None
    media_type = accept_header.split(",")[0].split(";")[0].strip()
    if media_type in RESOLUTION_RESULT_TYPES:
        return None
    return media_type


async def handle_resolve_identifier(request: web.Request):
    """
    GET /1.0/identifiers/{did}

    The DID URL is taken from the path. A versionTime sent as an HTTP query
    parameter instead of inside the encoded DID URL is carried over.
    """
    resolver = request.app[ResolverAppKey]
    did_url = request.match_info["did"]
    if "?" not in did_url and "versionTime" in request.query:
        did_url += "?" + urlencode({"versionTime": request.query["versionTime"]})

    accept = requested_representation(request.headers.get("Accept"))
    result = await resolver.resolve(did_url, accept=accept)

    status = 200
    if result.error is not None:
        status = ERROR_STATUS.get(result.error, 500)
    return web.json_response(result.to_dict(), status=status)
