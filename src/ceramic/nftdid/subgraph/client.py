"""HTTP transport for subgraph (indexer) GraphQL queries."""

import logging
from typing import Any, Dict

from aiohttp import ClientError, ClientSession

from ceramic.nftdid.resolve.errors import TransportError
from ceramic.nftdid.subgraph.query import render_query

logger = logging.getLogger(__name__)


class SubgraphClient:
    """Posts GraphQL queries to subgraph endpoints over a shared aiohttp session.

    Every failure, whether a connection error, a non-200 status, a body that is
    not JSON or a GraphQL error payload, is raised as TransportError. Nothing
    is retried.
    """

    def __init__(self, session: ClientSession):
        self.session = session

    async def query(self, url: str, query: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run a query against a subgraph and return its ``data`` object.

        Args:
            url: Subgraph endpoint
            query: Query dict as accepted by render_query()

        Returns:
            The ``data`` member of the GraphQL response

        Raises:
            TransportError: If the request fails or the payload is malformed
        """
        body = {"query": render_query(query)}
        logger.debug("Querying subgraph %s: %s", url, body["query"])
        try:
            async with self.session.post(
                url,
                json=body,
                headers={"Accept": "application/json"},
            ) as resp:
                if resp.status != 200:
                    raise TransportError.bad_status(url, resp.status)
                payload = await resp.json()
        except (ClientError, ValueError) as e:
            raise TransportError.query_failed(url, str(e)) from e

        if not isinstance(payload, dict):
            raise TransportError.missing_data()

        error = payload.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise TransportError.query_failed(url, str(message))
        errors = payload.get("errors")
        if errors:
            first = errors[0]
            message = first.get("message") if isinstance(first, dict) else str(first)
            raise TransportError.query_failed(url, str(message))

        data = payload.get("data")
        if not isinstance(data, dict):
            raise TransportError.missing_data()
        return data
