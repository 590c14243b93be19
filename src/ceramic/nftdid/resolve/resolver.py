"""did:nft resolution dispatch.

NftResolver is the method handler registered for the ``nft`` DID method. It
runs the resolution pipeline

    decode -> pin block -> query owners -> link controllers -> assemble -> negotiate

and always returns a ResolutionResult: any failure becomes an error envelope
and no stage after a failing one runs.
"""

import logging
from time import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from aiohttp import ClientSession
from pydantic import BaseModel, ConfigDict, Field
import sentry_sdk

from ceramic.nftdid.app.metrics import MetricsClient, NoOpMetricsClient
from ceramic.nftdid.resolve.blocks import block_at_time
from ceramic.nftdid.resolve.chains import ChainRegistry, validate_chains
from ceramic.nftdid.resolve.controllers import LinkStore, link_controllers
from ceramic.nftdid.resolve.document import DID_CONTEXT, DIDDocument, wrap_document
from ceramic.nftdid.resolve.errors import (
    ConfigError,
    MalformedIdentifier,
    RepresentationNotSupported,
    ResolutionError,
)
from ceramic.nftdid.resolve.identifier import (
    parse_method_id,
    parse_version_time,
    version_time_param,
)
from ceramic.nftdid.resolve.ownership import owners_of
from ceramic.nftdid.subgraph.client import SubgraphClient

logger = logging.getLogger(__name__)

METHOD = "nft"

DID_JSON = "application/did+json"
DID_LD_JSON = "application/did+ld+json"


class ParsedDID(BaseModel):
    """A DID URL split into its parts."""

    did: str
    method: str
    id: str
    query: Optional[str] = None
    fragment: Optional[str] = None


class ResolutionOptions(BaseModel):
    accept: Optional[str] = None


class ResolutionMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content_type: Optional[str] = Field(default=None, alias="contentType")
    error: Optional[str] = None
    message: Optional[str] = None


class DocumentMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version_time: Optional[str] = Field(default=None, alias="versionTime")


class ResolutionResult(BaseModel):
    """Result envelope. Either a document and content type, or an error."""

    did_resolution_metadata: ResolutionMetadata
    did_document: Optional[DIDDocument] = None
    did_document_metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)

    @staticmethod
    def failure(error: str, message: str) -> "ResolutionResult":
        return ResolutionResult(
            did_resolution_metadata=ResolutionMetadata(error=error, message=message),
        )

    @property
    def error(self) -> Optional[str]:
        return self.did_resolution_metadata.error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "didResolutionMetadata": self.did_resolution_metadata.model_dump(
                by_alias=True, exclude_none=True
            ),
            "didDocument": (
                self.did_document.to_dict() if self.did_document is not None else None
            ),
            "didDocumentMetadata": self.did_document_metadata.model_dump(
                by_alias=True, exclude_none=True
            ),
        }


ResolverHandler = Callable[
    [str, ParsedDID, Any, ResolutionOptions], Awaitable[ResolutionResult]
]


def parse_did(did_url: str) -> ParsedDID:
    """Split ``did:<method>:<id>[?query][#fragment]`` into a ParsedDID."""
    rest, hash_sep, fragment = did_url.strip().partition("#")
    did, query_sep, query = rest.partition("?")
    scheme, _, remainder = did.partition(":")
    method, _, method_id = remainder.partition(":")
    if scheme != "did" or not method or not method_id:
        raise MalformedIdentifier.missing_parts(did_url)
    return ParsedDID(
        did=did,
        method=method,
        id=method_id,
        query=query if query_sep else None,
        fragment=fragment if hash_sep else None,
    )


def negotiate(result: ResolutionResult, content_type: str) -> ResolutionResult:
    """Apply content negotiation to a finished resolution.

    An unsupported content type replaces the outcome, successful or not,
    with a representationNotSupported error.
    """
    if content_type == DID_JSON:
        return result
    if content_type == DID_LD_JSON:
        if result.did_document is not None:
            result.did_document.context = DID_CONTEXT
            result.did_resolution_metadata.content_type = DID_LD_JSON
        return result
    error = RepresentationNotSupported.for_content_type(content_type)
    return ResolutionResult.failure(error.error, str(error))


class NftResolver:
    """
    Resolver for did:nft identifiers.

    The chain configuration and the link store are checked once, here; a
    misconfigured resolver fails to construct with ConfigError instead of
    failing resolutions later.

    Args:
        chains: Mapping of CAIP-2 chain ids to chain configuration
        link_store: Identity-link store used for controller attribution
        session: Shared aiohttp session for subgraph queries
        metrics: Metrics client, defaults to a no-op client
    """

    def __init__(
        self,
        chains: Mapping[str, Any],
        link_store: LinkStore,
        session: ClientSession,
        metrics: Optional[MetricsClient] = None,
    ):
        self.registry: ChainRegistry = validate_chains(chains)
        if link_store is None:
            raise ConfigError.no_link_store()
        self.link_store = link_store
        self.client = SubgraphClient(session)
        self.metrics = metrics or NoOpMetricsClient()

    def get_resolver(self) -> Dict[str, ResolverHandler]:
        """Return the method registry entry for this resolver."""
        return {METHOD: self.handle}

    async def resolve_document(
        self, did: str, method_id: str, query: Optional[str] = None
    ) -> ResolutionResult:
        """Run the resolution pipeline, raising on the first failure."""
        asset = parse_method_id(method_id)
        timestamp = parse_version_time(query)
        chain = self.registry.get_chain(asset.chain_id)

        block_number = await block_at_time(self.client, chain, timestamp)
        owners = await owners_of(self.client, self.registry, asset, block_number)
        controllers = await link_controllers(self.link_store, asset.chain_id, owners)

        return ResolutionResult(
            did_resolution_metadata=ResolutionMetadata(content_type=DID_JSON),
            did_document=wrap_document(did, asset.chain_id, owners, controllers),
            did_document_metadata=DocumentMetadata(
                version_time=version_time_param(query)
            ),
        )

    async def handle(
        self,
        did: str,
        parsed: ParsedDID,
        resolver: Any = None,
        options: Optional[ResolutionOptions] = None,
    ) -> ResolutionResult:
        """
        Method handler called by a DID resolver for ``did:nft`` identifiers.

        Never raises: every failure is returned as an invalidDid result, and a
        failing metrics backend is reported without affecting the result.

        Args:
            did: The DID being resolved
            parsed: The parsed DID URL
            resolver: The calling resolver, unused
            options: Resolution options, ``accept`` selects the content type

        Returns:
            ResolutionResult: Document and metadata, or an error envelope
        """
        content_type = (options.accept if options else None) or DID_JSON
        start_time = time()
        try:
            result = await self.resolve_document(parsed.did, parsed.id, parsed.query)
        except ResolutionError as e:
            logger.info("Failed to resolve %s: %s", did, e)
            result = ResolutionResult.failure(e.error, str(e))
        except Exception as e:
            logger.exception("Unexpected error resolving %s", did)
            sentry_sdk.capture_exception(e)
            result = ResolutionResult.failure("invalidDid", str(e))

        result = negotiate(result, content_type)

        try:
            self.metrics.timer("nftdid.resolve.time", time() - start_time)
            self.metrics.increment(
                "nftdid.resolve.count",
                1,
                tag_dict={"outcome": result.error or "success", "accept": content_type},
            )
        except Exception as e:
            logger.exception("Failed to record resolution metrics")
            sentry_sdk.capture_exception(e)
        return result

    async def resolve(
        self, did_url: str, accept: Optional[str] = None
    ) -> ResolutionResult:
        """Parse a DID URL and resolve it, as a generic DID resolver would."""
        try:
            parsed = parse_did(did_url)
            if parsed.method != METHOD:
                raise MalformedIdentifier(f"Unsupported DID method: {parsed.method}")
        except MalformedIdentifier as e:
            return negotiate(
                ResolutionResult.failure(e.error, str(e)), accept or DID_JSON
            )
        return await self.handle(
            did_url, parsed, self, ResolutionOptions(accept=accept)
        )


def get_resolver(
    chains: Mapping[str, Any],
    link_store: LinkStore,
    session: ClientSession,
    metrics: Optional[MetricsClient] = None,
) -> Dict[str, ResolverHandler]:
    """Build an NftResolver and return its method registry entry."""
    return NftResolver(chains, link_store, session, metrics).get_resolver()
