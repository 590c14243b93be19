"""Error taxonomy for did:nft resolution.

Every failure a resolution can produce is a subclass of ResolutionError and is
converted into the invalidDid envelope by the dispatch handler. ConfigError is
outside that hierarchy: it is raised while constructing a resolver and is
never a resolution outcome.
"""


class ConfigError(Exception):
    """
    Raised when a resolver is constructed with an invalid chain configuration.
    """

    PREFIX = "Invalid config for nft-did-resolver"

    @staticmethod
    def no_chains() -> "ConfigError":
        """The chain map is missing or empty."""
        return ConfigError(f"{ConfigError.PREFIX}: no chains configured")

    @staticmethod
    def no_link_store() -> "ConfigError":
        """No identity-link store was given for controller lookups."""
        return ConfigError(f"{ConfigError.PREFIX}: no identity link store configured")

    @staticmethod
    def invalid_chain_id(chain_id: str) -> "ConfigError":
        """A chain map key is not a CAIP-2 chain id."""
        return ConfigError(
            f"{ConfigError.PREFIX}: Invalid chainId provided: {chain_id}"
        )

    @staticmethod
    def invalid_url(chain_id: str, field: str) -> "ConfigError":
        """An endpoint value is not a syntactically valid URL."""
        return ConfigError(
            f"{ConfigError.PREFIX}: Invalid URL for {field} of chain {chain_id}"
        )

    @staticmethod
    def invalid_chain(chain_id: str, detail: str) -> "ConfigError":
        """Any other shape problem in a chain entry."""
        return ConfigError(
            f"{ConfigError.PREFIX}: Invalid entry for chain {chain_id}: {detail}"
        )


class ResolutionError(Exception):
    """Base class for failures reported as a resolution result."""

    error = "invalidDid"


class MalformedIdentifier(ResolutionError):
    @staticmethod
    def missing_parts(method_id: str) -> "MalformedIdentifier":
        return MalformedIdentifier(f"Not a valid did:nft identifier: {method_id}")

    @staticmethod
    def unsupported_namespace(namespace: str) -> "MalformedIdentifier":
        return MalformedIdentifier(
            "Only erc721 and erc1155 namespaces are currently supported. "
            f"Given: {namespace}"
        )

    @staticmethod
    def invalid_token_id(token_id: str) -> "MalformedIdentifier":
        return MalformedIdentifier(f"Not a valid NFT token id: {token_id}")

    @staticmethod
    def invalid_version_time(value: str) -> "MalformedIdentifier":
        return MalformedIdentifier(f"Not a valid versionTime: {value}")


class ChainNotConfigured(ResolutionError):
    @staticmethod
    def for_chain(chain_id: str) -> "ChainNotConfigured":
        return ChainNotConfigured(f"No chain configuration for chainId: {chain_id}")


class NoBlockBeforeTimestamp(ResolutionError):
    @staticmethod
    def at(timestamp: int) -> "NoBlockBeforeTimestamp":
        return NoBlockBeforeTimestamp(f"No blocks exist before timestamp: {timestamp}")


class OwnerNotFound(ResolutionError):
    """No current or historical owner exists for the asset.

    The message always names the token id and the contract.
    """

    @staticmethod
    def for_token(
        standard: str, token_id: str, contract: str
    ) -> "OwnerNotFound":
        return OwnerNotFound(
            f"No owner found for {standard} NFT ID: {token_id} for contract: {contract}"
        )


class TransportError(ResolutionError):
    @staticmethod
    def bad_status(url: str, status: int) -> "TransportError":
        return TransportError(
            f"Received an invalid response from subgraph {url}: HTTP {status}"
        )

    @staticmethod
    def query_failed(url: str, message: str) -> "TransportError":
        return TransportError(f"Subgraph query to {url} failed: {message}")

    @staticmethod
    def missing_data() -> "TransportError":
        return TransportError("Missing data from subgraph query")

    @staticmethod
    def link_lookup_failed(account: str, message: str) -> "TransportError":
        return TransportError(
            f"Identity link lookup for {account} failed: {message}"
        )


class RepresentationNotSupported(ResolutionError):
    error = "representationNotSupported"

    @staticmethod
    def for_content_type(content_type: str) -> "RepresentationNotSupported":
        return RepresentationNotSupported(
            f"Unsupported representation: {content_type}"
        )
