"""did:nft identifier codec.

Maps between the did:nft method grammar and CAIP-19 asset references:

    did:nft:<namespace>:<reference>_<assetNamespace>:<contract>_<tokenId>[?versionTime=<ISO8601>]
    <namespace>:<reference>/<assetNamespace>:<contract>/<tokenId>

Token ids are accepted in decimal or 0x-prefixed hexadecimal and are always
emitted as lower-case 0x-prefixed hexadecimal, so decimal and hexadecimal
spellings of the same token decode to equal references.
"""

from datetime import datetime, timezone
from enum import Enum
import math
import re
from typing import Optional, Tuple, Union
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, field_validator

from ceramic.nftdid.resolve.errors import MalformedIdentifier

DID_PREFIX = "did:nft:"

CHAIN_NAMESPACE_PATTERN = re.compile(r"[-a-z0-9]{3,8}")
CHAIN_REFERENCE_PATTERN = re.compile(r"[-_a-zA-Z0-9]{1,32}")
CONTRACT_PATTERN = re.compile(r"[-.%a-zA-Z0-9]{1,128}")
TOKEN_ID_PATTERN = re.compile(r"0[xX][0-9a-fA-F]+|[0-9]+")

VERSION_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class ErcNamespace(str, Enum):
    """Supported asset namespaces and their ownership model."""

    erc721 = "erc721"
    erc1155 = "erc1155"


class AssetReference(BaseModel):
    """A CAIP-19 reference to a single non-fungible token."""

    model_config = ConfigDict(frozen=True)

    chain_namespace: str
    chain_reference: str
    asset_namespace: ErcNamespace
    contract: str
    token_id: str

    @field_validator("token_id", mode="before")
    @classmethod
    def canonicalize_token_id(cls, v) -> str:
        return canonical_token_id(str(v))

    @property
    def chain_id(self) -> str:
        """CAIP-2 chain id, e.g. ``eip155:1``."""
        return f"{self.chain_namespace}:{self.chain_reference}"

    @property
    def token_number(self) -> int:
        return int(self.token_id, 16)

    def __str__(self) -> str:
        return (
            f"{self.chain_id}/{self.asset_namespace.value}:{self.contract}/{self.token_id}"
        )

    @classmethod
    def parse(cls, value: str) -> "AssetReference":
        """Parse a CAIP-19 asset id such as ``eip155:1/erc721:0xabc/1``."""
        parts = value.split("/")
        if len(parts) != 3 or not all(parts):
            raise MalformedIdentifier.missing_parts(value)
        chain_id, asset_type, token_id = parts
        asset_namespace, _, contract = asset_type.partition(":")
        return _build_reference(value, chain_id, asset_namespace, contract, token_id)


def canonical_token_id(token_id: str) -> str:
    """Return the lower-case 0x hex form of a decimal or hex token id."""
    if TOKEN_ID_PATTERN.fullmatch(token_id) is None:
        raise MalformedIdentifier.invalid_token_id(token_id)
    base = 16 if token_id[:2].lower() == "0x" else 10
    return hex(int(token_id, base))


def split_chain_id(chain_id: str) -> Optional[Tuple[str, str]]:
    """Split a CAIP-2 chain id into namespace and reference, or None if invalid."""
    namespace, sep, reference = chain_id.partition(":")
    if (
        not sep
        or CHAIN_NAMESPACE_PATTERN.fullmatch(namespace) is None
        or CHAIN_REFERENCE_PATTERN.fullmatch(reference) is None
    ):
        return None
    return namespace, reference


def _build_reference(
    source: str, chain_id: str, asset_namespace: str, contract: str, token_id: str
) -> AssetReference:
    chain = split_chain_id(chain_id)
    if chain is None or not asset_namespace or not contract:
        raise MalformedIdentifier.missing_parts(source)
    if asset_namespace not in ErcNamespace.__members__:
        raise MalformedIdentifier.unsupported_namespace(asset_namespace)
    if CONTRACT_PATTERN.fullmatch(contract) is None:
        raise MalformedIdentifier.missing_parts(source)
    return AssetReference(
        chain_namespace=chain[0],
        chain_reference=chain[1],
        asset_namespace=ErcNamespace(asset_namespace),
        contract=contract,
        token_id=token_id,
    )


def parse_method_id(method_id: str) -> AssetReference:
    """Decode the method-specific part of a did:nft identifier.

    The split is taken from the right because CAIP-2 chain references may
    themselves contain underscores. The dotted separators of early did:nft
    identifiers (``eip155.1_erc721.0xabc_1``) are accepted as well.
    """
    parts = method_id.rsplit("_", 2)
    if len(parts) != 3 or not all(parts):
        raise MalformedIdentifier.missing_parts(method_id)
    chain_id, asset_type, token_id = parts

    if ":" not in chain_id:
        chain_id = chain_id.replace(".", ":", 1)
    if ":" in asset_type:
        asset_namespace, _, contract = asset_type.partition(":")
    else:
        asset_namespace, _, contract = asset_type.partition(".")

    return _build_reference(method_id, chain_id, asset_namespace, contract, token_id)


def split_did(did: str) -> Tuple[str, Optional[str]]:
    """Split a did:nft URL into its method-specific id and query string."""
    if not did.startswith(DID_PREFIX):
        raise MalformedIdentifier.missing_parts(did)
    did = did.partition("#")[0]
    method_id, sep, query = did[len(DID_PREFIX):].partition("?")
    return method_id, (query if sep else None)


def did_to_caip(did: str) -> AssetReference:
    """Decode a did:nft identifier (with or without query) into a CAIP-19 reference."""
    method_id, _ = split_did(did)
    return parse_method_id(method_id)


def parse_version_time(query: Optional[str]) -> Optional[int]:
    """Return the ``versionTime`` query parameter as unix seconds, if present."""
    value = version_time_param(query)
    if value is None:
        return None
    try:
        moment = datetime.fromisoformat(value)
    except ValueError:
        raise MalformedIdentifier.invalid_version_time(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return math.floor(moment.timestamp())


def version_time_param(query: Optional[str]) -> Optional[str]:
    for part in (query or "").split("&"):
        key, _, value = part.partition("=")
        if key == "versionTime" and value:
            return unquote(value)
    return None


def format_version_time(timestamp: Union[int, float, datetime]) -> str:
    """Serialize a moment as whole-second ISO-8601 UTC with a Z suffix."""
    if isinstance(timestamp, datetime):
        moment = timestamp
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        moment = moment.astimezone(timezone.utc)
    else:
        moment = datetime.fromtimestamp(math.floor(timestamp), tz=timezone.utc)
    return moment.strftime(VERSION_TIME_FORMAT)


def caip_to_did(
    asset: AssetReference, timestamp: Union[int, float, datetime, None] = None
) -> str:
    """Encode a CAIP-19 reference as a did:nft identifier.

    A ``versionTime`` query is appended only when a timestamp is given.
    """
    did = (
        f"{DID_PREFIX}{asset.chain_id}"
        f"_{asset.asset_namespace.value}:{asset.contract}_{asset.token_id}"
    )
    if timestamp is not None:
        did += f"?versionTime={format_version_time(timestamp)}"
    return did
