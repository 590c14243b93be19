"""DID document assembly for resolved NFTs."""

from typing import List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from ceramic.nftdid.resolve.controllers import account_id

VERIFICATION_METHOD_TYPE = "BlockchainVerificationMethod2021"
OWNER_FRAGMENT = "owner"

DID_CONTEXT = "https://w3id.org/did/v1"


class VerificationMethod(BaseModel):
    """Blockchain account that may act for the DID."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: str = VERIFICATION_METHOD_TYPE
    controller: str
    blockchain_account_id: str = Field(alias="blockchainAccountId")


class DIDDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    context: Optional[str] = Field(default=None, alias="@context")
    id: str
    verification_method: List[VerificationMethod] = Field(alias="verificationMethod")
    controller: Optional[Union[str, List[str]]] = None

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def wrap_document(
    did: str,
    chain_id: str,
    owners: Sequence[str],
    controllers: Optional[Sequence[str]] = None,
) -> DIDDocument:
    """
    Build the DID document for an NFT from its owners and linked controllers.

    Args:
        did: The DID being resolved, without query or fragment
        chain_id: CAIP-2 chain id the owners live on
        owners: Owner addresses in ownership order
        controllers: Linked controller DIDs in owner order

    Returns:
        DIDDocument with one verification method per owner. ``controller`` is
        omitted without controllers, a string for one and a list for several.
    """
    methods = [
        VerificationMethod(
            id=f"{did}#{OWNER_FRAGMENT}",
            controller=did,
            blockchain_account_id=account_id(chain_id, owner),
        )
        for owner in owners
    ]
    document = DIDDocument(id=did, verification_method=methods)
    if controllers:
        document.controller = (
            controllers[0] if len(controllers) == 1 else list(controllers)
        )
    return document
