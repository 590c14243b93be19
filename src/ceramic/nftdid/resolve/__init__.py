"""
NFT DID Resolution

This package resolves did:nft identifiers into DID documents listing the
accounts that own the token, optionally at a past moment given by the
``versionTime`` query parameter.

Key Components:
- identifier.py: did:nft <-> CAIP-19 codec and versionTime handling
- chains.py: Per-chain subgraph configuration and its validation
- blocks.py: Maps a versionTime to the block height to query at
- ownership.py: ERC721 and ERC1155 owner lookups
- controllers.py: Controller DIDs from CAIP-10 identity links
- document.py: DID document assembly
- resolver.py: The method handler, content negotiation and error envelope
- errors.py: Error taxonomy
- __main__.py: CLI interface for resolution

The resolution flow follows these steps:
1. Decode the DID into a chain, contract and token id
2. If a versionTime older than the chain's skew is given, find the last block
   at or before it
3. Query the owner (erc721) or holders (erc1155) of the token at that block
4. Look up the controller DID linked to each owning account, concurrently
5. Assemble the document and apply content negotiation
"""
