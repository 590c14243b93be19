"""
Unit tests for the did:nft identifier codec in ceramic.nftdid.resolve.identifier

Tests cover decoding, encoding, token id canonicalization, versionTime
handling and rejection of malformed identifiers.
"""

from datetime import datetime, timezone

import pytest

from ceramic.nftdid.resolve.errors import MalformedIdentifier
from ceramic.nftdid.resolve.identifier import (
    AssetReference,
    ErcNamespace,
    caip_to_did,
    canonical_token_id,
    did_to_caip,
    format_version_time,
    parse_method_id,
    parse_version_time,
    split_chain_id,
    split_did,
)

CONTRACT = "0x1234567891234567891234567891234596351156"

HEX_DID = f"did:nft:eip155:1_erc721:{CONTRACT}_0x1"
INT_DID = f"did:nft:eip155:1_erc721:{CONTRACT}_1"
VERSION_TIME = "2021-08-09T17:21:20Z"
VERSION_TIMESTAMP = 1628529680


class TestCanonicalTokenId:
    """Test suite for token id canonicalization."""

    def test_decimal_to_hex(self):
        assert canonical_token_id("1") == "0x1"
        assert canonical_token_id("255") == "0xff"

    def test_hex_lowercased(self):
        assert canonical_token_id("0xFF") == "0xff"
        assert canonical_token_id("0XaB") == "0xab"

    def test_leading_zeros_dropped(self):
        assert canonical_token_id("0x0001") == "0x1"
        assert canonical_token_id("007") == "0x7"

    def test_large_token_id(self):
        value = str(2**256 - 1)
        assert canonical_token_id(value) == "0x" + "f" * 64

    @pytest.mark.parametrize("value", ["", "abc", "-1", "0x", "1_000", " 1", "0xzz"])
    def test_invalid_token_id(self, value):
        with pytest.raises(MalformedIdentifier, match="Not a valid NFT token id"):
            canonical_token_id(value)


class TestAssetReference:
    """Test suite for the AssetReference model."""

    def test_parse_caip19(self):
        asset = AssetReference.parse(f"eip155:1/erc721:{CONTRACT}/0x1")
        assert asset.chain_namespace == "eip155"
        assert asset.chain_reference == "1"
        assert asset.asset_namespace == ErcNamespace.erc721
        assert asset.contract == CONTRACT
        assert asset.token_id == "0x1"
        assert asset.chain_id == "eip155:1"

    def test_str_is_caip19(self):
        asset = AssetReference.parse(f"eip155:1/erc1155:{CONTRACT}/16")
        assert str(asset) == f"eip155:1/erc1155:{CONTRACT}/0x10"

    def test_decimal_and_hex_are_equal(self):
        from_hex = AssetReference.parse(f"eip155:1/erc721:{CONTRACT}/0x1")
        from_int = AssetReference.parse(f"eip155:1/erc721:{CONTRACT}/1")
        assert from_hex == from_int
        assert hash(from_hex) == hash(from_int)

    def test_direct_construction_canonicalizes(self):
        asset = AssetReference(
            chain_namespace="eip155",
            chain_reference="1",
            asset_namespace=ErcNamespace.erc1155,
            contract=CONTRACT,
            token_id="10",
        )
        assert asset.token_id == "0xa"
        assert asset.token_number == 10

    def test_parse_rejects_missing_parts(self):
        with pytest.raises(MalformedIdentifier):
            AssetReference.parse(f"eip155:1/erc721:{CONTRACT}")


class TestParseMethodId:
    """Test suite for decoding the method-specific id."""

    def test_parse_erc721(self):
        asset = parse_method_id(f"eip155:1_erc721:{CONTRACT}_0x1")
        assert asset == AssetReference.parse(f"eip155:1/erc721:{CONTRACT}/1")

    def test_parse_other_chain(self):
        asset = parse_method_id(f"cosmos:iov-mainnet_erc1155:{CONTRACT}_1")
        assert asset.chain_id == "cosmos:iov-mainnet"
        assert asset.asset_namespace == ErcNamespace.erc1155

    def test_chain_reference_with_underscore(self):
        asset = parse_method_id(f"cosmos:iov_net_erc721:{CONTRACT}_1")
        assert asset.chain_id == "cosmos:iov_net"
        assert asset.contract == CONTRACT

    def test_legacy_dotted_form(self):
        asset = parse_method_id(f"eip155.1_erc721.{CONTRACT}_1")
        assert asset == parse_method_id(f"eip155:1_erc721:{CONTRACT}_0x1")

    def test_unsupported_namespace(self):
        with pytest.raises(MalformedIdentifier) as exc_info:
            parse_method_id(f"eip155:1_erc123:{CONTRACT}_1")
        assert str(exc_info.value) == (
            "Only erc721 and erc1155 namespaces are currently supported. Given: erc123"
        )

    @pytest.mark.parametrize(
        "method_id",
        [
            "",
            "eip155:1",
            f"eip155:1_erc721:{CONTRACT}",
            f"eip155:1_erc721:_1",
            f"eip155:1_:{CONTRACT}_1",
            f"_erc721:{CONTRACT}_1",
            f"eip155_erc721:{CONTRACT}_1",
            f"eip155:1_erc721:{CONTRACT}_",
        ],
    )
    def test_missing_parts(self, method_id):
        with pytest.raises(MalformedIdentifier):
            parse_method_id(method_id)


class TestDidToCaip:
    """Test suite for did_to_caip."""

    def test_hex_and_int_decode_equal(self):
        assert did_to_caip(HEX_DID) == did_to_caip(INT_DID)

    def test_query_is_ignored(self):
        with_time = did_to_caip(f"{INT_DID}?versionTime={VERSION_TIME}")
        assert with_time == did_to_caip(HEX_DID)

    def test_fragment_is_ignored(self):
        assert did_to_caip(f"{HEX_DID}#owner") == did_to_caip(HEX_DID)

    def test_wrong_method(self):
        with pytest.raises(MalformedIdentifier):
            did_to_caip(f"did:web:{CONTRACT}")

    def test_split_did(self):
        assert split_did(f"{HEX_DID}?versionTime={VERSION_TIME}") == (
            f"eip155:1_erc721:{CONTRACT}_0x1",
            f"versionTime={VERSION_TIME}",
        )
        assert split_did(HEX_DID) == (f"eip155:1_erc721:{CONTRACT}_0x1", None)


class TestCaipToDid:
    """Test suite for caip_to_did."""

    def test_encode(self):
        asset = AssetReference.parse(f"eip155:1/erc721:{CONTRACT}/1")
        assert caip_to_did(asset) == HEX_DID

    def test_encode_with_timestamp(self):
        asset = AssetReference.parse(f"eip155:1/erc721:{CONTRACT}/1")
        assert caip_to_did(asset, VERSION_TIMESTAMP) == (
            f"{HEX_DID}?versionTime={VERSION_TIME}"
        )

    def test_encode_truncates_sub_seconds(self):
        asset = AssetReference.parse(f"eip155:1/erc721:{CONTRACT}/1")
        moment = datetime(2021, 8, 9, 17, 21, 20, 987000, tzinfo=timezone.utc)
        assert caip_to_did(asset, moment).endswith(f"?versionTime={VERSION_TIME}")
        assert caip_to_did(asset, VERSION_TIMESTAMP + 0.9).endswith(VERSION_TIME)

    def test_round_trip(self):
        for did in (HEX_DID, INT_DID, f"did:nft:eip155:1_erc1155:{CONTRACT}_0xABC"):
            asset = did_to_caip(did)
            encoded = caip_to_did(asset)
            assert did_to_caip(encoded) == asset
            assert caip_to_did(did_to_caip(encoded)) == encoded

    def test_legacy_form_reencoded_with_colons(self):
        asset = did_to_caip(f"did:nft:eip155.1_erc721.{CONTRACT}_1")
        assert caip_to_did(asset) == HEX_DID


class TestVersionTime:
    """Test suite for versionTime parsing and formatting."""

    def test_parse(self):
        assert parse_version_time(f"versionTime={VERSION_TIME}") == VERSION_TIMESTAMP

    def test_parse_millis_are_floored(self):
        assert parse_version_time("versionTime=2021-03-16T10:05:21.999Z") == 1615889121

    def test_parse_among_other_params(self):
        query = f"versionId=abc&versionTime={VERSION_TIME}"
        assert parse_version_time(query) == VERSION_TIMESTAMP

    def test_parse_offset(self):
        assert (
            parse_version_time("versionTime=2021-08-09T19:21:20%2B02:00")
            == VERSION_TIMESTAMP
        )

    def test_absent(self):
        assert parse_version_time(None) is None
        assert parse_version_time("") is None
        assert parse_version_time("versionId=abc") is None

    def test_invalid(self):
        with pytest.raises(MalformedIdentifier, match="Not a valid versionTime"):
            parse_version_time("versionTime=yesterday")

    def test_format(self):
        assert format_version_time(VERSION_TIMESTAMP) == VERSION_TIME


class TestSplitChainId:
    def test_valid(self):
        assert split_chain_id("eip155:1") == ("eip155", "1")

    @pytest.mark.parametrize("chain_id", ["eip155.1", "eip155", ":1", "EIP155:1", "ab:1"])
    def test_invalid(self, chain_id):
        assert split_chain_id(chain_id) is None
