"""Unit tests for address normalization."""

import pytest

from bridge_history.utils.address_utility import to_account_address

ADDRESS = "0x85BfE05492aFC3D04Ff3B2ca6771ACF6f853d90d"


def test_full_address_is_checksummed():
    assert to_account_address(ADDRESS.lower()) == ADDRESS
    assert to_account_address(ADDRESS.lower()[2:]) == ADDRESS


def test_short_address_is_left_padded():
    assert to_account_address("0xABC").lower() == "0x" + "0" * 37 + "abc"
    assert to_account_address("0x1").lower() == "0x" + "0" * 39 + "1"


def test_long_address_keeps_last_twenty_bytes():
    assert to_account_address("0xff" + ADDRESS[2:].lower()) == ADDRESS


@pytest.mark.parametrize("value", ["", "0x", "not-an-address", "0xZZ"])
def test_non_hex_is_rejected(value):
    with pytest.raises(ValueError, match="Invalid address"):
        to_account_address(value)
