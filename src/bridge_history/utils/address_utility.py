"""
Address helpers for the bridge history service.
"""

import string

from web3 import Web3


def to_account_address(address: str) -> str:
    """
    Convert hex input into the checksummed 20-byte form the indexer stores.

    Short input is left-padded with zeros and longer input keeps its last
    20 bytes, so any hex string maps to an address.

    Args:
        address: Hex string, with or without 0x prefix, any casing

    Returns:
        Checksummed address

    Raises:
        ValueError: If the input is empty or contains non-hex characters
    """
    raw = address[2:] if address[:2] in ("0x", "0X") else address
    if not raw or any(char not in string.hexdigits for char in raw):
        raise ValueError(f"Invalid address: {address}")

    return Web3.to_checksum_address("0x" + raw[-40:].lower().rjust(40, "0"))
