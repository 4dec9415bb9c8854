"""Account identifiers: EIP-55 checksummed 20-byte addresses."""

from eth_utils import is_address, to_checksum_address

NULL_ADDRESS = "0x" + "0" * 40


def normalize(account: str) -> str:
    """Checksum an address so lookups never depend on hex casing.

    Raises ValueError for anything that is not a 20-byte address.
    """
    if not isinstance(account, str) or not is_address(account):
        raise ValueError(f"Not an address: {account!r}")
    return to_checksum_address(account)


def normalize_many(accounts) -> list[str]:
    # All-or-nothing: a bad entry fails before any caller writes.
    return [normalize(a) for a in accounts]
