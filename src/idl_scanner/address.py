"""
Address parsing for the IDL Scanner.

Ledger addresses are 32-byte public keys written in base58.
"""

import logging

import base58
from solders.pubkey import Pubkey

from .errors import InvalidAddress

logger = logging.getLogger(__name__)

PUBKEY_LENGTH = 32

# A 32-byte key encodes to at most 44 base58 characters
MAX_BASE58_LENGTH = 44


def parse_address(text: str) -> Pubkey:
    """
    Parse a base58 address into a Pubkey.

    Args:
        text: The textual address, e.g. a program ID from the command line

    Returns:
        The decoded Pubkey

    Raises:
        InvalidAddress: If the text is not base58 or not exactly 32 bytes
    """
    if not text or len(text) > MAX_BASE58_LENGTH:
        raise InvalidAddress(f"Invalid address '{text}': wrong length")
    if any(c.isspace() for c in text):
        raise InvalidAddress(f"Invalid address '{text}': contains whitespace")

    try:
        raw = base58.b58decode(text)
    except ValueError as e:
        raise InvalidAddress(f"Invalid address '{text}': {e}") from e

    if len(raw) != PUBKEY_LENGTH:
        raise InvalidAddress(
            f"Invalid address '{text}': decodes to {len(raw)} bytes, expected {PUBKEY_LENGTH}"
        )

    logger.debug(f"Parsed address {text}")
    return Pubkey.from_bytes(raw)
