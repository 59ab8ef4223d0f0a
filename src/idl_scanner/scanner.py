"""
Pattern Scanner for the IDL Scanner.

Looks for the byte markers that Anchor compiles into programs which
ship the on-chain IDL instructions.
"""

import logging

from .models import MarkerScan

logger = logging.getLogger(__name__)

# Seed of the IDL account and name of the instruction that creates it
ANCHOR_IDL_MARKER = b"anchor:idl"
IDL_CREATE_ACCOUNT_MARKER = b"IdlCreateAccount"


def contains(buffer: bytes, marker: bytes) -> bool:
    """Return True if marker occurs as a contiguous byte run in buffer."""
    if len(buffer) < len(marker):
        return False
    return marker in buffer


def scan_markers(buffer: bytes) -> MarkerScan:
    """Scan a program binary once per IDL marker."""
    result = MarkerScan(
        anchor_idl=contains(buffer, ANCHOR_IDL_MARKER),
        idl_create_account=contains(buffer, IDL_CREATE_ACCOUNT_MARKER),
    )
    logger.info(
        f"Marker scan over {len(buffer)} bytes: "
        f"anchor:idl={result.anchor_idl} IdlCreateAccount={result.idl_create_account}"
    )
    return result
