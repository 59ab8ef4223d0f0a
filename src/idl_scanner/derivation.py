"""
Derived Address Computer for the IDL Scanner.

Reproduces the two address derivations Anchor uses to locate a program's
IDL account:

1. The program signer: a program-derived address (PDA) found with an
   empty seed list, searching bumps downwards from 255 until the SHA-256
   digest is off the ed25519 curve.
2. The IDL account: SHA-256 over (signer, "anchor:idl", program ID),
   i.e. a create-with-seed address based on the signer.

Both are pure. Anyone can compute them offline, which is exactly why an
unclaimed IDL account can be front-run.
"""

import hashlib
import logging
from typing import Sequence, Tuple

from solders.pubkey import Pubkey

from .errors import IllegalOwner, InvalidSeeds, MaxSeedLengthExceeded, NoValidSeedBump
from .models import ProgramSigner
from .scanner import ANCHOR_IDL_MARKER

logger = logging.getLogger(__name__)

PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEED_LEN = 32
MAX_SEEDS = 16
MAX_BUMP = 255


def _check_seeds(seeds: Sequence[bytes], reserved: int = 0) -> None:
    if len(seeds) > MAX_SEEDS - reserved:
        raise MaxSeedLengthExceeded(f"Too many seeds: {len(seeds)} (max {MAX_SEEDS - reserved})")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise MaxSeedLengthExceeded(f"Seed of {len(seed)} bytes exceeds {MAX_SEED_LEN}")


def _program_address_digest(seeds: Sequence[bytes], program_id: Pubkey) -> bytes:
    hasher = hashlib.sha256()
    for seed in seeds:
        hasher.update(seed)
    hasher.update(bytes(program_id))
    hasher.update(PDA_MARKER)
    return hasher.digest()


def create_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey:
    """
    Compute a program address for an exact seed list.

    Raises:
        MaxSeedLengthExceeded: If the seeds break the length limits
        InvalidSeeds: If the digest is a valid curve point
    """
    _check_seeds(seeds)

    candidate = Pubkey.from_bytes(_program_address_digest(seeds, program_id))
    if candidate.is_on_curve():
        raise InvalidSeeds(f"Seeds produce an on-curve address for {program_id}")
    return candidate


def find_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> ProgramSigner:
    """
    Find the first off-curve program address, trying bumps 255 down to 0.

    Args:
        seeds: Seed list; the bump is appended as one extra one-byte seed
        program_id: Program that owns the derived address

    Returns:
        ProgramSigner with the address and the bump that produced it

    Raises:
        MaxSeedLengthExceeded: If the seeds break the length limits
        NoValidSeedBump: If every bump yields an on-curve point
    """
    _check_seeds(seeds, reserved=1)

    for bump in range(MAX_BUMP, -1, -1):
        digest = _program_address_digest([*seeds, bytes([bump])], program_id)
        candidate = Pubkey.from_bytes(digest)
        if not candidate.is_on_curve():
            logger.debug(f"Program address {candidate} found with bump {bump}")
            return ProgramSigner(address=candidate, bump=bump)

    raise NoValidSeedBump(f"No bump in 0..{MAX_BUMP} yields an off-curve address for {program_id}")


def create_with_seed(base: Pubkey, seed: str, owner: Pubkey) -> Pubkey:
    """
    Derive an account address from a base key, a text seed and an owner.

    The SHA-256 digest of base || seed || owner is the address, no search.

    Raises:
        MaxSeedLengthExceeded: If the seed is longer than 32 bytes
        IllegalOwner: If the owner itself looks like a program-derived address
    """
    seed_bytes = seed.encode("utf-8")
    if len(seed_bytes) > MAX_SEED_LEN:
        raise MaxSeedLengthExceeded(f"Seed of {len(seed_bytes)} bytes exceeds {MAX_SEED_LEN}")

    owner_bytes = bytes(owner)
    if owner_bytes[-len(PDA_MARKER):] == PDA_MARKER:
        raise IllegalOwner(f"Owner {owner} ends with the program-derived address marker")

    digest = hashlib.sha256(bytes(base) + seed_bytes + owner_bytes).digest()
    return Pubkey.from_bytes(digest)


def idl_address(program_id: Pubkey) -> Tuple[ProgramSigner, Pubkey]:
    """Derive the program signer and the IDL account address for a program."""
    signer = find_program_address([], program_id)
    address = create_with_seed(signer.address, ANCHOR_IDL_MARKER.decode("ascii"), program_id)
    logger.info(f"IDL account for {program_id}: {address} (signer {signer.address}, bump {signer.bump})")
    return signer, address
