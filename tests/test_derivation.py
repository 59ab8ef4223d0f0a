"""
Tests for the Derived Address Computer.

solders implements the same derivations natively and serves as the
reference oracle.
"""

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from idl_scanner import derivation
from idl_scanner.derivation import (
    PDA_MARKER,
    create_program_address,
    create_with_seed,
    find_program_address,
    idl_address,
)
from idl_scanner.errors import (
    IllegalOwner,
    InvalidSeeds,
    MaxSeedLengthExceeded,
    NoValidSeedBump,
)

KNOWN_PROGRAMS = [
    "Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS",
    "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
    "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc",
    "11111111111111111111111111111111",
]


class TestFindProgramAddress:
    """Tests for the off-curve bump search."""

    @pytest.mark.parametrize("program", KNOWN_PROGRAMS)
    def test_matches_reference(self, program):
        program_id = Pubkey.from_string(program)

        signer = find_program_address([], program_id)
        expected_address, expected_bump = Pubkey.find_program_address([], program_id)

        assert signer.address == expected_address
        assert signer.bump == expected_bump

    def test_deterministic(self, program_id):
        first = find_program_address([], program_id)
        second = find_program_address([], program_id)

        assert first == second

    @pytest.mark.parametrize("program", KNOWN_PROGRAMS)
    def test_result_is_off_curve(self, program):
        signer = find_program_address([], Pubkey.from_string(program))
        assert not signer.address.is_on_curve()

    def test_curve_oracle_sanity(self):
        """Keypair public keys are on the curve, so the oracle can say yes."""
        assert Keypair().pubkey().is_on_curve()

    def test_with_seeds_matches_reference(self, program_id):
        seeds = [b"anchor:idl", bytes(program_id)]

        signer = find_program_address(seeds, program_id)
        expected_address, expected_bump = Pubkey.find_program_address(seeds, program_id)

        assert signer.address == expected_address
        assert signer.bump == expected_bump

    def test_bump_is_first_off_curve_from_top(self, program_id):
        signer = find_program_address([], program_id)

        for bump in range(255, signer.bump, -1):
            with pytest.raises(InvalidSeeds):
                create_program_address([bytes([bump])], program_id)
        assert create_program_address([bytes([signer.bump])], program_id) == signer.address

    def test_exhausted_search_raises(self, program_id, monkeypatch):
        class OnCurve:
            def is_on_curve(self):
                return True

        class AlwaysOnCurvePubkey:
            @staticmethod
            def from_bytes(raw):
                return OnCurve()

        monkeypatch.setattr(derivation, "Pubkey", AlwaysOnCurvePubkey)

        with pytest.raises(NoValidSeedBump):
            find_program_address([], program_id)

    def test_seed_too_long(self, program_id):
        with pytest.raises(MaxSeedLengthExceeded):
            find_program_address([b"x" * 33], program_id)

    def test_too_many_seeds(self, program_id):
        with pytest.raises(MaxSeedLengthExceeded):
            find_program_address([b"s"] * 16, program_id)


class TestCreateProgramAddress:
    """Tests for a single program address step."""

    def test_some_bumps_land_on_curve(self, program_id):
        failures = 0
        for bump in range(256):
            try:
                create_program_address([bytes([bump])], program_id)
            except InvalidSeeds:
                failures += 1
        assert 0 < failures < 256

    def test_off_curve_matches_reference(self, program_id):
        signer = find_program_address([], program_id)
        expected = Pubkey.create_program_address([bytes([signer.bump])], program_id)
        assert create_program_address([bytes([signer.bump])], program_id) == expected


class TestCreateWithSeed:
    """Tests for the seed-derived account address."""

    @pytest.mark.parametrize("program", KNOWN_PROGRAMS)
    def test_matches_reference(self, program):
        owner = Pubkey.from_string(program)
        base = Keypair().pubkey()

        assert create_with_seed(base, "anchor:idl", owner) == Pubkey.create_with_seed(base, "anchor:idl", owner)

    def test_deterministic(self, program_id):
        base = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")

        assert create_with_seed(base, "anchor:idl", program_id) == create_with_seed(base, "anchor:idl", program_id)

    def test_each_input_changes_result(self, program_id):
        base = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
        other = Pubkey.from_string("whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc")
        reference = create_with_seed(base, "anchor:idl", program_id)

        assert create_with_seed(other, "anchor:idl", program_id) != reference
        assert create_with_seed(base, "anchor:IDL", program_id) != reference
        assert create_with_seed(base, "anchor:idl", other) != reference

    def test_seed_too_long(self, program_id):
        with pytest.raises(MaxSeedLengthExceeded):
            create_with_seed(program_id, "s" * 33, program_id)

    def test_seed_at_limit(self, program_id):
        assert isinstance(create_with_seed(program_id, "s" * 32, program_id), Pubkey)

    def test_illegal_owner(self, program_id):
        owner = Pubkey.from_bytes(b"\x00" * (32 - len(PDA_MARKER)) + PDA_MARKER)

        with pytest.raises(IllegalOwner):
            create_with_seed(program_id, "anchor:idl", owner)


class TestIdlAddress:
    """Tests for the composed IDL account derivation."""

    def test_composes_both_derivations(self, program_id):
        signer, address = idl_address(program_id)
        expected_signer, _ = Pubkey.find_program_address([], program_id)

        assert signer.address == expected_signer
        assert address == Pubkey.create_with_seed(expected_signer, "anchor:idl", program_id)

    def test_differs_per_program(self):
        _, first = idl_address(Pubkey.from_string(KNOWN_PROGRAMS[0]))
        _, second = idl_address(Pubkey.from_string(KNOWN_PROGRAMS[1]))

        assert first != second
