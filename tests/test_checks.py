"""Tests for checks.py: pure functions, no mocking needed."""

import pytest
from solders.pubkey import Pubkey

from spl_token_mcp.checks import check_decimals, check_mint, check_owner
from spl_token_mcp.errors import DecimalsMismatch, MintMismatch, OwnerMismatch

ACCOUNT = Pubkey.new_unique()
PROGRAM = Pubkey.new_unique()


class TestCheckOwner:
    def test_match(self):
        assert check_owner(ACCOUNT, PROGRAM, PROGRAM) is None

    def test_mismatch(self):
        other = Pubkey.new_unique()
        with pytest.raises(OwnerMismatch) as exc:
            check_owner(ACCOUNT, other, PROGRAM)
        assert exc.value.address == ACCOUNT
        assert exc.value.owner == other
        assert exc.value.program_id == PROGRAM
        assert str(other) in str(exc.value)
        assert str(PROGRAM) in str(exc.value)


class TestCheckDecimals:
    def test_not_asserted(self):
        assert check_decimals(ACCOUNT, 6, None) is None

    def test_match(self):
        assert check_decimals(ACCOUNT, 6, 6) is None

    def test_zero_is_asserted(self):
        with pytest.raises(DecimalsMismatch):
            check_decimals(ACCOUNT, 6, 0)

    def test_mismatch(self):
        with pytest.raises(DecimalsMismatch, match="has decimals 6, not configured decimals 9"):
            check_decimals(ACCOUNT, 6, 9)


class TestCheckMint:
    def test_not_asserted(self):
        assert check_mint(ACCOUNT, Pubkey.new_unique(), None) is None

    def test_mismatch(self):
        held, wanted = Pubkey.new_unique(), Pubkey.new_unique()
        with pytest.raises(MintMismatch) as exc:
            check_mint(ACCOUNT, held, wanted)
        assert exc.value.actual == held
        assert exc.value.expected == wanted
