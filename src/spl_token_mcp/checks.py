"""Pure account checks: no RPC imports.

Each check raises the matching AccountError on failure and returns None
otherwise, so mint and token-account validation report identical errors.
"""

from __future__ import annotations

from solders.pubkey import Pubkey

from .errors import DecimalsMismatch, MintMismatch, OwnerMismatch


def check_owner(account: Pubkey, owner: Pubkey, program_id: Pubkey) -> None:
    if owner != program_id:
        raise OwnerMismatch(account, owner, program_id)


def check_decimals(mint: Pubkey, actual: int, expected: int | None) -> None:
    """No-op when the caller did not assert decimals."""
    if expected is not None and expected != actual:
        raise DecimalsMismatch(mint, actual, expected)


def check_mint(account: Pubkey, actual: Pubkey, expected: Pubkey | None) -> None:
    if expected is not None and expected != actual:
        raise MintMismatch(account, actual, expected)
