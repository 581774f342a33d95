"""Associated token account address derivation."""

from __future__ import annotations

from solders.pubkey import Pubkey
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID


def get_associated_token_address(
    owner: Pubkey,
    mint: Pubkey,
    program_id: Pubkey = TOKEN_PROGRAM_ID,
) -> Pubkey:
    """Canonical token account of `owner` for `mint` under a token program.

    Seeds are [owner, token program, mint] under the associated token program.
    """
    address, _ = Pubkey.find_program_address(
        [bytes(owner), bytes(program_id), bytes(mint)],
        ASSOCIATED_TOKEN_PROGRAM_ID,
    )
    return address
