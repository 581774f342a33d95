"""Mint and token-account decoding for SPL Token and Token-2022.

Token-2022 accounts carry extension data after the base state. The base
state is padded to the token-account length, followed by an account-type
byte, then TLV extension entries. Only the base state is decoded here.
"""

from __future__ import annotations

from solders.pubkey import Pubkey
from spl.token._layouts import ACCOUNT_LAYOUT, MINT_LAYOUT

from .types import Mint, TokenAccount

MINT_LEN = 82
ACCOUNT_LEN = 165
MULTISIG_LEN = 355

ACCOUNT_TYPE_MINT = 1
ACCOUNT_TYPE_ACCOUNT = 2

STATE_UNINITIALIZED = 0
STATE_FROZEN = 2


class UnpackError(ValueError):
    pass


def _check_extension_data(data: bytes, base_len: int, account_type: int) -> bool:
    """Validate the bytes past the base state. Returns True if extensions follow."""
    if len(data) == MULTISIG_LEN:
        raise UnpackError("multisig account")
    if len(data) < base_len:
        raise UnpackError(f"expected at least {base_len} bytes, got {len(data)}")
    rest = data[base_len:]
    if not rest:
        return False
    type_index = ACCOUNT_LEN - base_len
    if len(rest) <= type_index:
        raise UnpackError("truncated extension data")
    if any(rest[:type_index]):
        raise UnpackError("non-zero padding before account type")
    if rest[type_index] != account_type:
        raise UnpackError(f"account type {rest[type_index]}, expected {account_type}")
    return True


def _coption_pubkey(tag: int, raw: bytes) -> Pubkey | None:
    if tag == 0:
        return None
    if tag == 1:
        return Pubkey.from_bytes(raw)
    raise UnpackError(f"invalid option tag {tag}")


def unpack_mint(data: bytes) -> Mint:
    has_extensions = _check_extension_data(data, MINT_LEN, ACCOUNT_TYPE_MINT)
    parsed = MINT_LAYOUT.parse(data[:MINT_LEN])
    if not parsed.is_initialized:
        raise UnpackError("mint is not initialized")
    return Mint(
        mint_authority=_coption_pubkey(parsed.mint_authority_option, parsed.mint_authority),
        supply=parsed.supply,
        decimals=parsed.decimals,
        is_initialized=True,
        freeze_authority=_coption_pubkey(parsed.freeze_authority_option, parsed.freeze_authority),
        has_extensions=has_extensions,
    )


def unpack_token_account(data: bytes) -> TokenAccount:
    has_extensions = _check_extension_data(data, ACCOUNT_LEN, ACCOUNT_TYPE_ACCOUNT)
    parsed = ACCOUNT_LAYOUT.parse(data[:ACCOUNT_LEN])
    if parsed.state == STATE_UNINITIALIZED:
        raise UnpackError("token account is not initialized")
    if parsed.state > STATE_FROZEN:
        raise UnpackError(f"invalid account state {parsed.state}")
    if parsed.is_native_option not in (0, 1):
        raise UnpackError(f"invalid option tag {parsed.is_native_option}")
    return TokenAccount(
        mint=Pubkey.from_bytes(parsed.mint),
        owner=Pubkey.from_bytes(parsed.owner),
        amount=parsed.amount,
        delegate=_coption_pubkey(parsed.delegate_option, parsed.delegate),
        state=parsed.state,
        is_native=parsed.is_native if parsed.is_native_option else None,
        delegated_amount=parsed.delegated_amount,
        close_authority=_coption_pubkey(parsed.close_authority_option, parsed.close_authority),
        has_extensions=has_extensions,
    )
