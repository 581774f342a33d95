"""SDK-light data types shared by the resolvers, validators and tool handlers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from solders.keypair import Keypair
from solders.pubkey import Pubkey


# ---------------------------------------------------------------------------
# Default keypair source
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InMemoryKeypair:
    """Keypair held in memory. Used by tests to avoid touching the filesystem."""

    keypair: Keypair


@dataclass(frozen=True)
class KeypairPath:
    """Signer source string as given on the command line or in config."""

    path: str

    @classmethod
    def from_path(cls, path: str | Path) -> KeypairPath:
        return cls(str(path))


KeypairSource = Union[InMemoryKeypair, KeypairPath]


# ---------------------------------------------------------------------------
# Mint / token account
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MintInfo:
    program_id: Pubkey
    address: Pubkey
    decimals: int


@dataclass(frozen=True)
class Mint:
    """Decoded mint base state."""

    mint_authority: Pubkey | None
    supply: int
    decimals: int
    is_initialized: bool
    freeze_authority: Pubkey | None
    has_extensions: bool = False


@dataclass(frozen=True)
class TokenAccount:
    """Decoded token account base state."""

    mint: Pubkey
    owner: Pubkey
    amount: int
    delegate: Pubkey | None
    state: int  # 1 = initialized, 2 = frozen
    is_native: int | None  # rent-exempt reserve for wrapped SOL
    delegated_amount: int
    close_authority: Pubkey | None
    has_extensions: bool = False

    @property
    def is_frozen(self) -> bool:
        return self.state == 2


# ---------------------------------------------------------------------------
# Tool return types
# ---------------------------------------------------------------------------

@dataclass
class AccountCheck:
    """One slot of a batch token-account validation."""

    address: Pubkey
    mint: Pubkey | None = None
    error: str | None = None

    @property
    def passed(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "address": str(self.address),
            "mint": str(self.mint) if self.mint is not None else None,
            "error": self.error,
        }
