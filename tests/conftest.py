"""Shared fixtures for tests."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from spl.token._layouts import ACCOUNT_LAYOUT, MINT_LAYOUT
from spl.token.constants import TOKEN_PROGRAM_ID

from spl_token_mcp.context import Config
from spl_token_mcp.types import InMemoryKeypair, KeypairPath

EMPTY_KEY = bytes(32)


def mint_data(decimals: int = 6, supply: int = 1_000_000, authority: Pubkey | None = None) -> bytes:
    return MINT_LAYOUT.build(dict(
        mint_authority_option=1 if authority else 0,
        mint_authority=bytes(authority) if authority else EMPTY_KEY,
        supply=supply,
        decimals=decimals,
        is_initialized=1,
        freeze_authority_option=0,
        freeze_authority=EMPTY_KEY,
    ))


def token_account_data(mint: Pubkey, owner: Pubkey, amount: int = 100, state: int = 1) -> bytes:
    return ACCOUNT_LAYOUT.build(dict(
        mint=bytes(mint),
        owner=bytes(owner),
        amount=amount,
        delegate_option=0,
        delegate=EMPTY_KEY,
        state=state,
        is_native_option=0,
        is_native=0,
        delegated_amount=0,
        close_authority_option=0,
        close_authority=EMPTY_KEY,
    ))


def chain_account(owner: Pubkey, data: bytes) -> MagicMock:
    acc = MagicMock()
    acc.owner = owner
    acc.data = data
    return acc


def mock_rpc(accounts: dict[Pubkey, MagicMock]) -> AsyncMock:
    """AsyncClient stand-in serving get_account_info from a dict."""

    async def get_account_info(address, *args, **kwargs):
        resp = MagicMock()
        resp.value = accounts.get(address)
        return resp

    client = AsyncMock()
    client.get_account_info = AsyncMock(side_effect=get_account_info)
    return client


@pytest.fixture
def program_id() -> Pubkey:
    return TOKEN_PROGRAM_ID


@pytest.fixture
def default_keypair() -> Keypair:
    return Keypair.from_seed(bytes([7] * 32))


@pytest.fixture
def keypair_file(tmp_path: Path) -> tuple[Path, Keypair]:
    kp = Keypair.from_seed(bytes([9] * 32))
    path = tmp_path / "id.json"
    path.write_text(json.dumps(list(bytes(kp))))
    return path, kp


@pytest.fixture
def make_config(program_id: Pubkey, default_keypair: Keypair):
    def _make(
        rpc_client=None,
        sign_only=False,
        multisigner_pubkeys=(),
        default_source=None,
        program=None,
    ):
        return Config(
            rpc_client=rpc_client,
            websocket_url="",
            output_format="json",
            fee_payer=default_keypair.pubkey(),
            default_keypair=default_source or InMemoryKeypair(default_keypair),
            sign_only=sign_only,
            multisigner_pubkeys=tuple(multisigner_pubkeys),
            program_id=program or program_id,
        )

    return _make


@pytest.fixture
def untouchable_source(tmp_path: Path) -> KeypairPath:
    """Default keypair source that fails if anything tries to read it."""
    return KeypairPath(str(tmp_path / "does-not-exist.json"))
