"""Per-invocation context: who is acting, and on which mint and token accounts."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from solana.rpc.async_api import AsyncClient
from solders.pubkey import Pubkey

from . import account, checks, rpc
from .config import Settings
from .errors import AccountDecodeError, AccountError, AccountNotFound, ResolutionError
from .pda import get_associated_token_address
from .state import UnpackError, unpack_mint, unpack_token_account
from .types import AccountCheck, KeypairPath, KeypairSource, MintInfo

logger = logging.getLogger(__name__)

# Generic authority argument that, for backwards compatibility, overrides
# every named address or authority argument.
OWNER_ARG = "owner"


@dataclass(frozen=True)
class Config:
    rpc_client: AsyncClient | None
    websocket_url: str
    output_format: str
    fee_payer: Pubkey | None
    default_keypair: KeypairSource | None
    nonce_account: Pubkey | None = None
    nonce_authority: Pubkey | None = None
    sign_only: bool = False
    dump_transaction_message: bool = False
    multisigner_pubkeys: tuple[Pubkey, ...] = ()
    program_id: Pubkey = Pubkey.default()

    # -----------------------------------------------------------------------
    # Address and signer resolution
    # -----------------------------------------------------------------------

    def pubkey_or_default(self, args: Mapping[str, Any], address_name: str) -> Pubkey:
        """Explicit address argument if given, otherwise the default address.

        Raises ResolutionError if the address cannot be determined.
        """
        # compat shim: a given --owner beats the named argument (see _default_address)
        if address_name != OWNER_ARG and not args.get(OWNER_ARG):
            address = account.pubkey_of_signer(args, address_name)
            if address is not None:
                return address
        return self._default_address(args)

    def signer_or_default(self, args: Mapping[str, Any], authority_name: str):
        """Explicit signer argument if given, otherwise the default signer.

        Returns (signer, signer pubkey). When multisig signers are configured,
        or the invocation is sign-only, bare pubkeys resolve to NullSigners so
        co-signer keys need not be present.
        """
        allow_null_signer = bool(self.multisigner_pubkeys) or self.sign_only
        keypair_path = args.get(authority_name)
        # compat shim: a given --owner beats the named argument (see _default_signer)
        if authority_name != OWNER_ARG and keypair_path and not args.get(OWNER_ARG):
            authority = account.signer_from_path(
                args, keypair_path, authority_name, allow_null_signer
            )
        else:
            authority = self._default_signer(args, allow_null_signer)
        return authority, authority.pubkey()

    def _default_address(self, args: Mapping[str, Any]) -> Pubkey:
        # for backwards compatibility, check owner before the configured default
        owner = account.pubkey_of_signer(args, OWNER_ARG)
        if owner is not None:
            return owner
        return account.resolve_source_pubkey(self._default_source(), args)

    def _default_signer(self, args: Mapping[str, Any], allow_null_signer: bool):
        # for backwards compatibility, check owner before the configured default
        owner_path = args.get(OWNER_ARG)
        if owner_path:
            return account.signer_from_path(args, owner_path, OWNER_ARG, allow_null_signer)
        return account.resolve_source_signer(self._default_source(), args, allow_null_signer)

    def _default_source(self) -> KeypairSource:
        return account.require_default_source(self.default_keypair)

    # -----------------------------------------------------------------------
    # Mint and token account validation
    # -----------------------------------------------------------------------

    async def _fetch(self, address: Pubkey, what: str):
        if self.rpc_client is None:
            raise ResolutionError("No RPC client configured for an online invocation")
        acc = await rpc.get_account(self.rpc_client, address)
        if acc is None:
            raise AccountNotFound(address, what)
        return acc

    async def get_mint_info(self, mint: Pubkey, mint_decimals: int | None = None) -> MintInfo:
        if self.sign_only:
            logger.debug("sign-only: assuming mint %s with %s decimals", mint, mint_decimals)
            return MintInfo(
                program_id=self.program_id,
                address=mint,
                decimals=mint_decimals or 0,
            )

        acc = await self._fetch(mint, "mint account")
        try:
            mint_state = unpack_mint(bytes(acc.data))
        except UnpackError as e:
            logger.debug("Mint %s failed to decode: %s", mint, e)
            raise AccountDecodeError(mint, "mint account") from e
        self.check_owner(mint, acc.owner)
        checks.check_decimals(mint, mint_state.decimals, mint_decimals)
        return MintInfo(program_id=acc.owner, address=mint, decimals=mint_state.decimals)

    def check_owner(self, address: Pubkey, owner: Pubkey) -> None:
        checks.check_owner(address, owner, self.program_id)

    async def check_account(
        self, token_account: Pubkey, mint_address: Pubkey | None = None
    ) -> Pubkey:
        """Validate a token account and return the mint it holds."""
        if self.sign_only:
            logger.debug("sign-only: skipping checks for token account %s", token_account)
            return mint_address if mint_address is not None else Pubkey.default()

        acc = await self._fetch(token_account, "token account")
        try:
            source_account = unpack_token_account(bytes(acc.data))
        except UnpackError as e:
            logger.debug("Token account %s failed to decode: %s", token_account, e)
            raise AccountDecodeError(token_account, "token account") from e
        checks.check_mint(token_account, source_account.mint, mint_address)
        self.check_owner(token_account, acc.owner)
        return source_account.mint

    async def check_accounts(
        self, token_accounts: Iterable[Pubkey], mint_address: Pubkey | None = None
    ) -> list[AccountCheck]:
        """Validate several token accounts concurrently, one result per account."""

        async def _one(address: Pubkey) -> AccountCheck:
            try:
                mint = await self.check_account(address, mint_address)
            except AccountError as e:
                logger.warning("Token account %s failed validation: %s", address, e)
                return AccountCheck(address=address, error=str(e))
            return AccountCheck(address=address, mint=mint)

        # every slot settles before a transport failure is re-raised
        outcomes = await asyncio.gather(
            *(_one(a) for a in token_accounts), return_exceptions=True
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return list(outcomes)

    # -----------------------------------------------------------------------
    # Associated token addresses
    # -----------------------------------------------------------------------

    async def associated_token_address_or_override(
        self, args: Mapping[str, Any], override_name: str
    ) -> Pubkey:
        """Explicit token account if given, else the default owner's ATA for `token`."""
        token = account.pubkey_of_signer(args, "token")
        return await self.associated_token_address_for_token_or_override(
            args, override_name, token
        )

    async def associated_token_address_for_token_or_override(
        self, args: Mapping[str, Any], override_name: str, token: Pubkey | None
    ) -> Pubkey:
        address = account.pubkey_of_signer(args, override_name)
        if address is not None:
            return address
        if token is None:
            raise ResolutionError(
                f"No token given and no --{override_name.replace('_', '-')} provided"
            )
        program_id = (await self.get_mint_info(token)).program_id
        return self.associated_token_address_for_token_and_program(args, token, program_id)

    def associated_token_address_for_token_and_program(
        self, args: Mapping[str, Any], token: Pubkey, program_id: Pubkey
    ) -> Pubkey:
        owner = self._default_address(args)
        return get_associated_token_address(owner, token, program_id)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def build_config(
    settings: Settings,
    args: Mapping[str, Any],
    rpc_client: AsyncClient | None,
    default_keypair: KeypairSource | None = None,
    resolve_fee_payer: bool = True,
) -> Config:
    """Assemble the invocation context from settings plus command arguments.

    Arguments win over settings. Resolves the nonce accounts and, unless
    `resolve_fee_payer` is off, the fee payer; a missing default keypair then
    raises ResolutionError here. Identity-only commands pass
    `resolve_fee_payer=False` so the default keypair is read only if a
    resolver falls back to it.
    """
    if default_keypair is None:
        keypair_path = args.get("keypair") or settings.keypair_path
        if keypair_path:
            default_keypair = KeypairPath(keypair_path)

    program_id = account.parse_pubkey(args.get("program_id") or settings.program_id)

    multisigner_pubkeys = tuple(
        account.pubkey_from_path(args, signer, "multisig_signer")
        for signer in args.get("multisig_signer") or ()
    )

    fee_payer = account.pubkey_of_signer(args, "fee_payer")
    if fee_payer is None and resolve_fee_payer:
        fee_payer = account.resolve_source_pubkey(
            account.require_default_source(default_keypair), args
        )

    return Config(
        rpc_client=rpc_client,
        websocket_url=args.get("websocket_url") or settings.websocket_url or "",
        output_format=args.get("output") or settings.output_format,
        fee_payer=fee_payer,
        default_keypair=default_keypair,
        nonce_account=account.pubkey_of_signer(args, "nonce"),
        nonce_authority=account.pubkey_of_signer(args, "nonce_authority"),
        sign_only=bool(args.get("sign_only") or settings.sign_only),
        dump_transaction_message=bool(
            args.get("dump_transaction_message") or settings.dump_transaction_message
        ),
        multisigner_pubkeys=multisigner_pubkeys,
        program_id=program_id,
    )
