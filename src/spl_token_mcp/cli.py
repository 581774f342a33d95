"""Command-line entry point. The only place that terminates the process on error."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from . import rpc
from .account import parse_pubkey
from .config import compute_websocket_url, settings
from .context import Config, build_config
from .errors import TokenAgentError

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("display", "json", "json-compact")
ONLINE_COMMANDS = ("mint-info", "check-account", "associated-address")
# commands that only resolve an address or signer and never need a fee payer
IDENTITY_COMMANDS = ("address", "signer", "associated-address")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spl-token-mcp",
        description="Resolve signers and validate SPL Token accounts.",
    )
    parser.add_argument("-u", "--url", help="JSON RPC URL (default: settings / Solana CLI config)")
    parser.add_argument("-k", "--keypair", help="Default signer source")
    parser.add_argument("--program-id", help="Token program id")
    parser.add_argument("--owner", help="Owner signer source; overrides every other address")
    parser.add_argument("--fee-payer", help="Fee payer signer source")
    parser.add_argument("--nonce", help="Durable nonce account")
    parser.add_argument("--nonce-authority", help="Durable nonce authority")
    parser.add_argument("--multisig-signer", action="append", help="Multisig co-signer (repeatable)")
    parser.add_argument("--signer", action="append", help="PUBKEY=SIGNATURE presigner (repeatable)")
    parser.add_argument("--sign-only", action="store_true", help="Work offline; trust supplied metadata")
    parser.add_argument("--dump-transaction-message", action="store_true")
    parser.add_argument("--output", choices=OUTPUT_FORMATS, help="Output format")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("address", help="Print the acting address")
    p.add_argument("--address", help="Explicit address or signer source")

    p = sub.add_parser("signer", help="Print the pubkey of the acting signer")
    p.add_argument("--authority", help="Explicit authority signer source")

    p = sub.add_parser("mint-info", help="Resolve and validate a mint")
    p.add_argument("token", help="Mint address")
    p.add_argument("--mint-decimals", type=int, help="Expected decimals")

    p = sub.add_parser("check-account", help="Validate token accounts")
    p.add_argument("accounts", nargs="+", help="Token account addresses")
    p.add_argument("--mint", help="Mint the accounts must hold")

    p = sub.add_parser("associated-address", help="Token account for a mint")
    p.add_argument("token", help="Mint address")
    p.add_argument("--address", help="Explicit token account")

    sub.add_parser("serve", help="Run the MCP server on stdio")
    return parser


def _print(config: Config, data: Any) -> None:
    if config.output_format == "json":
        print(json.dumps(data, indent=2))
    elif config.output_format == "json-compact":
        print(json.dumps(data, separators=(",", ":")))
    elif isinstance(data, dict):
        for key, value in data.items():
            print(f"{key}: {value}")
    elif isinstance(data, list):
        for item in data:
            print("  ".join(f"{k}: {v}" for k, v in item.items()))
    else:
        print(data)


async def run(args: dict[str, Any]) -> int:
    """Execute one command. Returns the process exit status."""
    command = args["command"]
    online = not (args.get("sign_only") or settings.sign_only) and command in ONLINE_COMMANDS
    if args.get("url"):
        args = {**args, "websocket_url": compute_websocket_url(args["url"])}
    resolve_fee_payer = command not in IDENTITY_COMMANDS
    if not online:
        config = build_config(
            settings, args, rpc_client=None, resolve_fee_payer=resolve_fee_payer
        )
        return await _dispatch(config, args)
    url = args.get("url") or settings.json_rpc_url
    async with rpc.open_client(url, settings.commitment) as client:
        config = build_config(
            settings, args, rpc_client=client, resolve_fee_payer=resolve_fee_payer
        )
        return await _dispatch(config, args)


async def _dispatch(config: Config, args: dict[str, Any]) -> int:
    command = args["command"]
    if command == "address":
        _print(config, {"address": str(config.pubkey_or_default(args, "address"))})
    elif command == "signer":
        _, pubkey = config.signer_or_default(args, "authority")
        _print(config, {"signer": str(pubkey)})
    elif command == "mint-info":
        info = await config.get_mint_info(parse_pubkey(args["token"]), args.get("mint_decimals"))
        _print(config, {
            "address": str(info.address),
            "program_id": str(info.program_id),
            "decimals": info.decimals,
        })
    elif command == "check-account":
        mint = parse_pubkey(args["mint"]) if args.get("mint") else None
        results = await config.check_accounts([parse_pubkey(a) for a in args["accounts"]], mint)
        _print(config, [r.to_dict() for r in results])
        if not all(r.passed for r in results):
            return 1
    elif command == "associated-address":
        address = await config.associated_token_address_or_override(args, "address")
        _print(config, {"address": str(address)})
    return 0


def main(argv: list[str] | None = None) -> None:
    args = vars(build_parser().parse_args(argv))
    logging.basicConfig(
        level=logging.DEBUG if args.get("verbose") else settings.log_level,
        stream=sys.stderr,
    )

    if args["command"] == "serve":
        from .server import mcp

        mcp.run()
        return

    try:
        status = asyncio.run(run(args))
    except TokenAgentError as e:
        logger.debug("%s failed (%s)", args["command"], e.kind)
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(status)
