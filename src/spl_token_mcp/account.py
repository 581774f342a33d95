"""Keypair loading and signer-source resolution.

A signer source is the string a user passes for a keypair argument. It may
name a keypair file, read a keypair from stdin, point at a hardware wallet,
or be a bare pubkey (useful offline, where the signature is supplied later or
the signer only needs to appear in a multisig).
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from solders.keypair import Keypair
from solders.null_signer import NullSigner
from solders.presigner import Presigner
from solders.pubkey import Pubkey
from solders.signature import Signature

from .errors import InvalidAddress, ResolutionError
from .types import InMemoryKeypair, KeypairSource

logger = logging.getLogger(__name__)

SIGN_ONLY_ARG = "sign_only"
SIGNER_ARG = "signer"

STDIN = "stdin"
FILEPATH = "file"
PUBKEY = "pubkey"
USB = "usb"
PROMPT = "prompt"


def parse_pubkey(value: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise InvalidAddress(value) from e


def parse_signer_source(source: str) -> tuple[str, str | Pubkey]:
    """Classify a signer source string.

    Returns (kind, value) where value is the path for files and the parsed
    Pubkey for bare pubkeys.
    """
    if source == "-":
        return STDIN, source
    if source == "ASK":
        return PROMPT, source
    if "://" in source or (":" in source and source.split(":", 1)[0] in (STDIN, FILEPATH, PROMPT)):
        scheme, _, rest = source.partition(":")
        scheme = scheme.lower()
        if scheme == STDIN:
            return STDIN, source
        if scheme == FILEPATH:
            return FILEPATH, rest.removeprefix("//")
        if scheme == USB:
            return USB, source
        if scheme == PROMPT:
            return PROMPT, source
        raise ResolutionError(f"Unrecognized signer source {source!r}")
    try:
        return PUBKEY, Pubkey.from_string(source)
    except ValueError:
        return FILEPATH, source


def read_keypair_file(path: str | Path) -> Keypair:
    """Load a Solana CLI keypair file (JSON array of 64 bytes)."""
    resolved = Path(path).expanduser()
    try:
        text = resolved.read_text()
    except OSError as e:
        raise ResolutionError(f"could not read keypair file \"{resolved}\": {e}") from e
    try:
        return Keypair.from_json(text.strip())
    except ValueError as e:
        raise ResolutionError(f"could not read keypair file \"{resolved}\": {e}") from e


def read_keypair_stdin() -> Keypair:
    text = sys.stdin.read()
    try:
        return Keypair.from_json(text.strip())
    except ValueError as e:
        raise ResolutionError(f"could not read keypair from stdin: {e}") from e


def _unsupported(kind: str, source: str, keypair_name: str) -> ResolutionError:
    if kind == USB:
        return ResolutionError(
            f"{keypair_name}: remote wallet {source} is not available"
        )
    return ResolutionError(
        f"{keypair_name}: interactive keypair prompts are not supported ({source})"
    )


def _presigner_for(args: Mapping[str, Any], pubkey: Pubkey) -> Presigner | None:
    """Look for a `PUBKEY=SIGNATURE` entry matching pubkey in the signer args."""
    for entry in args.get(SIGNER_ARG) or ():
        key, sep, sig = entry.partition("=")
        if not sep:
            raise ResolutionError(f"Invalid signer {entry!r}, expected PUBKEY=SIGNATURE")
        try:
            signer_pubkey = Pubkey.from_string(key)
            signature = Signature.from_string(sig)
        except ValueError as e:
            raise ResolutionError(f"Invalid signer {entry!r}: {e}") from e
        if signer_pubkey == pubkey:
            return Presigner(signer_pubkey, signature)
    return None


def pubkey_from_path(args: Mapping[str, Any], path: str, keypair_name: str) -> Pubkey:
    """Resolve a signer source to the pubkey it stands for."""
    kind, value = parse_signer_source(path)
    if kind == PUBKEY:
        return value
    return signer_from_path(args, path, keypair_name, allow_null_signer=False).pubkey()


def signer_from_path(
    args: Mapping[str, Any],
    path: str,
    keypair_name: str,
    allow_null_signer: bool = False,
):
    """Resolve a signer source to something that can sign (or stand in for a signer).

    A bare pubkey becomes a Presigner if a matching signature was supplied,
    otherwise a NullSigner when null signers are allowed or the invocation
    is sign-only.
    """
    kind, value = parse_signer_source(path)
    if kind == FILEPATH:
        return read_keypair_file(value)
    if kind == STDIN:
        return read_keypair_stdin()
    if kind == PUBKEY:
        presigner = _presigner_for(args, value)
        if presigner is not None:
            return presigner
        if allow_null_signer or args.get(SIGN_ONLY_ARG):
            logger.debug("Using null signer for %s (%s)", keypair_name, value)
            return NullSigner(value)
        raise ResolutionError(f"missing signature for supplied pubkey: {value}")
    raise _unsupported(kind, path, keypair_name)


def pubkey_of_signer(args: Mapping[str, Any], name: str) -> Pubkey | None:
    """Pubkey for argument `name`, or None when the argument was not given."""
    value = args.get(name)
    if not value:
        return None
    return pubkey_from_path(args, value, name)


def resolve_source_pubkey(source: KeypairSource, args: Mapping[str, Any]) -> Pubkey:
    if isinstance(source, InMemoryKeypair):
        return source.keypair.pubkey()
    return pubkey_from_path(args, source.path, "default")


def resolve_source_signer(
    source: KeypairSource,
    args: Mapping[str, Any],
    allow_null_signer: bool = False,
):
    if isinstance(source, InMemoryKeypair):
        return source.keypair
    return signer_from_path(args, source.path, "default", allow_null_signer)


def require_default_source(source: KeypairSource | None) -> KeypairSource:
    if source is None:
        raise ResolutionError("No default signer found, pass --keypair or configure one")
    return source
