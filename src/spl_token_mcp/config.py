"""Configuration via environment variables and the Solana CLI config file."""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from pydantic_settings import BaseSettings
from spl.token.constants import TOKEN_PROGRAM_ID

DEFAULT_JSON_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_KEYPAIR_PATH = Path("~/.config/solana/id.json")


def solana_cli_config_path() -> Path:
    path = os.environ.get("SOLANA_CONFIG") or os.environ.get("SOLANA_CONFIG_FILE")
    if path:
        return Path(path).expanduser()
    return Path.home() / ".config" / "solana" / "cli" / "config.yml"


def load_solana_cli_config(path: Path | None = None) -> dict[str, str]:
    """Read the flat `key: value` pairs of a Solana CLI config.yml.

    A missing or unreadable file yields an empty dict.
    """
    cfg_path = path or solana_cli_config_path()
    try:
        text = cfg_path.read_text()
    except OSError:
        return {}
    cfg: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or line == "---":
            continue
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip()
        value = value.strip().strip("\"'")
        if key:
            cfg[key] = value
    return cfg


def compute_websocket_url(json_rpc_url: str) -> str:
    """Derive the pubsub URL from an RPC URL: ws(s) scheme, port + 1 if explicit."""
    parts = urlsplit(json_rpc_url)
    if parts.scheme not in ("http", "https"):
        return ""
    scheme = "wss" if parts.scheme == "https" else "ws"
    netloc = parts.netloc
    if parts.port is not None:
        host = netloc.rsplit(":", 1)[0]
        netloc = f"{host}:{parts.port + 1}"
    return urlunsplit((scheme, netloc, parts.path, parts.query, parts.fragment))


class Settings(BaseSettings):
    """All SPL_TOKEN_* env vars are read automatically."""

    model_config = {"env_prefix": "SPL_TOKEN_"}

    # Cluster
    json_rpc_url: str | None = None
    websocket_url: str | None = None
    commitment: str = "confirmed"

    # Default signer
    keypair_path: str | None = None

    # Token program the invocation targets
    program_id: str = str(TOKEN_PROGRAM_ID)

    # Offline signing
    sign_only: bool = False
    dump_transaction_message: bool = False

    # Output
    output_format: str = "display"
    log_level: str = "WARNING"

    def resolve(self, cli_config: dict[str, str] | None = None) -> None:
        """Fill unset cluster and keypair fields from the Solana CLI config."""
        if cli_config is None:
            cli_config = load_solana_cli_config()
        if not self.json_rpc_url:
            self.json_rpc_url = cli_config.get("json_rpc_url") or DEFAULT_JSON_RPC_URL
        if not self.websocket_url:
            self.websocket_url = cli_config.get("websocket_url") or compute_websocket_url(
                self.json_rpc_url
            )
        if not self.keypair_path:
            self.keypair_path = cli_config.get("keypair_path") or str(DEFAULT_KEYPAIR_PATH)


# Singleton: importable everywhere
settings = Settings()
settings.resolve()
