"""Configuration models and loading."""

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

CONFIG_DIR = Path.home() / ".config" / "defi-gateway"
CONFIG_FILE = CONFIG_DIR / "config.json"

# Secrets the gateway knows about, in display order for `--check`
KNOWN_SECRETS = ("NOWNODES_API_KEY", "MORALIS_API_KEY", "JUPITER_APP_ID")


class ServerSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False


class UpstreamSettings(BaseModel):
    coingecko_url: str = "https://api.coingecko.com/api/v3"
    defillama_yields_url: str = "https://yields.llama.fi"
    jupiter_swap_url: str = "https://quote-api.jup.ag/v6/swap"
    jupiter_quote_url: str = "https://lite-api.jup.ag/swap/v1/quote"
    jupiter_price_url: str = "https://price.jup.ag/v6/price"
    ens_url: str = "https://api.ensideas.com/ens/resolve"
    nownodes_eth_url: str = "https://eth.nownodes.io"
    moralis_solana_url: str = "https://solana-gateway.moralis.io/token/mainnet"


class SolanaSettings(BaseModel):
    rpc_url: str = "https://api.mainnet-beta.solana.com"


class LimitsSettings(BaseModel):
    upstream_timeout: float = 30.0
    keep_alive_timeout: int = 5
    max_body_size: int = 1024 * 1024


class Config(BaseModel):
    server: ServerSettings = Field(default_factory=ServerSettings)
    upstreams: UpstreamSettings = Field(default_factory=UpstreamSettings)
    solana: SolanaSettings = Field(default_factory=SolanaSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    secrets: dict[str, str] = Field(default_factory=dict)


class EnvSecretProvider:
    """Resolve secrets from the environment, falling back to the config file.

    Values are looked up on every call so a key exported after startup is
    picked up by the next request.
    """

    def __init__(self, config: Config | None = None) -> None:
        self._fallback = dict(config.secrets) if config else {}

    def get(self, name: str) -> str | None:
        value = os.environ.get(name) or self._fallback.get(name)
        return value or None


def solana_rpc_url(config: Config) -> str:
    """Return the Solana RPC URL, honoring a SOLANA_RPC_URL override."""
    return os.environ.get("SOLANA_RPC_URL") or config.solana.rpc_url


def load_config(path: Path = CONFIG_FILE) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        path.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(path.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = path.with_suffix(".json.bak")
        path.rename(backup)
        default = Config()
        path.write_text(default.model_dump_json(indent=2))
        return default
