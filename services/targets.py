"""Upstream target handlers for the third-party APIs behind the gateway."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from urllib.parse import quote

from core.config import Config
from core.exceptions import ConfigurationError
from core.headers import HeaderBuilder
from core.params import default_date_range, endpoint_path, passthrough_params
from core.protocols import SecretProvider
from core.request_types import PreparedRequest

QueryItems = Iterable[tuple[str, str]]


def require_secret(secrets: SecretProvider, key: str) -> str:
    """Resolve a required secret or fail before any network call."""
    value = secrets.get(key)
    if not value:
        raise ConfigurationError(key)
    return value


class CoinGeckoTarget:
    """CoinGecko v3 price proxy."""

    route_name = "CoinGecko"
    defaults = {"ids": "ethereum", "vs_currencies": "usd"}

    def __init__(self, config: Config, header_builder: HeaderBuilder) -> None:
        self._base_url = config.upstreams.coingecko_url.rstrip("/")
        self._headers = header_builder

    def prepare_price(self, endpoint: str | None, query: QueryItems) -> PreparedRequest:
        """Forward to /simple/price unless another endpoint is selected."""
        path = endpoint_path(endpoint, "simple/price")
        return PreparedRequest(
            self.route_name,
            "GET",
            f"{self._base_url}/{path}",
            self._headers.build_json_headers(),
            params=passthrough_params(query, defaults=self.defaults),
        )


class DefiLlamaTarget:
    """DefiLlama Yields API."""

    route_name = "DefiLlama"

    def __init__(self, config: Config, header_builder: HeaderBuilder) -> None:
        self._base_url = config.upstreams.defillama_yields_url.rstrip("/")
        self._headers = header_builder

    def prepare_scan(self, endpoint: str | None, query: QueryItems) -> PreparedRequest:
        """Forward to /pools, /chart/<pool>, ... with the remaining params."""
        path = endpoint_path(endpoint, "pools")
        return PreparedRequest(
            self.route_name,
            "GET",
            f"{self._base_url}/{path}",
            self._headers.build_json_headers(),
            params=passthrough_params(query),
        )

    def prepare_pools(self) -> PreparedRequest:
        return PreparedRequest(
            self.route_name,
            "GET",
            f"{self._base_url}/pools",
            self._headers.build_json_headers(),
        )


class JupiterTarget:
    """Jupiter swap, quote and price APIs."""

    route_name = "Jupiter"

    def __init__(
        self,
        config: Config,
        secrets: SecretProvider,
        header_builder: HeaderBuilder,
    ) -> None:
        self._upstreams = config.upstreams
        self._secrets = secrets
        self._headers = header_builder

    def prepare_swap(self, body: dict[str, Any]) -> PreparedRequest:
        """Build the v6 swap transaction request from a validated body."""
        return PreparedRequest(
            self.route_name,
            "POST",
            self._upstreams.jupiter_swap_url,
            self._headers.build_json_headers(),
            body=body,
        )

    def prepare_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: str,
        slippage_bps: str | None = None,
    ) -> PreparedRequest:
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": amount,
            "slippageBps": slippage_bps or "50",
            "onlyDirectRoutes": "false",
        }
        return PreparedRequest(
            self.route_name,
            "GET",
            self._upstreams.jupiter_quote_url,
            self._app_headers(),
            params=params,
        )

    def prepare_price(
        self,
        ids: str | None = None,
        mints: str | None = None,
        vs_token: str | None = None,
    ) -> PreparedRequest:
        params = {
            key: value
            for key, value in (("ids", ids), ("mints", mints), ("vsToken", vs_token))
            if value
        }
        return PreparedRequest(
            self.route_name,
            "GET",
            self._upstreams.jupiter_price_url,
            self._app_headers(),
            params=params,
        )

    def _app_headers(self) -> dict[str, str]:
        return self._headers.build_jupiter_headers(self._secrets.get("JUPITER_APP_ID"))


class EnsTarget:
    """ensideas ENS resolution."""

    route_name = "ENS"

    def __init__(self, config: Config, header_builder: HeaderBuilder) -> None:
        self._base_url = config.upstreams.ens_url.rstrip("/")
        self._headers = header_builder

    def prepare_resolve(self, name: str) -> PreparedRequest:
        return PreparedRequest(
            self.route_name,
            "GET",
            f"{self._base_url}/{quote(name, safe='')}",
            self._headers.build_json_headers(),
        )


class NowNodesTarget:
    """NowNodes Ethereum JSON-RPC node; the API key is part of the URL path."""

    route_name = "NowNodes"
    block_number_request_id = 83

    def __init__(
        self,
        config: Config,
        secrets: SecretProvider,
        header_builder: HeaderBuilder,
    ) -> None:
        self._base_url = config.upstreams.nownodes_eth_url.rstrip("/")
        self._secrets = secrets
        self._headers = header_builder

    def prepare_block_number(self) -> PreparedRequest:
        api_key = require_secret(self._secrets, "NOWNODES_API_KEY")
        return PreparedRequest(
            self.route_name,
            "POST",
            f"{self._base_url}/{api_key}",
            self._headers.build_json_headers(),
            body={
                "jsonrpc": "2.0",
                "method": "eth_blockNumber",
                "params": [],
                "id": self.block_number_request_id,
            },
            redact=(api_key,),
        )


class MoralisTarget:
    """Moralis Solana token gateway."""

    route_name = "Moralis"
    historical_days = 30

    def __init__(
        self,
        config: Config,
        secrets: SecretProvider,
        header_builder: HeaderBuilder,
    ) -> None:
        self._base_url = config.upstreams.moralis_solana_url.rstrip("/")
        self._secrets = secrets
        self._headers = header_builder

    def prepare_historical(
        self,
        address: str,
        query: dict[str, str],
        *,
        now: datetime | None = None,
    ) -> PreparedRequest:
        """Holder history; defaults to a daily series over the last 30 days."""
        api_key = require_secret(self._secrets, "MORALIS_API_KEY")
        from_date, to_date = default_date_range(self.historical_days, now=now)
        params = {
            "fromDate": query.get("fromDate") or from_date,
            "toDate": query.get("toDate") or to_date,
            "timeFrame": query.get("timeFrame") or "1d",
            "limit": query.get("limit") or "100",
        }
        return PreparedRequest(
            self.route_name,
            "GET",
            f"{self._holders_url(address)}/historical",
            self._headers.build_moralis_headers(api_key),
            params=params,
            redact=(api_key,),
        )

    def prepare_stats(self, address: str) -> PreparedRequest:
        api_key = require_secret(self._secrets, "MORALIS_API_KEY")
        return PreparedRequest(
            self.route_name,
            "GET",
            self._holders_url(address),
            self._headers.build_moralis_headers(api_key),
            redact=(api_key,),
        )

    def _holders_url(self, address: str) -> str:
        return f"{self._base_url}/holders/{quote(address, safe='')}"


@dataclass(frozen=True)
class Targets:
    """All upstream targets, built once per application."""

    coingecko: CoinGeckoTarget
    defillama: DefiLlamaTarget
    jupiter: JupiterTarget
    ens: EnsTarget
    nownodes: NowNodesTarget
    moralis: MoralisTarget

    @classmethod
    def build(
        cls,
        config: Config,
        secrets: SecretProvider,
        header_builder: HeaderBuilder,
    ) -> "Targets":
        return cls(
            coingecko=CoinGeckoTarget(config, header_builder),
            defillama=DefiLlamaTarget(config, header_builder),
            jupiter=JupiterTarget(config, secrets, header_builder),
            ens=EnsTarget(config, header_builder),
            nownodes=NowNodesTarget(config, secrets, header_builder),
            moralis=MoralisTarget(config, secrets, header_builder),
        )
