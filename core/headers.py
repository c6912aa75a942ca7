"""Header construction for upstream requests."""


class HeaderBuilder:
    """Build upstream headers for different targets."""

    def build_json_headers(self) -> dict[str, str]:
        """Plain JSON headers with intermediate caching disabled."""
        return {
            "Content-Type": "application/json",
            "Cache-Control": "no-store",
        }

    def build_moralis_headers(self, api_key: str) -> dict[str, str]:
        """Moralis authenticates with an X-API-Key header."""
        return {
            "accept": "application/json",
            "X-API-Key": api_key,
            "Cache-Control": "no-store",
        }

    def build_jupiter_headers(self, app_id: str | None) -> dict[str, str]:
        """Attach the Jupiter application id when one is configured."""
        headers = self.build_json_headers()
        if app_id:
            headers["x-application-id"] = app_id
        return headers
