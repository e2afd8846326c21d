import logging
import typing

import httpx

logger = logging.getLogger(__name__)


class RoflUtility:
    """Client for the ROFL appd service that provisions the relayer key.

    The appd derives keys deterministically from the app identity and a key
    id, so every replica of the relayer asking for the same id gets the same
    account.
    """

    ROFL_SOCKET_PATH = "/run/rofl-appd.sock"
    KEY_GENERATE_PATH = "/rofl/v1/keys/generate"
    REQUEST_TIMEOUT = 30.0

    def __init__(self, url: str = ''):
        self.url = url

    def _transport(self) -> httpx.AsyncHTTPTransport | None:
        if self.url.startswith('http'):
            return None
        socket_path = self.url or self.ROFL_SOCKET_PATH
        logger.debug(f"Using unix domain socket: {socket_path}")
        return httpx.AsyncHTTPTransport(uds=socket_path)

    async def _appd_post(self, path: str, payload: typing.Any) -> typing.Any:
        base_url = self.url if self.url.startswith('http') else "http://localhost"
        async with httpx.AsyncClient(transport=self._transport()) as client:
            # Key requests only ever carry the key id, never key material
            logger.debug(f"Posting to {base_url + path}: {payload}")
            response = await client.post(base_url + path, json=payload, timeout=self.REQUEST_TIMEOUT)
            response.raise_for_status()
            return response.json()

    async def fetch_key(self, id: str) -> str:
        """
        Return the secp256k1 key the appd derives for `id`.

        Raises:
            httpx.HTTPError: If the appd is unreachable or answers with an error
            ValueError: If the response carries no key
        """
        response = await self._appd_post(
            self.KEY_GENERATE_PATH, {"key_id": id, "kind": "secp256k1"}
        )
        key = response.get("key") if isinstance(response, dict) else None
        if not isinstance(key, str) or not key:
            raise ValueError(f"ROFL appd returned no key for '{id}'")
        logger.info(f"Fetched relayer key '{id}' from ROFL appd")
        return key
