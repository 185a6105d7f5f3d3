"""
HTTP client for ping0.cc.

The service ties a challenge to the session cookie set on the first
request, so both pages of one query must go through the same client; each
query gets a fresh client so sessions never leak between queries.
"""

from typing import Optional
from urllib.parse import quote

import httpx

from .audit_logger import AuditLogger
from .config import TransportConfig
from .enums import ErrorCode, LogLevel
from .exceptions import NetworkError
from .models import Credentials


BROWSER_HEADERS = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
        "image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
    ),
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Sec-Ch-Ua": '"Chromium";v="122", "Not(A:Brand";v="24", "Google Chrome";v="122"',
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": '"Windows"',
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}


class Ping0Client:
    """
    Async ping0.cc client holding one cookie session.

    Usage:
        async with Ping0Client(config) as client:
            initial = await client.fetch_initial_page()
            ...
            final = await client.fetch_final_page(credentials, "1.1.1.1")
    """

    def __init__(
        self,
        config: Optional[TransportConfig] = None,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Transport configuration (base URL, user agent, timeout)
            logger: Optional audit logger
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self._config = config or TransportConfig()
        self._logger = logger
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._config.base_url.rstrip("/")

    async def __aenter__(self) -> "Ping0Client":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout),
                follow_redirects=True,
                headers={"User-Agent": self._config.user_agent, **BROWSER_HEADERS},
                transport=self._transport,
            )
        return self._client

    def final_page_url(self, query_ip: Optional[str] = None) -> str:
        """URL of the result page: /ip/<address> or the base URL for the caller's IP."""
        if query_ip:
            return f"{self.base_url}/ip/{quote(query_ip, safe=':')}"
        return self.base_url

    async def fetch_initial_page(self) -> str:
        """
        Fetch the landing page carrying the challenge.

        Raises:
            NetworkError: On connection failure, timeout or HTTP error status
        """
        return await self._get(self.base_url)

    async def fetch_final_page(
        self,
        credentials: Credentials,
        query_ip: Optional[str] = None,
    ) -> str:
        """
        Fetch the result page with the solved challenge attached as cookies.

        An error status with a non-empty body still returns the body: the
        service serves its error page with 4xx/5xx codes, and the extraction
        pipeline reports that page with its message.

        Args:
            credentials: js1key and pow values for this session's challenge
            query_ip: Address to look up; None for the caller's own address

        Raises:
            NetworkError: On connection failure, timeout, or an error status
                with an empty body
        """
        client = self._ensure_client()
        domain = httpx.URL(self.base_url).host
        for name, value in credentials.as_cookies().items():
            client.cookies.set(name, value, domain=domain)

        self._log(LogLevel.DEBUG, "Set challenge cookies", credentials.as_cookies())
        return await self._get(
            self.final_page_url(query_ip),
            headers={"Referer": self.base_url},
            keep_error_body=True,
        )

    async def _get(
        self,
        url: str,
        headers: Optional[dict] = None,
        keep_error_body: bool = False,
    ) -> str:
        client = self._ensure_client()
        self._log(LogLevel.DEBUG, "Requesting page", {"url": url})

        try:
            response = await client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            raise NetworkError(
                code=ErrorCode.TIMEOUT.value,
                message=f"Request timed out after {self._config.timeout}s: {url}",
                details={"url": url},
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(
                code=ErrorCode.NETWORK_ERROR.value,
                message=f"Request failed: {e}",
                details={"url": url},
            ) from e

        self._log(LogLevel.DEBUG, "Received response", {
            "url": url,
            "status_code": response.status_code,
            "length": len(response.content),
        })

        if response.status_code >= 400:
            if keep_error_body and response.text.strip():
                self._log(LogLevel.WARN, "Error status with page body, passing body on", {
                    "url": url,
                    "status_code": response.status_code,
                })
                return response.text
            raise NetworkError(
                code=ErrorCode.HTTP_STATUS.value,
                message=f"Unexpected HTTP status: {response.status_code}",
                details={"url": url, "status_code": response.status_code},
            )

        return response.text

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _log(self, level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.log(level, "Ping0Client", message, data)
