"""
NoteBoard Backend - Platform HTTP Transport
==========================================

What:  Shared request helper for every platform client.
How:   Sends one authenticated request through the process-wide
       httpx.AsyncClient, translates transport failures and non-2xx
       responses into the application's exception hierarchy.
Who:   Wrapped by HttpDataClient, HttpStorageClient and HttpAuthClient.

Retry Strategy:
    Only httpx transport errors (connection refused, timeouts) are retried,
    with tenacity exponential backoff and jitter. RETRY_MAX_ATTEMPTS defaults
    to 1, so out of the box a failed call is never repeated.
    HTTP error statuses are never retried.
"""

import logging
from typing import Any, Dict, Optional, Type

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
    retry_if_exception_type,
    before_sleep_log,
)

from noteboard.config import settings
from noteboard.exceptions import AuthenticationError, PlatformError

logger = logging.getLogger(__name__)


class PlatformTransport:
    """
    Authenticated requests against one platform API.

    Args:
        http: Shared async client (owned by the SessionRegistry).
        base_url: API base URL, e.g. settings.platform_data_url.
        token: The session's bearer token.
        error_cls: PlatformError subclass raised for this API's failures.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        token: str,
        error_cls: Type[PlatformError] = PlatformError,
    ):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.error_cls = error_cls

    async def request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        json: Optional[Any] = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body (None when empty).

        Args:
            method: HTTP method.
            path: Path relative to the base URL (already URL-quoted).
            operation: Human-readable action used in error messages,
                       e.g. "list notes".

        Raises:
            AuthenticationError: The platform answered 401.
            error_cls: Transport failure, any other error status, or an
                       undecodable body.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        request_headers = {"Authorization": f"Bearer {self.token}"}
        if headers:
            request_headers.update(headers)

        try:
            response = await self._send(
                method,
                url,
                json=json,
                content=content,
                headers=request_headers,
            )
        except httpx.TransportError as e:
            logger.error("Platform unreachable during '%s': %s", operation, str(e))
            raise self.error_cls(
                message=f"Could not reach the notes platform to {operation}.",
                context={"operation": operation, "error_type": type(e).__name__},
            )

        if response.status_code == 401:
            raise AuthenticationError(
                message="Your session is no longer valid. Please sign in again.",
                context={"operation": operation},
            )

        if response.is_error:
            logger.warning(
                "Platform returned %d during '%s'",
                response.status_code,
                operation,
            )
            raise self.error_cls(
                message=f"The notes platform could not {operation}.",
                status_code=response.status_code,
                context={"operation": operation, "body": response.text[:500]},
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError:
            raise self.error_cls(
                message=f"The notes platform sent an unreadable response to {operation}.",
                status_code=response.status_code,
                context={"operation": operation},
            )

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        return await self.http.request(
            method,
            url,
            timeout=settings.platform_timeout,
            **kwargs,
        )
