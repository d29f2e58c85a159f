import asyncio

import httpx


class BoundedClient:
    """Async HTTP client that caps the number of requests in flight.

    Every request waits for a slot on a shared semaphore, so fan-out over
    thousands of chunks or logs never has more than ``max_concurrency``
    requests outstanding against the remote service.
    """

    def __init__(self, max_concurrency: int = 8, timeout: float = 30.0) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._slots = asyncio.Semaphore(max_concurrency)
        self._client = httpx.AsyncClient(timeout=timeout)

    async def get(
        self, url: str, params: dict | None = None, headers: dict | None = None
    ) -> httpx.Response:
        async with self._slots:
            return await self._client.get(url, params=params, headers=headers)

    async def post(
        self,
        url: str,
        json: dict | list | None = None,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        async with self._slots:
            return await self._client.post(url, json=json, params=params, headers=headers)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BoundedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
