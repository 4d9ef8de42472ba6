import aiohttp.client_exceptions
from app.domain.services_interfaces.aiohttp_service import AiohttpServiceInterface
import aiohttp


class AiohttpService(AiohttpServiceInterface):
    def __init__(self, timeout: float = 30):
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.aiohttp_client = None

    def _session(self) -> aiohttp.ClientSession:
        # Created lazily, a ClientSession has to be opened inside the running loop
        if self.aiohttp_client is None or self.aiohttp_client.closed:
            self.aiohttp_client = aiohttp.ClientSession(timeout=self.timeout)
        return self.aiohttp_client

    async def post(self, url, payload, headers=None, params=None):
        async with self._session().post(url, json=payload, headers=headers, params=params) as response:
            response.raise_for_status()
            try:
                return await response.json()
            except aiohttp.client_exceptions.ContentTypeError:
                return await response.text()

    async def close(self):
        if self.aiohttp_client is not None and not self.aiohttp_client.closed:
            await self.aiohttp_client.close()
