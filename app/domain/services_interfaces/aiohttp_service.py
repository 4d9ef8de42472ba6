from abc import ABC, abstractmethod


class AiohttpServiceInterface(ABC):
    """Shared HTTP client of the REST based AI providers."""

    @abstractmethod
    async def post(self, url: str, payload: dict, headers: dict = None, params: dict = None):
        """
        POSTs a JSON body and returns the decoded reply.

        :param url: Endpoint URL
        :param payload: Body, sent as JSON
        :param headers: Extra request headers
        :param params: Query string parameters, e.g. the API key
        :return: The reply as parsed JSON, or as text when the server does not send JSON
        :raises aiohttp.ClientError: On transport failures and non-2xx statuses
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        pass
