from app.domain.services_interfaces.aiohttp_service import AiohttpServiceInterface
from app.domain.exceptions import CollaboratorError
from infrastructure.services.llm_service import LLMService


class GeminiService(LLMService):
    provider = 'gemini'

    def __init__(self, aiohttp_service: AiohttpServiceInterface, api_key: str, model: str, base_url: str):
        super().__init__(model)
        self.aiohttp_service = aiohttp_service
        self.api_key = api_key
        self.url = f'{base_url}/models/{model}:generateContent'

    async def _complete(self, messages, temperature, max_tokens):
        # Gemini takes a single prompt, system instructions are prepended
        prompt = '\n\n'.join(message['content'] for message in messages)
        payload = {
            'contents': [{'parts': [{'text': prompt}]}],
            'generationConfig': {
                'temperature': temperature,
                'maxOutputTokens': max_tokens,
            },
        }
        response = await self.aiohttp_service.post(self.url, payload, params={'key': self.api_key})
        try:
            return response['candidates'][0]['content']['parts'][0]['text']
        except (KeyError, IndexError, TypeError) as e:
            raise CollaboratorError(f"Unexpected Gemini response shape: {e!r}") from e
