from openai import AsyncOpenAI
from infrastructure.services.llm_service import LLMService


class GroqService(LLMService):
    """Groq through its OpenAI-compatible chat completions endpoint."""
    provider = 'groq'

    def __init__(self, api_key: str, model: str, base_url: str, client: AsyncOpenAI = None):
        super().__init__(model)
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def _complete(self, messages, temperature, max_tokens):
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            top_p=1,
        )
        return completion.choices[0].message.content
