import logging
from app.domain.services_interfaces.ai_service import AIServiceInterface
from app.domain.services_interfaces.aiohttp_service import AiohttpServiceInterface
from config import main_config
from infrastructure.services.gemini_service import GeminiService
from infrastructure.services.groq_service import GroqService
from infrastructure.services.stub_service import StubAIService


logger = logging.getLogger('external_apis')


def create_ai_service(aiohttp_service: AiohttpServiceInterface,
                      provider: str = main_config.AI_PROVIDER) -> AIServiceInterface:
    """
    Selects the AI provider at startup.

    :param aiohttp_service: HTTP client used by the REST based providers
    :param provider: gemini, groq or stub
    :return: The provider, or the stub when the chosen provider has no API key
    """
    provider = (provider or 'stub').lower()
    if provider == 'gemini':
        if main_config.GEMINI_API_KEY:
            return GeminiService(aiohttp_service, main_config.GEMINI_API_KEY,
                                 main_config.GEMINI_MODEL, main_config.GEMINI_BASE_URL)
    elif provider == 'groq':
        if main_config.GROQ_API_KEY:
            return GroqService(main_config.GROQ_API_KEY, main_config.GROQ_MODEL, main_config.GROQ_BASE_URL)
    elif provider != 'stub':
        raise ValueError(f"Unsupported AI provider: {provider}")

    if provider != 'stub':
        logger.warning(f"{provider.upper()}_API_KEY not set, AI features fall back to local generation and grading")
    return StubAIService()
