from app.domain.services_interfaces.ai_service import AIServiceInterface
from app.domain.exceptions import ProviderUnavailableError


class StubAIService(AIServiceInterface):
    """
    Provider used when no AI credentials are configured. Every call fails with
    ProviderUnavailableError so callers take their local fallback paths: placeholder
    questions, rule-based grading and the generic hint.
    """
    provider = 'stub'

    async def generate_questions(self, spec):
        raise ProviderUnavailableError('AI provider not configured')

    async def grade_responses(self, quiz, responses):
        raise ProviderUnavailableError('AI provider not configured')

    async def generate_hint(self, question, quiz):
        raise ProviderUnavailableError('AI provider not configured')
