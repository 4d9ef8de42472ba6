import json
import logging
import re
from abc import abstractmethod
from app.domain.services_interfaces.ai_service import AIServiceInterface
from app.domain.entities.question import Question, ANSWER_LETTERS
from app.domain.entities.quiz import Quiz, QuizSpec
from app.domain.entities.submission import QuizResponse
from app.domain.exceptions import CollaboratorError


logger = logging.getLogger('external_apis')

QUIZ_SYSTEM_PROMPT = ('You are an expert educational content creator. Generate high-quality, '
                      'curriculum-appropriate quiz questions. Always respond with valid JSON only, '
                      'no additional text.')
GRADING_SYSTEM_PROMPT = ('You are an expert educator and evaluator. Provide fair, accurate, and constructive '
                         'feedback. Always respond with valid JSON only, no additional text.')
HINT_SYSTEM_PROMPT = ('You are a helpful tutor. Provide hints that guide students to think through '
                      'problems without giving away answers.')


def extract_json(text: str):
    """
    Extracts the first JSON object from model output, ignoring markdown fences and
    any prose around it.

    :param text: Raw completion text
    :return: The parsed JSON object
    """
    cleaned = re.sub(r"^```(?:json)?|```$", "", text.strip(), flags=re.IGNORECASE | re.MULTILINE).strip()
    match = re.search(r"\{.*\}", cleaned, re.DOTALL)
    if not match:
        raise CollaboratorError('No JSON found in response')
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise CollaboratorError(f"Invalid JSON in response: {e.msg}") from e


def format_options(question: Question) -> str:
    return ', '.join(f"{letter}: {option}" for letter, option in zip(ANSWER_LETTERS, question.options))


class LLMService(AIServiceInterface):
    """
    Prompting and response parsing shared by the chat-completion providers.
    Subclasses only implement _complete().
    """
    provider = 'llm'

    def __init__(self, model: str):
        self.model = model

    @abstractmethod
    async def _complete(self, messages: list[dict], temperature: float, max_tokens: int) -> str:
        """
        Sends the chat messages to the provider.

        :param messages: List of {"role", "content"} dicts
        :param temperature: Sampling temperature
        :param max_tokens: Upper bound on generated tokens
        :return: The completion text
        """
        pass

    async def _request(self, messages: list[dict], temperature: float, max_tokens: int) -> str:
        logger.info(f"Sending {self.provider} request with model {self.model}, temperature {temperature}")
        try:
            text = await self._complete(messages, temperature, max_tokens)
        except CollaboratorError:
            raise
        except Exception as e:
            logger.error(f"{self.provider} request failed: {e}")
            raise CollaboratorError(f"{self.provider} request failed: {e}") from e
        if not text or not text.strip():
            raise CollaboratorError(f"{self.provider} returned an empty response")
        logger.info(f"{self.provider} returned a response of {len(text)} characters")
        return text

    async def generate_questions(self, spec: QuizSpec) -> list[dict]:
        messages = [
            {'role': 'system', 'content': QUIZ_SYSTEM_PROMPT},
            {'role': 'user', 'content': self.quiz_prompt(spec)},
        ]
        data = extract_json(await self._request(messages, 0.8, 3000))
        questions = data.get('questions') if isinstance(data, dict) else None
        if not isinstance(questions, list):
            raise CollaboratorError('Invalid quiz structure: missing questions array')
        return questions

    async def grade_responses(self, quiz: Quiz, responses: list[QuizResponse]) -> dict:
        messages = [
            {'role': 'system', 'content': GRADING_SYSTEM_PROMPT},
            {'role': 'user', 'content': self.evaluation_prompt(quiz, responses)},
        ]
        data = extract_json(await self._request(messages, 0.3, 2000))
        if not isinstance(data, dict):
            raise CollaboratorError('Evaluation response is not an object')
        return data

    async def generate_hint(self, question: Question, quiz: Quiz) -> str:
        messages = [
            {'role': 'system', 'content': HINT_SYSTEM_PROMPT},
            {'role': 'user', 'content': self.hint_prompt(question, quiz)},
        ]
        text = await self._request(messages, 0.7, 200)
        return text.strip().strip('"\'')

    @staticmethod
    def quiz_prompt(spec: QuizSpec) -> str:
        difficulty = spec.difficulty.value
        return f'''Generate a {difficulty} difficulty quiz for grade {spec.grade} students on {spec.subject}.

Requirements:
- Exactly {spec.total_questions} questions
- Each question worth {spec.max_score // spec.total_questions} marks
- All questions should be multiple choice with options A, B, C, D
- Age-appropriate content for grade {spec.grade}
- Questions should test understanding, not just memorization

For {difficulty} difficulty:
- EASY: Basic concepts, straightforward questions
- MEDIUM: Requires some analysis and application
- HARD: Complex problem-solving and critical thinking

Format the response as a valid JSON object with this exact structure:
{{
  "questions": [
    {{
      "questionId": "q1",
      "question": "Question text here",
      "type": "multiple_choice",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": "A",
      "marks": 1,
      "explanation": "Brief explanation of the correct answer"
    }}
  ]
}}

Subject: {spec.subject}
Grade: {spec.grade}
Total Questions: {spec.total_questions}
Max Score: {spec.max_score}
Difficulty: {difficulty}

Generate the quiz now:'''

    @staticmethod
    def evaluation_prompt(quiz: Quiz, responses: list[QuizResponse]) -> str:
        answers = {response.question_id: response.user_response for response in responses}
        blocks = []
        for index, question in enumerate(quiz.questions):
            answer = answers.get(question.question_id)
            blocks.append(f'''Question {index + 1} ({question.marks} marks):
Question ID: {question.question_id}
Question: {question.text}
Options: {format_options(question)}
Correct Answer: {question.correct_answer}
User Answer: {answer if answer is not None else 'No response'}
Explanation: {question.explanation}''')
        questions_block = '\n\n'.join(blocks)

        return f'''Evaluate the following quiz responses and provide detailed feedback:

Quiz Information:
- Subject: {quiz.subject}
- Grade: {quiz.grade}
- Difficulty: {quiz.difficulty.value if quiz.difficulty else 'MEDIUM'}
- Total Questions: {quiz.total_questions}
- Max Score: {quiz.max_score}

Questions and User Responses:
{questions_block}

Provide evaluation in this exact JSON format, with one detailedResults entry per answered question:
{{
  "totalScore": 0,
  "maxScore": {quiz.max_score},
  "percentage": 0.0,
  "detailedResults": [
    {{
      "questionId": "q1",
      "userResponse": "A",
      "correctAnswer": "C",
      "isCorrect": false,
      "marks": 0,
      "explanation": "Detailed explanation of why this is correct/incorrect"
    }}
  ],
  "suggestions": [
    "Specific learning suggestion based on incorrect answers"
  ]
}}

Requirements:
- Calculate exact scores based on marks for each question
- Give 2-3 constructive learning suggestions appropriate for grade {quiz.grade}'''

    @staticmethod
    def hint_prompt(question: Question, quiz: Quiz) -> str:
        return f'''Generate a helpful hint for this quiz question without giving away the answer:

Question: {question.text}
Options: {format_options(question)}
Subject: {quiz.subject}
Grade: {quiz.grade}

Requirements:
- Don't reveal the correct answer directly
- Give a strategic approach or thinking method
- Keep it concise (1-2 sentences)

Generate only the hint text, no additional formatting:'''
