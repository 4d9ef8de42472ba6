import json
import logging
from typing import Any, Iterable
from pydantic import ValidationError
from app.domain.entities.question import Question, QuestionKind
from app.domain.exceptions import DecodeAnomaly, ValidationAnomaly


logger = logging.getLogger('codecs')

# Deepest string-in-string nesting unwrapped before the payload is rejected
MAX_ENCODING_DEPTH = 3


class QuestionSetCodec:
    """
    Converts question sets between the in-memory list of Question instances and the
    JSON text stored in the questions column and in the cache.

    Storage and the AI provider do not guarantee a consistent shape: payloads arrive
    as lists, as JSON text, as JSON text wrapped in another JSON string, or as the
    {"questions": [...]} envelope the provider is prompted for. Every read of a
    question set goes through decode(), which never raises: unusable input becomes
    an empty list and a logged anomaly.
    """

    @staticmethod
    def encode(questions: Iterable[Question]) -> str:
        """
        Serializes questions as a JSON array in insertion order.

        :param questions: Question instances to serialize.
        :return: JSON text, "[]" for an empty set.
        """
        return json.dumps([question.model_dump(mode='json', by_alias=True) for question in questions])

    @staticmethod
    def decode(raw: Any) -> list[Question]:
        """
        Parses a serialized question set, tolerating double encoding and garbage.

        :param raw: None, bytes, JSON text, a list of question dicts or Question instances.
        :return: The validated list of questions, empty if the payload could not be parsed.
        """
        try:
            items = QuestionSetCodec._unwrap(raw)
        except DecodeAnomaly as e:
            logger.warning(f"Question set decode anomaly: {e}")
            return []
        return QuestionSetCodec.validate(items)

    @staticmethod
    def validate(items: Iterable[Any]) -> list[Question]:
        """
        Drops questions without an id or text and fills in defaults for the rest.

        options that are not a list become an empty list, a missing kind becomes
        multiple_choice and missing marks become 1. Each dropped entry is logged.

        :param items: Question dicts or Question instances.
        :return: The filtered list of Question instances, in input order.
        """
        questions = []
        for index, item in enumerate(items):
            try:
                questions.append(QuestionSetCodec._validate_one(item))
            except ValidationAnomaly as e:
                logger.warning(f"Dropping question at index {index}: {e}")
        return questions

    @staticmethod
    def _validate_one(item: Any) -> Question:
        if isinstance(item, Question):
            return item
        if not isinstance(item, dict):
            raise ValidationAnomaly(f"expected an object, got {type(item).__name__}")

        question_id = item.get('questionId', item.get('question_id'))
        text = item.get('text', item.get('question'))
        if not question_id or not text:
            raise ValidationAnomaly('missing questionId or text')

        options = item.get('options')
        options = [str(option) for option in options] if isinstance(options, list) else []
        marks = item.get('marks')
        kind = item.get('kind', item.get('type'))

        try:
            return Question(
                question_id=str(question_id),
                text=str(text),
                kind=kind or QuestionKind.MULTIPLE_CHOICE,
                options=options,
                correct_answer=str(item.get('correctAnswer', item.get('correct_answer')) or ''),
                marks=1 if marks is None else marks,
                explanation=str(item.get('explanation') or ''),
            )
        except ValidationError as e:
            raise ValidationAnomaly(str(e)) from e

    @staticmethod
    def _unwrap(raw: Any) -> list:
        if raw is None:
            return []
        value = raw
        for _ in range(MAX_ENCODING_DEPTH + 1):
            if isinstance(value, (bytes, bytearray)):
                value = value.decode('utf-8', errors='replace')
            if isinstance(value, str):
                if not value.strip():
                    return []
                try:
                    value = json.loads(value)
                except json.JSONDecodeError as e:
                    raise DecodeAnomaly(f"invalid JSON: {e.msg}") from e
                # A string that decodes to another string was encoded twice
                continue
            if value is None:
                return []
            if isinstance(value, dict) and 'questions' in value:
                value = value['questions']
                continue
            if isinstance(value, (list, tuple)):
                return list(value)
            raise DecodeAnomaly(f"expected a sequence of questions, got {type(value).__name__}")
        raise DecodeAnomaly(f"payload nested deeper than {MAX_ENCODING_DEPTH} levels")
