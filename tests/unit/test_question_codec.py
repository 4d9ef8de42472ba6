import json
import pytest
from app.domain.codecs.question_set import QuestionSetCodec
from app.domain.entities.question import Question, QuestionKind
from app.domain.entities.quiz import Quiz
from tests.helpers import make_question


class TestQuestionSetCodec:
    """Test encoding and tolerant decoding of question sets"""

    def test_encode_uses_camel_case_keys(self):
        """Test stored questions use the camelCase shape"""
        encoded = json.loads(QuestionSetCodec.encode([make_question(1, answer='C', marks=4)]))

        assert encoded == [{
            'questionId': 'q1',
            'text': 'Question 1?',
            'kind': 'multiple_choice',
            'options': ['Option A', 'Option B', 'Option C', 'Option D'],
            'correctAnswer': 'C',
            'marks': 4,
            'explanation': 'Explanation 1',
        }]

    def test_encode_empty_set(self):
        assert QuestionSetCodec.encode([]) == '[]'

    def test_decode_preserves_order_and_fields(self):
        """Test decoding what was encoded yields equal questions"""
        questions = [make_question(i, marks=i) for i in range(1, 6)]

        decoded = QuestionSetCodec.decode(QuestionSetCodec.encode(questions))

        assert decoded == questions

    def test_decode_double_encoded_text(self):
        """Test a JSON string holding the JSON text is unwrapped"""
        questions = [make_question(1), make_question(2)]
        double_encoded = json.dumps(QuestionSetCodec.encode(questions))

        assert QuestionSetCodec.decode(double_encoded) == questions

    def test_decode_bytes_and_envelope(self):
        """Test bytes and the {"questions": [...]} envelope are accepted"""
        payload = json.dumps({'questions': [{'questionId': 'q1', 'question': 'What is 2+2?',
                                             'type': 'multiple_choice', 'options': ['1', '2', '3', '4'],
                                             'correctAnswer': 'D'}]}).encode()

        decoded = QuestionSetCodec.decode(payload)

        assert len(decoded) == 1
        assert decoded[0].text == 'What is 2+2?'
        assert decoded[0].kind == QuestionKind.MULTIPLE_CHOICE
        assert decoded[0].marks == 1

    @pytest.mark.parametrize('raw', [None, '', 'null', 'not json at all', '{"a": 1}', '42', b'\xff\xfe'])
    def test_decode_garbage_yields_empty_list(self, raw):
        """Test unusable payloads become an empty set instead of raising"""
        assert QuestionSetCodec.decode(raw) == []

    def test_decode_rejects_excessive_nesting(self):
        payload = QuestionSetCodec.encode([make_question(1)])
        for _ in range(5):
            payload = json.dumps(payload)

        assert QuestionSetCodec.decode(payload) == []

    def test_validate_drops_invalid_entries(self):
        """Test entries without id or text are dropped and the rest keep their order"""
        items = [
            {'questionId': 'q1', 'text': 'First', 'options': 'not a list'},
            {'questionId': '', 'text': 'No id'},
            {'questionId': 'q3'},
            'just a string',
            {'question_id': 'q5', 'question': 'Fifth', 'marks': 3},
            {'questionId': 'q6', 'text': 'Zero marks', 'marks': 0},
        ]

        questions = QuestionSetCodec.validate(items)

        assert [question.question_id for question in questions] == ['q1', 'q5']
        assert questions[0].options == []
        assert questions[1].marks == 3

    def test_quiz_decodes_serialized_questions_on_construction(self):
        """Test a Quiz built from a stored row always holds a real list"""
        quiz = Quiz(id='quiz_1', total_questions=1, questions=QuestionSetCodec.encode([make_question(1)]))

        assert isinstance(quiz.questions[0], Question)
        assert not quiz.is_missing_questions()

    def test_quiz_with_unreadable_questions_is_missing_them(self):
        quiz = Quiz(id='quiz_1', total_questions=3, questions='{broken')

        assert quiz.questions == []
        assert quiz.is_missing_questions()
