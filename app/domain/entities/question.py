from enum import Enum
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


"""
Question Entity:
1. question_id (str): Identifier of the question, unique within its quiz. Cannot be empty.
2. text (str): The content of the question. Cannot be empty. AI output names it "question".
3. kind (QuestionKind): Type of the question. AI output names it "type". Only multiple choice for now.
4. options (list[str]): Answer options. Multiple choice questions carry exactly 4 of them.
5. correct_answer (str): Letter of the correct option, one of "A", "B", "C", "D".
6. marks (int): Marks awarded for a correct answer. Positive.
7. explanation (str): Explanation of the correct answer, empty if not provided.

Serialized with camelCase keys (questionId, correctAnswer) which is the shape stored in the
questions column and cached in redis.
"""
class QuestionKind(str, Enum):
    MULTIPLE_CHOICE = 'multiple_choice'


ANSWER_LETTERS = ('A', 'B', 'C', 'D')


class Question(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    question_id: str = Field(min_length=1)
    text: str = Field(min_length=1, validation_alias=AliasChoices('text', 'question'))
    kind: QuestionKind = Field(default=QuestionKind.MULTIPLE_CHOICE,
                               validation_alias=AliasChoices('kind', 'type'))
    options: list[str] = Field(default_factory=list)
    correct_answer: str = ''
    marks: int = Field(default=1, gt=0)
    explanation: str = ''

    def is_well_formed(self) -> bool:
        """True if the question satisfies the multiple choice shape."""
        if self.kind == QuestionKind.MULTIPLE_CHOICE:
            return len(self.options) == len(ANSWER_LETTERS) and self.correct_answer in ANSWER_LETTERS
        return True
