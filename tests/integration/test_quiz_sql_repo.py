import json
from decimal import Decimal
from unittest.mock import patch
import aiomysql
import pytest
from app.domain.codecs.question_set import QuestionSetCodec
from app.domain.entities.quiz import Quiz
from app.domain.entities.user import User
from app.domain.exceptions import StorageError
from infrastructure.repositories.quiz.sql_repo import MySQLQuizRepo
from infrastructure.schema import create_tables, TABLES
from tests.helpers import make_quiz, quiz_row


class TestMySQLQuizRepoSave:
    """Test creating quizzes in the durable store"""

    @pytest.mark.asyncio
    async def test_save_returns_stored_row_with_questions(self, mysql_pool, cursor, connection):
        """Test the created quiz carries its id and all validated questions"""
        stored = make_quiz(3, quiz_id='quiz_fixed')
        cursor.rows = [quiz_row(stored)]
        draft = make_quiz(3, quiz_id=None)

        with patch('infrastructure.repositories.quiz.sql_repo.generate_quiz_id', return_value='quiz_fixed'):
            created = await MySQLQuizRepo(mysql_pool).save(draft)

        assert created.id == 'quiz_fixed'
        assert created.questions == draft.questions
        insert_sql, params = cursor.executed[0]
        assert insert_sql.startswith('INSERT INTO quizzes')
        assert params[0] == 'quiz_fixed'
        assert params[5] == 'MEDIUM'
        assert len(json.loads(params[8])) == 3
        assert connection.calls == ['commit']
        assert mysql_pool.pool.released == 1

    @pytest.mark.asyncio
    async def test_save_without_returned_row_rebuilds_from_input(self, mysql_pool, cursor):
        """Test a store that does not echo the row still yields the full quiz"""
        draft = make_quiz(3, quiz_id=None)

        with patch('infrastructure.repositories.quiz.sql_repo.generate_quiz_id', return_value='quiz_fixed'):
            created = await MySQLQuizRepo(mysql_pool).save(draft)

        assert created.id == 'quiz_fixed'
        assert created.created_at is not None
        assert len(created.questions) == 3
        assert created.title == draft.title

    @pytest.mark.asyncio
    async def test_save_keeps_questions_when_row_echo_is_unreadable(self, mysql_pool, cursor):
        cursor.rows = [quiz_row(make_quiz(3, quiz_id='quiz_fixed'), questions='not json')]

        with patch('infrastructure.repositories.quiz.sql_repo.generate_quiz_id', return_value='quiz_fixed'):
            created = await MySQLQuizRepo(mysql_pool).save(make_quiz(3, quiz_id=None))

        assert len(created.questions) == 3


class TestMySQLQuizRepoGet:
    @pytest.mark.asyncio
    async def test_get_decodes_questions(self, mysql_pool, cursor):
        quiz = make_quiz(4)
        cursor.rows = [quiz_row(quiz)]

        found = await MySQLQuizRepo(mysql_pool).get(Quiz(id=quiz.id))

        assert found.questions == quiz.questions
        assert len(cursor.executed) == 1

    @pytest.mark.asyncio
    async def test_get_double_encoded_questions(self, mysql_pool, cursor):
        quiz = make_quiz(2)
        cursor.rows = [quiz_row(quiz, questions=json.dumps(QuestionSetCodec.encode(quiz.questions)))]

        found = await MySQLQuizRepo(mysql_pool).get(Quiz(id=quiz.id))

        assert found.questions == quiz.questions

    @pytest.mark.asyncio
    async def test_get_rereads_questions_column(self, mysql_pool, cursor):
        """Test a row whose questions did not decode is read once more"""
        quiz = make_quiz(3)
        cursor.rows = [quiz_row(quiz, questions=''), {'questions': QuestionSetCodec.encode(quiz.questions)}]

        found = await MySQLQuizRepo(mysql_pool).get(Quiz(id=quiz.id))

        assert len(found.questions) == 3
        assert cursor.executed[1] == ('SELECT questions FROM quizzes WHERE quiz_id=%s', (quiz.id,))

    @pytest.mark.asyncio
    async def test_get_unrecoverable_questions_returns_empty_set(self, mysql_pool, cursor):
        quiz = make_quiz(3)
        cursor.rows = [quiz_row(quiz, questions='garbage'), {'questions': 'garbage'}]

        found = await MySQLQuizRepo(mysql_pool).get(Quiz(id=quiz.id))

        assert found.questions == []
        assert found.is_missing_questions()

    @pytest.mark.asyncio
    async def test_get_unknown_quiz(self, mysql_pool):
        assert await MySQLQuizRepo(mysql_pool).get(Quiz(id='quiz_missing')) is None

    @pytest.mark.asyncio
    async def test_get_by_user_applies_filters(self, mysql_pool, cursor):
        quiz = make_quiz(2)
        cursor.rows = [[{key: value for key, value in quiz_row(quiz).items() if key != 'questions'}]]

        quizzes = await MySQLQuizRepo(mysql_pool).get_by_user(User(id='user-1'), limit=5, offset=10, grade=5)

        assert [found.id for found in quizzes] == [quiz.id]
        assert quizzes[0].questions == []
        sql, params = cursor.executed[0]
        assert 'user_id=%s AND grade=%s' in sql
        assert params == ('user-1', 5, 5, 10)


class TestMySQLQuizRepoDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_children_first_in_one_transaction(self, mysql_pool, cursor, connection):
        await MySQLQuizRepo(mysql_pool).delete(Quiz(id='quiz_abc123'))

        assert [sql for sql, _ in cursor.executed] == [
            'DELETE FROM quiz_hints WHERE quiz_id=%s',
            'DELETE FROM quiz_submissions WHERE quiz_id=%s',
            'DELETE FROM quizzes WHERE quiz_id=%s',
        ]
        assert connection.calls == ['begin', 'commit']

    @pytest.mark.asyncio
    async def test_delete_failure_rolls_back(self, mysql_pool, cursor, connection):
        """Test a failing statement undoes the whole deletion and surfaces as StorageError"""
        cursor.fail_on = 'FROM quiz_submissions'
        cursor.error = aiomysql.OperationalError(2013, 'Lost connection')

        with pytest.raises(StorageError):
            await MySQLQuizRepo(mysql_pool).delete(Quiz(id='quiz_abc123'))

        assert connection.calls == ['begin', 'rollback']
        assert len(cursor.executed) == 2
        assert mysql_pool.pool.released == 1


class TestMySQLQuizRepoStats:
    @pytest.mark.asyncio
    async def test_stats_of_unattempted_quiz_are_zero(self, mysql_pool, cursor):
        cursor.rows = [{'total_attempts': 0, 'average_score': None, 'highest_score': None, 'unique_users': 0}]

        stats = await MySQLQuizRepo(mysql_pool).get_stats(Quiz(id='quiz_abc123'))

        assert (stats.total_attempts, stats.average_score, stats.highest_score, stats.unique_users) == (0, 0.0, 0.0, 0)

    @pytest.mark.asyncio
    async def test_stats_are_rounded(self, mysql_pool, cursor):
        cursor.rows = [{'total_attempts': 3, 'average_score': Decimal('72.4567'),
                        'highest_score': Decimal('90.00'), 'unique_users': 2}]

        stats = await MySQLQuizRepo(mysql_pool).get_stats(Quiz(id='quiz_abc123'))

        assert stats.average_score == 72.46
        assert stats.highest_score == 90.0
        assert stats.unique_users == 2


class TestSchema:
    @pytest.mark.asyncio
    async def test_create_tables(self, mysql_pool, cursor, connection):
        await create_tables(mysql_pool)

        assert len(cursor.executed) == len(TABLES)
        assert all(sql.startswith('CREATE TABLE IF NOT EXISTS') for sql, _ in cursor.executed)
        assert connection.calls == ['begin', 'commit']
