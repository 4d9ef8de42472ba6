import json
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import patch
import pytest
from app.domain.entities.quiz import Quiz
from app.domain.entities.submission import Submission, QuizResponse, HistoryQuery, UserStats, BestScore
from app.domain.entities.user import User
from infrastructure.repositories.submission.sql_repo import MySQLSubmissionRepo


def submission_row(submission_id='sub_1', percentage='50.00', is_retry=0, **overrides):
    row = {
        'submission_id': submission_id,
        'quiz_id': 'quiz_abc123',
        'user_id': 'user-1',
        'responses': json.dumps([{'questionId': 'q1', 'userResponse': 'A'}]),
        'score': 1,
        'max_score': 2,
        'percentage': Decimal(percentage),
        'detailed_results': json.dumps([{'questionId': 'q1', 'userResponse': 'A', 'correctAnswer': 'A',
                                         'isCorrect': True, 'marks': 1, 'explanation': 'Correct.'}]),
        'suggestions': json.dumps(['Keep practicing']),
        'completed_at': datetime(2024, 3, 1, 12, 0),
        'is_retry': is_retry,
        'original_submission_id': None,
        'quiz_title': 'Math quiz',
        'subject': 'Math',
        'grade': 5,
    }
    row.update(overrides)
    return row


class TestMySQLSubmissionRepoHistory:
    """Test filtered history pages read from the durable store"""

    @pytest.mark.asyncio
    async def test_filters_are_applied_to_page_and_count(self, mysql_pool, cursor):
        """Test every filter reaches both the page query and the count query"""
        cursor.rows = [[submission_row('sub_2'), submission_row('sub_1')], {'total': 7}]
        query = HistoryQuery(limit=5, offset=5, subject='Math', grade=5, min_score=50, max_score=90,
                             from_date=date(2024, 1, 1), to_date=date(2024, 3, 31), include_retries=False)

        page = await MySQLSubmissionRepo(mysql_pool).get_by_user(User(id='user-1'), query)

        assert [submission.id for submission in page.submissions] == ['sub_2', 'sub_1']
        assert (page.total, page.limit, page.offset, page.total_pages) == (7, 5, 5, 2)
        assert page.submissions[0].quiz_title == 'Math quiz'
        select_sql, select_params = cursor.executed[0]
        count_sql, count_params = cursor.executed[1]
        assert 's.is_retry = FALSE' in select_sql
        assert 'q.subject=%s AND q.grade=%s' in select_sql
        assert 'DATE(s.completed_at) >= %s AND DATE(s.completed_at) <= %s' in select_sql
        assert select_params == ('user-1', 'Math', 5, 50.0, 90.0, date(2024, 1, 1), date(2024, 3, 31), 5, 5)
        assert count_sql.startswith('SELECT COUNT(*) AS total')
        assert count_params == select_params[:-2]

    @pytest.mark.asyncio
    async def test_default_query_only_pages(self, mysql_pool, cursor):
        cursor.rows = [[], {'total': 0}]

        page = await MySQLSubmissionRepo(mysql_pool).get_by_user(User(id='user-1'), HistoryQuery())

        assert page.submissions == []
        assert page.total == 0
        select_sql, select_params = cursor.executed[0]
        assert 'is_retry = FALSE' not in select_sql
        assert select_params == ('user-1', 10, 0)
        assert mysql_pool.pool.released == 1

    @pytest.mark.asyncio
    async def test_recent_activity(self, mysql_pool, cursor):
        cursor.rows = [[submission_row('sub_3', is_retry=1)]]

        recent = await MySQLSubmissionRepo(mysql_pool).get_recent(User(id='user-1'), limit=3)

        assert recent[0].is_retry is True
        assert recent[0].responses == [QuizResponse(question_id='q1', user_response='A')]
        assert cursor.executed[0][1] == ('user-1', 3)


class TestMySQLSubmissionRepoStats:
    """Test per-user aggregates"""

    @pytest.mark.asyncio
    async def test_user_stats(self, mysql_pool, cursor):
        cursor.rows = [
            {'total_submissions': 4, 'unique_quizzes_attempted': 2, 'average_score': Decimal('66.6667'),
             'best_score': Decimal('100.00'), 'worst_score': Decimal('25.00'), 'excellent_scores': 2,
             'good_scores': 1, 'needs_improvement': 1, 'total_retries': 2},
            [{'subject': 'Science', 'attempts': 1, 'average_score': Decimal('100.0000'),
              'best_score': Decimal('100.00')},
             {'subject': 'Math', 'attempts': 3, 'average_score': Decimal('55.5556'),
              'best_score': Decimal('80.00')}],
            [{'grade': 5, 'attempts': 4, 'average_score': Decimal('66.6667'), 'best_score': Decimal('100.00')}],
        ]

        stats = await MySQLSubmissionRepo(mysql_pool).get_user_stats(User(id='user-1'))

        assert (stats.total_submissions, stats.unique_quizzes_attempted, stats.total_retries) == (4, 2, 2)
        assert (stats.average_score, stats.best_score, stats.worst_score) == (66.67, 100.0, 25.0)
        assert (stats.excellent_scores, stats.good_scores, stats.needs_improvement) == (2, 1, 1)
        assert [(entry.subject, entry.average_score) for entry in stats.by_subject] == [
            ('Science', 100.0), ('Math', 55.56)]
        assert stats.by_grade[0].grade == 5
        assert stats.by_grade[0].attempts == 4
        assert len(cursor.executed) == 3
        assert all(params == ('user-1',) for _, params in cursor.executed)

    @pytest.mark.asyncio
    async def test_user_without_submissions(self, mysql_pool, cursor):
        """Test NULL aggregates of an empty history read as zeros"""
        cursor.rows = [{'total_submissions': 0, 'unique_quizzes_attempted': 0, 'average_score': None,
                        'best_score': None, 'worst_score': None, 'excellent_scores': 0, 'good_scores': 0,
                        'needs_improvement': 0, 'total_retries': 0}, [], []]

        stats = await MySQLSubmissionRepo(mysql_pool).get_user_stats(User(id='user-new'))

        assert stats == UserStats()

    @pytest.mark.asyncio
    async def test_best_score(self, mysql_pool, cursor):
        cursor.rows = [{'best_score': Decimal('87.50'), 'first_attempt': datetime(2024, 2, 1, 9, 30)}]

        best = await MySQLSubmissionRepo(mysql_pool).get_best_score(User(id='user-1'), Quiz(id='quiz_abc123'))

        assert best == BestScore(best_score=87.5, first_attempt=datetime(2024, 2, 1, 9, 30))
        assert cursor.executed[0][1] == ('user-1', 'quiz_abc123')

    @pytest.mark.asyncio
    async def test_best_score_before_first_attempt(self, mysql_pool, cursor):
        cursor.rows = [{'best_score': None, 'first_attempt': None}]

        best = await MySQLSubmissionRepo(mysql_pool).get_best_score(User(id='user-1'), Quiz(id='quiz_abc123'))

        assert best.best_score is None
        assert best.first_attempt is None


class TestMySQLSubmissionRepoSave:
    @pytest.mark.asyncio
    async def test_save_assigns_id_and_completion_time(self, mysql_pool, cursor, connection):
        draft = Submission(quiz_id='quiz_abc123', user_id='user-1', score=1, max_score=2, percentage=50.0,
                           responses=[QuizResponse(question_id='q1', user_response='A')], is_retry=True,
                           original_submission_id='sub_0')

        with patch('infrastructure.repositories.submission.sql_repo.generate_submission_id', return_value='sub_1'):
            created = await MySQLSubmissionRepo(mysql_pool).save(draft)

        assert created.id == 'sub_1'
        assert created.completed_at is not None
        insert_sql, params = cursor.executed[0]
        assert insert_sql.startswith('INSERT INTO quiz_submissions')
        assert json.loads(params[3]) == [{'questionId': 'q1', 'userResponse': 'A'}]
        assert params[-2:] == (True, 'sub_0')
        assert connection.calls == ['commit']
