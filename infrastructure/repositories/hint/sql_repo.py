from typing import Optional
import aiomysql
from app.domain.repositories_interfaces.hint_repo import HintRepoInterface
from app.domain.entities.hint import Hint
from app.domain.identifiers import generate_hint_id
from infrastructure.aiomysql_config import MySQLPool


class MySQLHintRepo(HintRepoInterface):
    def __init__(self, pool: MySQLPool):
        self.pool = pool

    async def get(self, hint: Hint) -> Optional[Hint]:
        async with self.pool.connection() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(
                    "SELECT hint_id, quiz_id, question_id, hint, created_at FROM quiz_hints "
                    "WHERE quiz_id=%s AND question_id=%s",
                    (hint.quiz_id, hint.question_id)
                )
                row = await cursor.fetchone()
        if not row:
            return None
        return Hint(id=row['hint_id'], quiz_id=row['quiz_id'], question_id=row['question_id'],
                    text=row['hint'], created_at=row['created_at'])

    async def save(self, hint: Hint) -> None:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cursor:
                # A concurrent request may have stored a hint for the same question first
                await cursor.execute(
                    '''INSERT INTO quiz_hints (hint_id, quiz_id, question_id, hint) VALUES (%s, %s, %s, %s)
                       ON DUPLICATE KEY UPDATE hint_id=hint_id''',
                    (hint.id or generate_hint_id(), hint.quiz_id, hint.question_id, hint.text)
                )
                await conn.commit()
