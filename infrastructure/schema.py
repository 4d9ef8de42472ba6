from infrastructure.aiomysql_config import MySQLPool


TABLES = (
    '''CREATE TABLE IF NOT EXISTS quizzes (
        quiz_id VARCHAR(64) PRIMARY KEY,
        user_id VARCHAR(64) NOT NULL,
        title VARCHAR(255) NOT NULL,
        subject VARCHAR(64) NOT NULL,
        grade TINYINT NOT NULL,
        difficulty VARCHAR(8) NOT NULL,
        total_questions INT NOT NULL,
        max_score INT NOT NULL,
        questions LONGTEXT NOT NULL,
        created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
        INDEX idx_quizzes_user (user_id, created_at)
    )''',
    '''CREATE TABLE IF NOT EXISTS quiz_submissions (
        submission_id VARCHAR(64) PRIMARY KEY,
        quiz_id VARCHAR(64) NOT NULL,
        user_id VARCHAR(64) NOT NULL,
        responses LONGTEXT NOT NULL,
        score INT NOT NULL,
        max_score INT NOT NULL,
        percentage DECIMAL(5, 2) NOT NULL,
        detailed_results LONGTEXT NOT NULL,
        suggestions TEXT NOT NULL,
        completed_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
        is_retry BOOLEAN NOT NULL DEFAULT FALSE,
        original_submission_id VARCHAR(64) NULL,
        INDEX idx_submissions_user_quiz (user_id, quiz_id, completed_at),
        FOREIGN KEY (quiz_id) REFERENCES quizzes (quiz_id)
    )''',
    '''CREATE TABLE IF NOT EXISTS quiz_hints (
        hint_id VARCHAR(64) PRIMARY KEY,
        quiz_id VARCHAR(64) NOT NULL,
        question_id VARCHAR(64) NOT NULL,
        hint TEXT NOT NULL,
        created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
        UNIQUE KEY uq_hint_question (quiz_id, question_id),
        FOREIGN KEY (quiz_id) REFERENCES quizzes (quiz_id)
    )''',
)


async def create_tables(pool: MySQLPool) -> None:
    async with pool.transaction() as conn:
        async with conn.cursor() as cursor:
            for statement in TABLES:
                await cursor.execute(statement)
