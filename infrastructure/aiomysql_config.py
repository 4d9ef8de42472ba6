import logging
from contextlib import asynccontextmanager
import aiomysql
from app.domain.exceptions import StorageError


logger = logging.getLogger('repositories')


class MySQLPool:
    def __init__(self, host: str, port: int, user: str, password: str, db: str):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.db = db
        self.pool = None

    async def create_pool(self):
        try:
            self.pool = await aiomysql.create_pool(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                db=self.db,
            )
        except (aiomysql.Error, OSError) as e:
            logger.error(f"Could not connect to MySQL at {self.host}:{self.port}: {e}")
            raise StorageError(f"MySQL unavailable: {e}") from e

    async def close_pool(self):
        self.pool.close()
        await self.pool.wait_closed()
        self.pool = None

    async def get_connection(self):
        try:
            return await self.pool.acquire()
        except (aiomysql.Error, OSError) as e:
            logger.error(f"Could not acquire MySQL connection: {e}")
            raise StorageError(f"MySQL unavailable: {e}") from e

    async def release_connection(self, connection):
        self.pool.release(connection)

    @asynccontextmanager
    async def connection(self):
        """
        Yields a pooled connection in autocommit-free mode and releases it on every exit path.
        Driver errors raised inside the block are re-raised as StorageError.
        """
        conn = await self.get_connection()
        try:
            yield conn
        except aiomysql.Error as e:
            logger.error(f"MySQL statement failed: {e}")
            raise StorageError(str(e)) from e
        finally:
            await self.release_connection(conn)

    @asynccontextmanager
    async def transaction(self):
        """
        Yields a connection inside a transaction. Commits when the block succeeds and
        rolls back when anything inside it raises, so either every statement takes
        effect or none does.
        """
        async with self.connection() as conn:
            await conn.begin()
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            await conn.commit()
