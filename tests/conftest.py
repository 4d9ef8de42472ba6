import pytest
from infrastructure.aiomysql_config import MySQLPool
from infrastructure.memory_cache import MemoryCache
from infrastructure.redis_config import RedisPool
from tests.helpers import FakeCursor, FakeConnection, FakeAiomysqlPool


@pytest.fixture
def cursor():
    return FakeCursor()


@pytest.fixture
def connection(cursor):
    return FakeConnection(cursor)


@pytest.fixture
def mysql_pool(connection):
    pool = MySQLPool(host='localhost', port=3306, user='test', password='', db='test')
    pool.pool = FakeAiomysqlPool(connection)
    return pool


@pytest.fixture
def redis_pool():
    pool = RedisPool(host='localhost', port=6379, db=0)
    pool.pool = MemoryCache()
    return pool
