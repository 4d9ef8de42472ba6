import os
from dotenv import load_dotenv


load_dotenv()

# MySQL
DB_HOST = os.getenv('DB_HOST', 'localhost')
DB_PORT = int(os.getenv('DB_PORT', 3306))
DB_USER = os.getenv('DB_USER', 'root')
DB_PASSWORD = os.getenv('DB_PASSWORD', '')
DB_NAME = os.getenv('DB_NAME', 'quizzes')

# Redis
REDIS_HOST = os.getenv('REDIS_HOST', 'localhost')
REDIS_PORT = int(os.getenv('REDIS_PORT', 6379))
REDIS_DB = int(os.getenv('REDIS_DB', 0))
# Seconds to wait for Redis before switching to the in-process cache
REDIS_CONNECT_TIMEOUT = float(os.getenv('REDIS_CONNECT_TIMEOUT', 0.5))

# Cache TTLs in seconds
CACHE_QUIZ_TTL = int(os.getenv('CACHE_QUIZ_TTL', 3600))
CACHE_HISTORY_TTL = int(os.getenv('CACHE_HISTORY_TTL', 1800))
CACHE_STATS_TTL = int(os.getenv('CACHE_STATS_TTL', 3600))
CACHE_RECENT_TTL = int(os.getenv('CACHE_RECENT_TTL', 900))
CACHE_HINTS_TTL = int(os.getenv('CACHE_HINTS_TTL', 86400))

# AI provider: gemini, groq or stub
AI_PROVIDER = os.getenv('AI_PROVIDER', 'gemini').lower()
GEMINI_API_KEY = os.getenv('GEMINI_API_KEY')
GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-2.0-flash')
GEMINI_BASE_URL = os.getenv('GEMINI_BASE_URL', 'https://generativelanguage.googleapis.com/v1beta')
GROQ_API_KEY = os.getenv('GROQ_API_KEY')
GROQ_MODEL = os.getenv('GROQ_MODEL', 'llama3-8b-8192')
GROQ_BASE_URL = os.getenv('GROQ_BASE_URL', 'https://api.groq.com/openai/v1')
AI_TIMEOUT = float(os.getenv('AI_TIMEOUT', 30))
GENERATION_ATTEMPTS = int(os.getenv('GENERATION_ATTEMPTS', 2))

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FILE = os.getenv('LOG_FILE')
