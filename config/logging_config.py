import logging
import logging.config
from config.main_config import LOG_LEVEL, LOG_FILE


class UserFilter(logging.Filter):
    def filter(self, record):
        if not hasattr(record, 'user'):
            record.user = 'SYSTEM'  # Set default user if not provided
        return True


def build_logging_config(level: str = LOG_LEVEL, filename: str = LOG_FILE) -> dict:
    handlers = {
        'console': {
            'level': level,
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
            'filters': ['user_filter']
        },
    }
    if filename:
        handlers['file'] = {
            'level': level,
            'class': 'logging.FileHandler',
            'filename': filename,
            'formatter': 'standard',
            'filters': ['user_filter']
        }
    handler_names = list(handlers)

    loggers = {
        name: {
            'handlers': handler_names,
            'level': level,
            'propagate': False,
        }
        for name in ('use_cases', 'repositories', 'cache', 'external_apis', 'codecs')
    }
    loggers[''] = {
        'handlers': handler_names,
        'level': level,
        'propagate': True,
    }

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(user)s - %(message)s'
            },
        },
        'filters': {
            'user_filter': {
                '()': UserFilter,
            },
        },
        'handlers': handlers,
        'loggers': loggers,
    }


def configure_logging(level: str = LOG_LEVEL, filename: str = LOG_FILE) -> None:
    logging.config.dictConfig(build_logging_config(level, filename))
