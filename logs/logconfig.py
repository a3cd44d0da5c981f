import logging
from logging.config import dictConfig
from config import settings

PACKET_LOGGER = 'gt06.packets'


def configure_logging(session_id_run):
    # Set the default logging level
    log_level = logging.INFO if settings.PROD else logging.DEBUG

    handlers = ['h', 'file'] if settings.PROD else ['h']

    LOGGING_CONFIG = dict(
        version=1,
        disable_existing_loggers=False,
        formatters={
            'f': {
                'format': f'%(asctime)s %(name)-12s %(levelname)-8s [SESSION_ID: {session_id_run}] %(message)s',
            },
            'packets': {
                'format': '[%(asctime)s] %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S',
            },
        },
        handlers={
            'h': {
                'class': 'logging.StreamHandler',
                'formatter': 'f',
                'level': log_level,
            },
            'file': {
                'class': 'logging.handlers.RotatingFileHandler',
                'filename': settings.LOG_FILE,
                'formatter': 'f',
                'level': log_level,
                'maxBytes': 1024 * 1024 * 5,  # 5 MB
                'backupCount': 10,
                'delay': True,
            },
            'packets': {
                'class': 'logging.FileHandler',
                'filename': settings.PACKET_LOG_FILE,
                'formatter': 'packets',
                'level': logging.INFO,
                'delay': True,
            },
        },
        loggers={
            PACKET_LOGGER: {
                'handlers': ['packets'],
                'level': logging.INFO,
            },
        },
        root={
            'handlers': handlers,
            'level': log_level,
        },
    )

    if not settings.PROD:
        # Rotating file output is production only
        del LOGGING_CONFIG['handlers']['file']

    dictConfig(LOGGING_CONFIG)
