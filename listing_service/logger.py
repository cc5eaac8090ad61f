import datetime
import json
import logging

SERVICE_NAME = 'listing_service'

EXTRA_FIELDS = (
    'endpoint',
    'status_code',
    'user_id',
    'user_name',
    'product_id',
    'product_count',
    'search',
    'cached',
    'error',
    'port',
)

logger = logging.getLogger(SERVICE_NAME)


# Structured logging
class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_entry = {
            'timestamp': datetime.datetime.now(datetime.timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'service': SERVICE_NAME,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        return json.dumps(log_entry, default=str)


def configure_logging(level='INFO'):
    logger.setLevel(level)

    # Remove any existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    return logger
