import os
import logging
import json

_STANDARD_RECORD_ATTRIBUTES = {
    'args', 'asctime', 'created', 'exc_info', 'exc_text', 'filename',
    'funcName', 'id', 'levelname', 'levelno', 'lineno', 'module',
    'msecs', 'message', 'msg', 'name', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info', 'thread', 'threadName',
    'taskName'
}


def setup_logging(level=None):
    """
    Configure the root logger for the long-running scaler process.

    The control loop logs one line per tick plus one per scale decision, so
    INFO is the useful default. Set LOG_FORMAT=json when the pod or task
    ships stdout to a collector that indexes fields; the `extra=` values the
    loop attaches (queue_messages, direction) become top-level keys.

    Args:
        level: Level name overriding LOG_LEVEL; unknown names fall back to INFO
    """
    # Get log level from environment or use default
    if level is None:
        level = os.environ.get('LOG_LEVEL', 'INFO')

    # Convert string level to logging constant
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    # Configure root logger
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s [%(levelname)s] %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if os.environ.get('LOG_FORMAT', 'text').lower() == 'json':
        root_logger = logging.getLogger()
        for handler in root_logger.handlers:
            handler.setFormatter(JsonFormatter())

    # Client libraries log every request at INFO/DEBUG
    for name in ('boto3', 'botocore', 'urllib3', 'kubernetes', 'redis'):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.debug("Logging initialized")


class JsonFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, source
    location, formatted traceback, and any `extra=` fields."""

    def format(self, record):
        log_record = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'name': record.name,
            'message': record.getMessage(),
            'file': record.pathname,
            'line': record.lineno,
            'function': record.funcName
        }

        # Add exception info if present
        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)

        # Add extra fields from record
        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_ATTRIBUTES:
                log_record[key] = value

        return json.dumps(log_record, default=str)
