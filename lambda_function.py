"""AWS Lambda handler for the Canadian live sports listing."""
import json
import logging
import os
import time
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from processor.models import format_instant
from processor.pipeline import default_sources, run_pipeline


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    EXTRA_FIELDS = ('source', 'timeout_seconds', 'error_type', 'duration_seconds', 'events', 'errors')

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key in self.EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def parse_timeout(value: str) -> Optional[float]:
    """
    Parse TIMEOUT_SECONDS; empty or zero disables the timeout.

    Args:
        value: Raw environment value

    Returns:
        Timeout in seconds or None
    """
    if not value or not value.strip():
        return None
    timeout = float(value)
    return timeout if timeout > 0 else None


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler returning the current live listing.

    Args:
        event: API Gateway or EventBridge event payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and a JSON body of events and errors
    """
    # Read configuration from environment variables
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_value = os.environ.get('TIMEOUT_SECONDS', '30')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()

    try:
        timeout = parse_timeout(timeout_value)
        logger.info(
            "Lambda execution started",
            extra={'timeout_seconds': timeout}
        )

        sources = default_sources(
            timeout=timeout,
            tsn_url=os.environ.get('TSN_URL'),
            sportsnet_url=os.environ.get('SPORTSNET_URL'),
            onesoccer_url=os.environ.get('ONESOCCER_URL')
        )

        now = datetime.now(timezone.utc)
        result = run_pipeline(now, sources=sources)

        duration = time.time() - start_time
        logger.info(
            "Lambda execution completed",
            extra={
                'duration_seconds': round(duration, 2),
                'events': len(result.events),
                'errors': len(result.errors)
            }
        )

        body = result.to_dict()
        body['generatedAt'] = format_instant(now)
        return {
            'statusCode': 200,
            'body': json.dumps(body)
        }

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Failed to build live listing',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }
