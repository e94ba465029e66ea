import os

import sentry_sdk
from dotenv import load_dotenv
from sentry_sdk.integrations.logging import LoggingIntegration

from models.errors import ModelError
from utils.logging_config import get_logger

logger = get_logger(__name__)


def initialize_sentry():
    """
    Initialize Sentry for error monitoring.

    Environment variables:
    - SENTRY_DSN: Your Sentry project DSN
    - SENTRY_ENVIRONMENT: Environment name (e.g., 'production', 'development')
    - SENTRY_TRACES_SAMPLE_RATE: Sample rate for performance monitoring (0.0 to 1.0)

    Returns:
        True if Sentry was initialized
    """
    load_dotenv()

    dsn = os.getenv('SENTRY_DSN')

    if not dsn:
        logger.info("Sentry DSN not configured. Skipping Sentry initialization.")
        return False

    environment = os.getenv('SENTRY_ENVIRONMENT', 'development')
    traces_sample_rate = float(os.getenv('SENTRY_TRACES_SAMPLE_RATE', '0.0'))

    logging_integration = LoggingIntegration(
        level=None,  # Capture records from all log levels as breadcrumbs
        event_level=None  # Don't send log records as events
    )

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            traces_sample_rate=traces_sample_rate,
            integrations=[logging_integration],
            attach_stacktrace=True,
            send_default_pii=False,
            max_breadcrumbs=50,
            before_send=before_send_filter,
        )

        logger.info(f"Sentry initialized successfully. Environment: {environment}")
        return True
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")
        return False


def before_send_filter(event, hint):
    """
    Drop recoverable validation errors; those are caller input problems.
    """
    if 'exc_info' in hint:
        exc_type, exc_value, tb = hint['exc_info']
        if isinstance(exc_value, ModelError):
            return None

    return event


def capture_exception_with_context(exception, **context):
    """
    Capture an exception with additional context.
    A no-op when Sentry was not initialized.

    Args:
        exception: The exception to capture
        **context: Tags attached to the event
    """
    with sentry_sdk.new_scope() as scope:
        for key, value in context.items():
            scope.set_tag(key, value)

        sentry_sdk.capture_exception(exception)


def add_breadcrumb(message, category=None, level='info', data=None):
    """
    Add a breadcrumb to track user actions or events.

    Args:
        message: Breadcrumb message
        category: Category of the breadcrumb
        level: Log level
        data: Additional data
    """
    sentry_sdk.add_breadcrumb(
        message=message,
        category=category or 'default',
        level=level,
        data=data or {}
    )
