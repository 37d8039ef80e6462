"""
Error Monitoring

Unexpected exceptions are reported here with their request context. The
default sink is the 'monitoring' logger (full stack trace); extra sinks can
be registered, e.g. to forward to an external error tracker.
"""

import structlog

logger = structlog.get_logger('monitoring')

_sinks = []


def register_sink(sink):
    """Add a callable(error, context) that receives every captured error."""
    _sinks.append(sink)


def clear_sinks():
    _sinks.clear()


def capture_error(error, context=None):
    """
    Report an exception to the monitoring sinks.

    Non-exception values are wrapped so callers can pass whatever they caught.

    Returns:
        The exception that was reported
    """
    if not isinstance(error, BaseException):
        error = RuntimeError(f'Non-exception raised: {error!r}')

    context = dict(context or {})
    logger.error(
        'Captured error', error=str(error), error_type=type(error).__name__, context=context,
        exc_info=(type(error), error, error.__traceback__),
    )

    for sink in list(_sinks):
        try:
            sink(error, context)
        except Exception:
            # A broken sink must not mask the original failure
            logger.exception('Monitoring sink failed')

    return error
