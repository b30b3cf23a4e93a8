"""Custom filters for uvicorn access logging."""

import logging


class ExcludeMetricsFilter(logging.Filter):
    """
    Logging filter to exclude monitoring endpoint requests from access logs.

    Requests to paths like /metrics and /health will not appear in
    uvicorn's access logs.

    Note: uvicorn's logging config imports this class before the app starts,
    so settings are imported lazily.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Determine if the log record should be logged.

        Args:
            record: The log record to evaluate.

        Returns:
            False if the request path is in excluded paths, True otherwise.
        """
        message = record.getMessage()

        from chat_relay.settings import app_settings

        excluded_paths = app_settings.LOG_EXCLUDED_PATHS

        return not any(path in message for path in excluded_paths)
