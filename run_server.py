"""
Entry point for running the relay with uvicorn.

Host and port come from chat_relay.settings (HOST / PORT env vars). The
access log hides monitoring endpoints through ExcludeMetricsFilter.
"""

import copy

from uvicorn.config import LOGGING_CONFIG


def build_log_config() -> dict:
    """
    Build uvicorn's logging config with monitoring paths filtered out.

    Returns:
        dict: A copy of uvicorn's default config with the access handler
        wired to uvicorn_filters.ExcludeMetricsFilter.
    """
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config.setdefault("filters", {})["exclude_metrics"] = {
        "()": "uvicorn_filters.ExcludeMetricsFilter"
    }
    log_config["handlers"]["access"]["filters"] = ["exclude_metrics"]
    return log_config


if __name__ == "__main__":
    import uvicorn

    from chat_relay.settings import app_settings

    uvicorn.run(
        "chat_relay:application",
        factory=True,
        host=app_settings.HOST,
        port=app_settings.PORT,
        log_config=build_log_config(),
    )
