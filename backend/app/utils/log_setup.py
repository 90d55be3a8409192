"""Logging configuration shared by the API process and the scripts."""

import logging

TRACE = 5


def install_trace_level() -> None:
    """Register the custom TRACE level and a ``Logger.trace`` method."""
    if getattr(logging, "TRACE", None) == TRACE:
        return

    logging.TRACE = TRACE
    logging.addLevelName(TRACE, "TRACE")

    def trace_method(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = trace_method


def configure_logging(log_level: str) -> None:
    """Configure the root logger and the per-subsystem levels.

    ``VERBOSE`` keeps the root at DEBUG but also turns on httpx/httpcore wire
    logging and provider traces. ``TRACE`` turns everything up to TRACE.
    """
    install_trace_level()

    log_level_str = log_level.upper()
    base_level = TRACE if log_level_str == "TRACE" else getattr(logging, log_level_str, logging.INFO)
    if not isinstance(base_level, int):
        base_level = logging.INFO

    root = logging.getLogger()
    if root.hasHandlers():
        return

    logging.basicConfig(
        level=base_level,
        format='%(asctime)s - %(name)s - %(levelname)-8s - %(message)s'
    )

    if log_level_str == "VERBOSE":
        root_level = logging.DEBUG
        http_level = logging.DEBUG
        providers_level = TRACE
        sync_level = logging.DEBUG
        root.info("VERBOSE mode enabled: HTTP details and provider traces active for debugging.")
    elif log_level_str == "TRACE":
        root_level = TRACE
        http_level = TRACE
        providers_level = TRACE
        sync_level = TRACE
    else:
        root_level = base_level
        http_level = logging.WARNING
        providers_level = logging.DEBUG if root_level <= logging.DEBUG else root_level
        sync_level = root_level

    root.setLevel(root_level)
    logging.getLogger("httpcore").setLevel(http_level)
    logging.getLogger("httpcore.http11").setLevel(http_level)
    logging.getLogger("httpx").setLevel(http_level)
    logging.getLogger("app.providers").setLevel(providers_level)
    logging.getLogger("app.services.sync_service").setLevel(sync_level)

    if log_level_str == "TRACE":
        root.trace("Trace logging enabled at startup (verbose details).")
    else:
        root.debug("Debug logging enabled at startup.")
