"""Time entry sync service."""

from app.utils.log_setup import install_trace_level

__version__ = "1.0.0"

install_trace_level()
