"""livepulse: live metrics forwarding agent."""

__version__ = "0.1.0"

from livepulse.core.logs import get_logger  # noqa: E402

__all__ = ["__version__", "get_logger"]
