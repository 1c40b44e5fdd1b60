from .rate_limit import RateLimit
from .request_logger import RequestLogger, SecurityHeaders

__all__ = ["RateLimit", "RequestLogger", "SecurityHeaders"]
