from .logging import RequestLoggingMiddleware
from .rate_limiting import RateLimitMiddleware

__all__ = ["RequestLoggingMiddleware", "RateLimitMiddleware"]
