from .logging import ACCESS_LOGGER_NAME, RequestLoggingMiddleware

__all__ = ["ACCESS_LOGGER_NAME", "RequestLoggingMiddleware"]
