"""请求级日志中间件."""

from profile_compare.infra.logging.request_middleware import (
    REQUEST_ID_HEADER,
    register_request_logging,
    sanitize_request_id,
)

__all__ = ["REQUEST_ID_HEADER", "register_request_logging", "sanitize_request_id"]
