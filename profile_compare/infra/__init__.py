"""基础设施层(HTTP 中间件等)."""
