"""API v1 资源基类与装饰器."""
