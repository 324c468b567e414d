"""通用工具模块(日志、响应封套、时间、CSV 安全)."""
