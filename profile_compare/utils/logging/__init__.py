"""日志辅助模块."""
