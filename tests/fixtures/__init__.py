"""测试数据 fixtures."""
