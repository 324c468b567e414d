"""业务服务层: 数据源契约、规范化、对比与导出."""
