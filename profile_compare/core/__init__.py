"""Shared kernel: 常量与异常定义,不依赖 Flask."""
