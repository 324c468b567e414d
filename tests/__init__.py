"""测试套件."""
