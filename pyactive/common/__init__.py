"""
pyactive 公共模块

异常、配置选项与类型别名
"""
