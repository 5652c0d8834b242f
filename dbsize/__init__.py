"""
dbsize：数据库对象磁盘占用计算与大小单位换算。

子包：
- storage: 物理路径、文件访问、段链与目录求和
- engine: 目录、权限检查与对象大小组合
- units: 字节数与可读字符串的互相转换
"""

__version__ = "0.3.0"
