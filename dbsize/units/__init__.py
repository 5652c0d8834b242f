"""
Units 子系统：字节数与可读大小字符串的互相转换。

模块清单：
- numeric_backend: int64 / 任意精度十进制两种数值后端
- size_units: 单位表与别名表
- size_pretty: 字节数 -> 字符串
- size_parser: 字符串 -> 字节数
"""

from .numeric_backend import INT64, NUMERIC, NumericBackend, Int64Backend, DecimalBackend
from .size_units import SIZE_UNITS, UNIT_ALIASES, SizeUnit, UnitAlias
from .size_pretty import pretty_print, size_pretty, size_pretty_numeric
from .size_parser import parse_size_string
