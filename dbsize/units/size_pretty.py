# size_pretty.py

from typing import Any, Union

from .numeric_backend import INT64, NUMERIC, NumericBackend, get_backend
from .size_units import SIZE_UNITS, is_last_unit, shift_to_next


def pretty_print(size: Any, backend: Union[str, NumericBackend] = INT64) -> str:
    """
    把字节数格式化为 "<数值> <单位>"。

    从最小单位开始：若已是最后一个单位，或当前数值的绝对值小于该单位的上限，
    就选定该单位（需要时做半舍入）；否则按 shift_to_next() 的位数做向零截断除法，
    进入下一个单位。正负数按同样的方式舍入和移位。
    """
    backend = get_backend(backend)
    value = backend.from_value(size)

    for index, unit in enumerate(SIZE_UNITS):
        if is_last_unit(index) or \
                backend.compare(backend.absolute(value), backend.from_int(unit.limit)) < 0:
            if unit.round:
                value = backend.half_rounded(value)
            return f"{backend.to_string(value)} {unit.name}"

        divisor = backend.from_int(1 << shift_to_next(index))
        value = backend.truncating_divide(value, divisor)

    # 单位表保证最后一个单位一定被选中
    raise AssertionError("unit table has no catch-all entry")


def size_pretty(size: int) -> str:
    """定宽 (int64) 版本"""
    return pretty_print(size, INT64)


def size_pretty_numeric(size: Any) -> str:
    """任意精度版本，接受 int / Decimal / 数值字符串"""
    return pretty_print(size, NUMERIC)


def selected_unit(size: Any, backend: Union[str, NumericBackend] = INT64) -> str:
    """返回 pretty_print 会选择的单位名"""
    return pretty_print(size, backend).rsplit(' ', 1)[1]
