# numeric_backend.py

"""
大小格式化使用的数值后端。

格式化算法只依赖 NumericBackend 的这组操作：
add / subtract / multiply / truncating_divide / compare / absolute / to_string。
- Int64Backend: 有符号64位整数，超出范围抛出 SizeOverflowError
- DecimalBackend: 任意精度十进制 (decimal.Decimal)
两者的除法都是向零截断，而不是向下取整。
"""

from abc import ABC, abstractmethod
from decimal import Decimal, Context, InvalidOperation, MAX_EMAX, MIN_EMIN, ROUND_DOWN
from typing import Any, Union

from dbsize.engine.errors import SizeOverflowError

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

# 解析器的乘法只涉及 adjusted() <= 40 的数，1000 位足够容纳其整数部分
DECIMAL_CONTEXT = Context(prec=1000, rounding=ROUND_DOWN, Emax=MAX_EMAX, Emin=MIN_EMIN)


def exact_context(digits: int) -> Context:
    """能精确容纳 digits 位有效数字的上下文"""
    return Context(prec=max(digits, DECIMAL_CONTEXT.prec), rounding=ROUND_DOWN,
                   Emax=MAX_EMAX, Emin=MIN_EMIN)


def _digit_span(*operands: Decimal) -> int:
    """从所有操作数的最高位到最低位共跨越多少位"""
    high = max(max(op.adjusted(), 0) for op in operands)
    low = min(min(op.as_tuple().exponent, 0) for op in operands)
    return high - low + 1


class NumericBackend(ABC):
    """数值后端的抽象接口"""

    name = 'abstract'

    @abstractmethod
    def from_value(self, value: Any) -> Any:
        """把外部输入转换为本后端的数值"""

    @abstractmethod
    def from_int(self, value: int) -> Any: ...

    @abstractmethod
    def add(self, a, b): ...

    @abstractmethod
    def subtract(self, a, b): ...

    @abstractmethod
    def multiply(self, a, b): ...

    @abstractmethod
    def truncating_divide(self, a, b):
        """向零截断的除法"""

    @abstractmethod
    def compare(self, a, b) -> int:
        """a < b 返回 -1，相等返回 0，a > b 返回 1"""

    @abstractmethod
    def absolute(self, a): ...

    @abstractmethod
    def to_string(self, a) -> str: ...

    def is_negative(self, a) -> bool:
        return self.compare(a, self.from_int(0)) < 0

    def half_rounded(self, a):
        """除以2并向远离零的方向舍入: (v + sign(v)) / 2，向零截断"""
        one = self.from_int(1)
        if self.is_negative(a):
            a = self.subtract(a, one)
        else:
            a = self.add(a, one)
        return self.truncating_divide(a, self.from_int(2))


class Int64Backend(NumericBackend):
    """固定宽度的有符号64位整数"""

    name = 'int64'

    @staticmethod
    def _check(value: int) -> int:
        if value < INT64_MIN or value > INT64_MAX:
            raise SizeOverflowError()
        return value

    def from_value(self, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"int64 backend requires an int, not {type(value).__name__}")
        return self._check(value)

    def from_int(self, value: int) -> int:
        return self._check(value)

    def add(self, a: int, b: int) -> int:
        return self._check(a + b)

    def subtract(self, a: int, b: int) -> int:
        return self._check(a - b)

    def multiply(self, a: int, b: int) -> int:
        return self._check(a * b)

    def truncating_divide(self, a: int, b: int) -> int:
        if b == 0:
            raise ZeroDivisionError("division by zero")
        # Python 的 // 向下取整，这里按符号对称截断
        q = abs(a) // abs(b)
        if (a < 0) != (b < 0):
            q = -q
        return self._check(q)

    def compare(self, a: int, b: int) -> int:
        return (a > b) - (a < b)

    def absolute(self, a: int) -> int:
        # abs(INT64_MIN) 超出 int64，但只用于和单位上限比较，所以不做范围检查
        return abs(a)

    def to_string(self, a: int) -> str:
        return str(a)


class DecimalBackend(NumericBackend):
    """任意精度十进制"""

    name = 'numeric'

    def from_value(self, value: Any) -> Decimal:
        if isinstance(value, bool):
            raise TypeError("numeric backend does not accept bool")
        if isinstance(value, float):
            # 经过 str 转换，避免二进制浮点的尾数噪声
            value = repr(value)
        try:
            result = Decimal(value) if not isinstance(value, Decimal) else value
        except (InvalidOperation, TypeError, ValueError):
            raise ValueError(f'invalid input syntax for type numeric: "{value}"')
        if not result.is_finite():
            raise ValueError(f'invalid input syntax for type numeric: "{value}"')
        return result

    def from_int(self, value: int) -> Decimal:
        return Decimal(value)

    def add(self, a: Decimal, b: Decimal) -> Decimal:
        # 多留一位给进位
        return exact_context(_digit_span(a, b) + 1).add(a, b)

    def subtract(self, a: Decimal, b: Decimal) -> Decimal:
        return exact_context(_digit_span(a, b) + 1).subtract(a, b)

    def multiply(self, a: Decimal, b: Decimal) -> Decimal:
        digits = len(a.as_tuple().digits) + len(b.as_tuple().digits)
        return exact_context(digits).multiply(a, b)

    def truncating_divide(self, a: Decimal, b: Decimal) -> Decimal:
        if b == 0:
            raise ZeroDivisionError("division by zero")
        # Decimal 的整除本身就是向零截断；商的位数不超过被除数与除数的数量级之差加一
        digits = max(a.adjusted() - b.adjusted(), 0) + 2
        q = exact_context(digits).divide_int(a, b)
        if q.is_zero():
            q = Decimal(0)
        return q

    def compare(self, a: Decimal, b: Decimal) -> int:
        return int(a.compare(b))

    def absolute(self, a: Decimal) -> Decimal:
        return a.copy_abs()

    def to_string(self, a: Decimal) -> str:
        # 定点表示，不使用科学计数法
        if a.is_zero():
            a = a.copy_abs()
        return format(a, 'f')


INT64 = Int64Backend()
NUMERIC = DecimalBackend()

BACKENDS = {
    INT64.name: INT64,
    NUMERIC.name: NUMERIC,
}


def get_backend(backend: Union[str, NumericBackend]) -> NumericBackend:
    if isinstance(backend, NumericBackend):
        return backend
    if backend not in BACKENDS:
        raise ValueError(f"unknown numeric backend: {backend}")
    return BACKENDS[backend]
