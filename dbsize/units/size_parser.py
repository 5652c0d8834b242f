# size_parser.py

"""
可读大小字符串 -> 字节数。

语法: [空白] [+|-] 数字 [. 数字] [e|E [+|-] 数字] [空白] [单位] [空白]
- 整数部分和小数部分至少要有一位数字
- e/E 后面没有数字时，e 以及之后的内容都当作单位处理（"10e" 的单位是 "e"）
- 没有单位即字节；单位大小写不敏感，先匹配单位名再匹配别名
- 结果向零截断为 int64
"""

import re
from decimal import Decimal, DecimalException

from loguru import logger

from dbsize.engine.errors import SizeOverflowError, SizeParseError
from .numeric_backend import DECIMAL_CONTEXT, INT64_MAX, INT64_MIN
from .size_units import VALID_UNITS_HINT, lookup_unit

# 与 C 语言 isspace 一致的空白集合
WHITESPACE = ' \t\n\r\f\v'

_SIGN_RE = re.compile(r'[+-]?')
_DIGITS_RE = re.compile(r'[0-9]+')
_EXPONENT_RE = re.compile(r'[eE][+-]?[0-9]+')

# 超过这个数量级的数，乘以任何单位后都不可能落在 int64 内
_MAX_ADJUSTED_EXPONENT = 40


def _scan_number(text: str, start: int) -> int:
    """返回数值部分的结束位置；没有任何数字时抛出 SizeParseError"""
    pos = _SIGN_RE.match(text, start).end()
    have_digits = False

    m = _DIGITS_RE.match(text, pos)
    if m:
        have_digits = True
        pos = m.end()

    if pos < len(text) and text[pos] == '.':
        pos += 1
        m = _DIGITS_RE.match(text, pos)
        if m:
            have_digits = True
            pos = m.end()

    if not have_digits:
        raise SizeParseError(text)

    m = _EXPONENT_RE.match(text, pos)
    if m:
        pos = m.end()
    return pos


def parse_size_string(text: str) -> int:
    """把 "10 kB"、"1.5 MB"、"-2e3" 等字符串转换为字节数"""
    if not isinstance(text, str):
        raise TypeError(f"size must be a string, not {type(text).__name__}")

    start = len(text) - len(text.lstrip(WHITESPACE))
    end = _scan_number(text, start)

    number_text = text[start:end]
    try:
        num = Decimal(number_text)
    except DecimalException:
        raise SizeParseError(text)

    unit_text = text[end:].strip(WHITESPACE)
    if unit_text:
        unit = lookup_unit(unit_text)
        if unit is None:
            raise SizeParseError(
                text,
                detail=f'Invalid size unit: "{unit_text}".',
                hint=VALID_UNITS_HINT,
            )
        multiplier = 1 << unit.unitbits
    else:
        multiplier = 1

    if not num.is_zero() and num.adjusted() > _MAX_ADJUSTED_EXPONENT:
        raise SizeOverflowError()

    try:
        if multiplier > 1:
            num = DECIMAL_CONTEXT.multiply(num, Decimal(multiplier))
        # 向零截断
        result = int(num)
    except DecimalException:
        raise SizeOverflowError()

    if result < INT64_MIN or result > INT64_MAX:
        raise SizeOverflowError()

    logger.debug(f"[size_parser] '{text}' -> {result}")
    return result
