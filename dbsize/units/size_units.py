# size_units.py

"""
大小单位表（进程级只读常量）。

每个单位都是2的幂。limit 是换算到该单位后、半舍入之前的上限；
最后一个单位 limit 为 None，作为兜底单位。
"""

from typing import NamedTuple, Optional, Tuple


class SizeUnit(NamedTuple):
    name: str              # bytes, kB, MB, GB ...
    unitbits: int          # (1 << unitbits) 字节为1个该单位
    limit: Optional[int]   # None 表示没有上限
    round: bool            # 该单位是否做半舍入


class UnitAlias(NamedTuple):
    alias: str
    unit_index: int        # 对应 SIZE_UNITS 中的下标


# 增加单位时同时更新 VALID_UNITS_HINT
SIZE_UNITS: Tuple[SizeUnit, ...] = (
    SizeUnit('bytes', 0, 10 * 1024, False),
    SizeUnit('kB', 10, 20 * 1024 - 1, True),
    SizeUnit('MB', 20, 20 * 1024 - 1, True),
    SizeUnit('GB', 30, 20 * 1024 - 1, True),
    SizeUnit('TB', 40, 20 * 1024 - 1, True),
    SizeUnit('PB', 50, None, True),
)

UNIT_ALIASES: Tuple[UnitAlias, ...] = (
    UnitAlias('B', 0),
)

VALID_UNITS_HINT = 'Valid units are "bytes", "B", "kB", "MB", "GB", "TB", and "PB".'


def _validate_tables() -> None:
    for prev, unit in zip(SIZE_UNITS, SIZE_UNITS[1:]):
        if unit.unitbits <= prev.unitbits:
            raise AssertionError(f"unit {unit.name} must have more bits than {prev.name}")
    for unit in SIZE_UNITS[:-1]:
        if unit.limit is None:
            raise AssertionError(f"only the last unit may omit its limit: {unit.name}")
    if SIZE_UNITS[-1].limit is not None:
        raise AssertionError("the last unit must not have a limit")
    for alias in UNIT_ALIASES:
        if not 0 <= alias.unit_index < len(SIZE_UNITS):
            raise AssertionError(f"alias {alias.alias} points outside the unit table")


_validate_tables()


def is_last_unit(index: int) -> bool:
    return index == len(SIZE_UNITS) - 1


def shift_to_next(index: int) -> int:
    """
    从 SIZE_UNITS[index] 换算到下一个单位时的除数位数。
    下一个单位做半舍入时少移1位，本单位做半舍入而下一个不做时多移1位。
    """
    unit = SIZE_UNITS[index]
    nxt = SIZE_UNITS[index + 1]
    return nxt.unitbits - unit.unitbits - int(nxt.round) + int(unit.round)


def lookup_unit(text: str) -> Optional[SizeUnit]:
    """大小写不敏感地查找单位名，再查别名；找不到返回 None"""
    lowered = text.lower()
    for unit in SIZE_UNITS:
        if unit.name.lower() == lowered:
            return unit
    for alias in UNIT_ALIASES:
        if alias.alias.lower() == lowered:
            return SIZE_UNITS[alias.unit_index]
    return None
