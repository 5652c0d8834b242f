from decimal import Decimal

import pytest
from dbsize.engine.errors import SizeOverflowError
from dbsize.units.numeric_backend import INT64_MAX, INT64_MIN
from dbsize.units.size_pretty import pretty_print, selected_unit, size_pretty, size_pretty_numeric
from dbsize.units.size_units import SIZE_UNITS, shift_to_next


@pytest.mark.parametrize("size, expected", [
    (10, '10 bytes'),
    (1000, '1000 bytes'),
    (1000000, '977 kB'),
    (1000000000, '954 MB'),
    (1000000000000, '931 GB'),
    (1000000000000000, '909 TB'),
    (10239, '10239 bytes'),
    (10240, '10 kB'),
    (10485247, '10239 kB'),
    (10485248, '10 MB'),
    (INT64_MAX, '8192 PB'),
])
def test_size_pretty(size, expected):
    assert size_pretty(size) == expected


@pytest.mark.parametrize("size", [10, 1000000, 10240, 10485248, 1000000000000000])
def test_negative_values_mirror_positive(size):
    assert size_pretty(-size) == '-' + size_pretty(size)
    assert size_pretty_numeric(-size) == '-' + size_pretty_numeric(size)


def test_int64_min():
    assert size_pretty(INT64_MIN) == '-8192 PB'


def test_both_backends_agree_on_integers():
    for size in (0, 1, 10239, 10240, 20971519, 1 << 40, (1 << 50) * 3 + 12345, INT64_MAX):
        assert size_pretty(size) == size_pretty_numeric(size)


def test_numeric_keeps_fraction_in_bytes():
    assert size_pretty_numeric('10.5') == '10.5 bytes'
    assert size_pretty_numeric(Decimal('-10.5')) == '-10.5 bytes'
    assert size_pretty_numeric('1000000.5') == '977 kB'


def test_numeric_beyond_int64():
    assert size_pretty_numeric(Decimal('1000000000000000000000')) == '888178 PB'
    with pytest.raises(SizeOverflowError):
        size_pretty(10 ** 21)


def test_backend_by_name():
    assert pretty_print(10240, 'int64') == '10 kB'
    assert pretty_print(10240, 'numeric') == '10 kB'


def test_unit_selection_is_monotonic():
    sizes = [0, 1, 10239, 10240, 20000, 10485247, 10485248, 1 << 34, 1 << 44, 1 << 54, INT64_MAX]
    bits = {u.name: u.unitbits for u in SIZE_UNITS}
    selected = [bits[selected_unit(s)] for s in sizes]
    assert selected == sorted(selected)


def int_reference(n):
    """同一组移位与半舍入步骤，用 Python 的无界整数实现"""
    def trunc_div(a, b):
        q = abs(a) // b
        return -q if a < 0 else q

    for index, unit in enumerate(SIZE_UNITS):
        if unit.limit is None or abs(n) < unit.limit:
            if unit.round:
                n = trunc_div(n + (-1 if n < 0 else 1), 2)
            return f'{n} {unit.name}'
        n = trunc_div(n, 1 << shift_to_next(index))


@pytest.mark.parametrize("size", [
    10 ** 1009 + 123456789,
    10 ** 1100,
    3 ** 5000,
    -(7 ** 3000) - 1,
    (1 << 12000) - 1,
])
def test_numeric_has_no_precision_ceiling(size):
    assert size_pretty_numeric(size) == int_reference(size)
    assert size_pretty_numeric(str(size)) == int_reference(size)


def test_numeric_thousand_digit_values_are_exact():
    size = 10 ** 1009 + 123456789
    assert size_pretty_numeric(Decimal(size)) == f'{((size >> 49) + 1) // 2} PB'
    assert size_pretty_numeric('1' + '0' * 1100) == f'{((10 ** 1100 >> 49) + 1) // 2} PB'
    assert size_pretty_numeric(Decimal('1E+1100')) == size_pretty_numeric(10 ** 1100)


def test_int_reference_matches_fixed_width_backend():
    for size in (0, 1, -1, 10239, 10240, -10240, 10485248, 1 << 54, INT64_MAX, INT64_MIN):
        assert size_pretty(size) == int_reference(size)
