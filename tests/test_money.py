from decimal import Decimal

from core.money import line_total, margin_percent, to_money, to_weight


def test_rounding_is_half_up():
    assert to_money("2.675") == Decimal("2.68")
    assert to_money(0.125) == Decimal("0.13")
    assert to_weight("1.0005") == Decimal("1.001")


def test_line_total():
    assert line_total(1000, 21) == 21000.0
    assert line_total("2.5", "3.33") == 8.33


def test_margin_percent():
    assert margin_percent(1000, 750) == 25.0
    assert margin_percent(0, 500) == 0.0
    assert margin_percent(100, 150) == -50.0
