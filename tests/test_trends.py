from bizpulse.aggregation import Totals
from bizpulse.trends import Trend, compute_trend, compute_trends, round_half_up


def test_trend_against_zero_baseline_is_undefined() -> None:
    assert compute_trend(0, 0) is None
    assert compute_trend(100, 0) is None
    assert compute_trend(100, -50) is None


def test_trend_up_and_down() -> None:
    assert compute_trend(150, 100) == Trend(value=50, is_up=True)
    assert compute_trend(50, 100) == Trend(value=50, is_up=False)


def test_trend_flat_counts_as_up() -> None:
    assert compute_trend(100, 100) == Trend(value=0, is_up=True)


def test_trend_rounds_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    # +12.5% change
    assert compute_trend(112.5, 100).value == 13


def test_compute_trends_on_totals() -> None:
    current = Totals(total_sales=200, total_profit=50, total_expenses=10, net_profit=40)
    previous = Totals(total_sales=100, total_profit=0, total_expenses=20, net_profit=-20)

    trends = compute_trends(current, previous)

    assert trends.sales == Trend(value=100, is_up=True)
    assert trends.profit is None
    assert trends.expenses == Trend(value=50, is_up=False)
    assert trends.net is None
