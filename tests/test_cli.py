import sys
from datetime import datetime, timezone

import pytest

import bizpulse.cli as cli
from bizpulse.config import DataPaths
from bizpulse.storage import CsvRecordStore


def _write_data(tmp_path):
    (tmp_path / "sales.csv").write_text(
        "id,business_id,date,sales_amount,profit_amount\n"
        "s1,A,2024-03-05,1000,200\n"
        "s2,B,2024-03-05,500,150\n"
        "s3,A,2024-02-10,800,100\n",
        encoding="utf-8",
    )
    (tmp_path / "expenses.csv").write_text(
        "id,business_id,month,amount\ne1,A,2024-03,100\n", encoding="utf-8"
    )
    (tmp_path / "businesses.csv").write_text(
        "id,name,location\nA,Alpha,Cape Town\nB,Bravo,Durban\n", encoding="utf-8"
    )
    (tmp_path / "organizations.csv").write_text(
        "id,name,tier,is_active,subscription_end_date\n"
        "o1,One,growth,true,2024-03-25\n",
        encoding="utf-8",
    )
    config = tmp_path / "bizpulse_config.toml"
    config.write_text(
        """
[data]
sales = "sales.csv"
expenses = "expenses.csv"
businesses = "businesses.csv"
organizations = "organizations.csv"
""",
        encoding="utf-8",
    )
    return config


def _run(monkeypatch, argv):
    monkeypatch.setattr(sys, "argv", ["bizpulse", *argv])
    cli.main()


def test_cli_version(monkeypatch, capsys) -> None:
    _run(monkeypatch, ["--version"])
    assert "bizpulse version" in capsys.readouterr().out


def test_cli_this_month_all_tables(monkeypatch, capsys, tmp_path) -> None:
    config = _write_data(tmp_path)

    _run(
        monkeypatch,
        [
            "--config",
            str(config),
            "--timeframe",
            "this_month",
            "--now",
            "2024-03-20T12:00:00",
            "--scope",
            "all",
        ],
    )
    out = capsys.readouterr().out

    assert "Applied period: This month" in out
    assert "=== Totals ===" in out
    assert "=== Business ranking ===" in out
    assert "=== Daily sales ===" in out
    assert "=== MRR by tier ===" in out
    assert "Top revenue: Alpha" in out
    assert "Top margin: Bravo (30.0%)" in out
    assert "+88%" in out  # sales trend: 1500 vs 800
    assert "Attention: One (expiring" in out


def test_cli_secondary_currency_with_explicit_rate(monkeypatch, capsys, tmp_path) -> None:
    config = _write_data(tmp_path)

    def fail_fetch(settings):
        raise AssertionError("rate must not be fetched when --rate is given")

    monkeypatch.setattr(cli, "fetch_exchange_rate", fail_fetch)

    _run(
        monkeypatch,
        [
            "--config",
            str(config),
            "--timeframe",
            "select_month",
            "--month",
            "2024-03",
            "--now",
            "2024-04-01T08:00:00",
            "--currency",
            "SECONDARY",
            "--rate",
            "2",
        ],
    )
    out = capsys.readouterr().out

    assert "Currency: PKR (1 ZAR = 2.00 PKR)" in out
    assert "3000.0" in out


def test_cli_csv_output(monkeypatch, capsys, tmp_path) -> None:
    config = _write_data(tmp_path)
    output_dir = tmp_path / "out"

    _run(
        monkeypatch,
        [
            "--config",
            str(config),
            "--timeframe",
            "lifetime",
            "--now",
            "2024-03-20T12:00:00",
            "--scope",
            "ranking",
            "--display-mode",
            "csv",
            "--output",
            str(output_dir),
        ],
    )

    files = list(output_dir.glob("ranking_*.csv"))
    assert len(files) == 1
    content = files[0].read_text(encoding="utf-8")
    assert content.splitlines()[1].startswith("A,Alpha,Cape Town,1800.0")


def test_cli_invalid_now_exits(monkeypatch, tmp_path) -> None:
    config = _write_data(tmp_path)
    with pytest.raises(SystemExit):
        _run(monkeypatch, ["--config", str(config), "--now", "yesterday-ish"])


def test_cli_missing_config_exits(monkeypatch, tmp_path) -> None:
    with pytest.raises(SystemExit):
        _run(monkeypatch, ["--config", str(tmp_path / "missing.toml")])


def test_csv_store_missing_files_return_empty(tmp_path, caplog) -> None:
    store = CsvRecordStore(DataPaths(sales=tmp_path / "absent.csv"))

    with caplog.at_level("WARNING", logger="bizpulse.storage"):
        assert store.get_sales() == []
    assert store.get_expenses() == []
    assert store.get_organizations() == []
    assert "not found" in caplog.text


def test_resolve_now_stays_naive_without_configured_zone() -> None:
    parser = cli._build_parser()

    naive = cli._resolve_now(parser, "2024-03-20T12:00:00", None)
    assert naive == datetime(2024, 3, 20, 12, 0)
    assert naive.tzinfo is None

    aware = cli._resolve_now(parser, "2024-03-20T10:00:00+00:00", None)
    assert aware.tzinfo is None
    assert aware == datetime(2024, 3, 20, 10, 0, tzinfo=timezone.utc).astimezone().replace(
        tzinfo=None
    )


def test_cli_cash_scope_reconciles_shifts(monkeypatch, capsys, tmp_path) -> None:
    config = _write_data(tmp_path)
    sales = tmp_path / "till_sales.csv"
    sales.write_text(
        "id,business_id,date,sales_amount,profit_amount,payment_method\n"
        "t1,A,2024-03-05T10:00:00,1000,100,CASH\n"
        "t2,A,2024-03-05T11:00:00,300,30,CARD\n"
        "t3,B,2024-03-05T12:00:00,50,5,CASH\n",
        encoding="utf-8",
    )
    shifts = tmp_path / "cash_shifts.csv"
    shifts.write_text(
        "id,business_id,opened_at,closed_at,opening_float,closing_cash_counted,status\n"
        "s1,A,2024-03-05T08:00:00,2024-03-05T17:00:00,500,940,CLOSED\n"
        "s2,B,2024-03-05T09:00:00,,200,,OPEN\n",
        encoding="utf-8",
    )
    movements = tmp_path / "cash_movements.csv"
    movements.write_text(
        "id,shift_id,type,amount\n"
        "m1,s1,FLOAT_ADD,100\n"
        "m2,s1,DROP,600\n"
        "m3,s1,PAYOUT,50\n"
        "m4,s2,DROP,100\n",
        encoding="utf-8",
    )

    _run(
        monkeypatch,
        [
            "--config",
            str(config),
            "--sales",
            str(sales),
            "--cash-shifts",
            str(shifts),
            "--cash-movements",
            str(movements),
            "--now",
            "2024-03-05T20:00:00",
            "--scope",
            "cash",
        ],
    )
    out = capsys.readouterr().out

    assert "=== Cash shifts ===" in out
    assert "Cash in open tills: R 150.00 across 1 open shift(s)" in out
    assert "unbanked drops R 100.00" in out
    assert "Total variance: -R 10.00" in out
