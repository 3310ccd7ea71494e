import csv

from sensefeed.tools.bench import CSV_FIELDS, BenchmarkOptions, main, run_virtual


def test_virtual_benchmark_delivers_batches_and_logs_rows() -> None:
    bench = run_virtual(BenchmarkOptions(rate_hz=100.0, duration_s=2.0, log_interval_s=0.5))
    assert bench.events_sent == 600
    assert bench.dashboard.stats.batches > 0
    assert len(bench.rows) >= 4
    assert bench.rows[-1]["t"] == 2.0
    assert bench.rows[-1]["input_rate_hz"] > 0.0


def test_virtual_benchmark_hidden_dashboard_gets_nothing() -> None:
    bench = run_virtual(BenchmarkOptions(rate_hz=100.0, duration_s=1.0, visible_fraction=0.0))
    assert bench.dashboard.stats.batches == 0
    assert bench.rows[-1]["dropped_invisible"] > 0


def test_cli_writes_csv(tmp_path) -> None:
    out = tmp_path / "metrics.csv"
    code = main(["--rate", "50", "--duration", "1", "--tab", "logs", "--log-interval", "0.5", "--csv", str(out)])
    assert code == 0
    with out.open() as fh:
        rows = list(csv.DictReader(fh))
    assert rows
    assert list(rows[0]) == CSV_FIELDS
    assert float(rows[-1]["log_entries"]) > 1
