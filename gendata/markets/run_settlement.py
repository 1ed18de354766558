# gendata/markets/run_settlement.py
import argparse
from datetime import datetime
from pathlib import Path

from gendata.config import load_settings
from gendata.demo.generator import generate_demo_rows
from gendata.markets.aggregate import Dimension, budget_performance, buckets_frame, daily_pl
from gendata.markets.alerts import severity_counts
from gendata.markets.batch import run_batch
from gendata.utils.io import ensure_dir, read_rows_csv, write_csv, write_json
from gendata.utils.logging import get_logger

logger = get_logger("settlement_run")


def cli(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Settle asset-day rows and write P&L, aggregates and risk alerts")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--input", type=Path, help="CSV of raw asset-day rows")
    src.add_argument("--demo", action="store_true", help="Use generated demo rows instead of a CSV")
    p.add_argument("--seed", type=int, default=7, help="Demo generator seed")
    p.add_argument("--days", type=int, default=59, help="Demo days starting at --start")
    p.add_argument("--start", default="20260101", help="Demo start day, YYYYMMDD")
    p.add_argument("--out", type=Path, help="Output folder. Defaults to <GENDATA_DATA_DIR>/processed/settlement")
    p.add_argument("--progress", action="store_true", help="Show a progress bar while settling")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = cli(argv)
    settings = load_settings()
    out_dir = args.out or settings.data_dir / "processed" / "settlement"
    ensure_dir(out_dir)

    if args.demo:
        start = datetime.strptime(args.start, "%Y%m%d").date()
        logger.info(f"Generating {args.days} demo days from {start} (seed {args.seed})")
        rows = generate_demo_rows(seed=args.seed, start=start, days=args.days)
    else:
        logger.info(f"Reading rows from {args.input}")
        rows = read_rows_csv(args.input)

    result = run_batch(rows, thresholds=settings.thresholds, progress=args.progress)

    write_csv(result.records_frame(), out_dir / "records.csv")
    write_csv(result.errors_frame(), out_dir / "errors.csv")
    write_csv(result.alerts_frame(), out_dir / "alerts.csv")
    write_csv(buckets_frame(result.summary.by_market, {Dimension.MARKET}), out_dir / "by_market.csv")
    write_csv(buckets_frame(result.summary.by_asset, {Dimension.ASSET}), out_dir / "by_asset.csv")
    write_csv(daily_pl(result.records), out_dir / "daily_pl.csv")

    total = result.summary.total
    write_json(
        {
            "records": len(result.records),
            "rejected": len(result.errors),
            "alerts": severity_counts(result.alerts),
            "total": {**total.model_dump(), "margin_pct": total.margin_pct},
            "worst_assets": [name for name, _ in budget_performance(result.records)[:3]],
        },
        out_dir / "summary.json",
    )
    logger.info(f"Wrote outputs to {out_dir}")


if __name__ == "__main__":
    main()
