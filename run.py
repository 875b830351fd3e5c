#!/usr/bin/env python3
"""
Main script to run the station demand forecasting pipeline.

Usage:
    python run.py                         # Run with default config
    python run.py --config custom.yaml    # Run with custom config
    python run.py --models temporal,full  # Evaluate a subset of specs
    python run.py --seed 12345            # Set fold-assignment seed
    python run.py --no-cv                 # Holdout evaluation only
    python run.py --compare               # Compare against the previous run
"""

import argparse
import json
import logging
from datetime import datetime
from glob import glob
from pathlib import Path

import pandas as pd

from stationdemand.evaluation import (
    HoldoutByWeek,
    HoldoutEvaluator,
    covariate_scatter,
    error_by_model_bucket,
    error_by_model_week,
    error_by_station_bucket,
    run_cross_validation,
)
from stationdemand.exclusions import ExclusionReport
from stationdemand.models import build_registry
from stationdemand.panel import (
    DEFAULT_HOLIDAY_WINDOW,
    DEFAULT_LAG_OFFSETS,
    DEFAULT_MISSING_TEMPERATURE,
    add_lag_features,
    build_panel,
    build_station_registry,
    build_time_grid,
    prepare_weather,
    resolve_holidays,
    stations_from_trips,
)
from stationdemand.utils import (
    load_config,
    load_demographics,
    load_station_info,
    load_trip_data,
    load_weather,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Bike-share Station Demand Pipeline")
    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--models",
        type=str,
        default=None,
        help="Comma-separated spec names to evaluate (overrides config)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Output directory (overrides config)",
    )
    parser.add_argument(
        "--no-cv",
        action="store_true",
        help="Skip k-fold cross-validation",
    )
    parser.add_argument(
        "--no-holdout",
        action="store_true",
        help="Skip holdout-by-week evaluation",
    )
    parser.add_argument(
        "--compare",
        action="store_true",
        help="Compare holdout MAE against the most recent cached results",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for fold assignment (overrides config)",
    )
    return parser.parse_args()


def load_cached_results(output_dir: Path) -> dict:
    """Load the most recent cached results file."""
    files = sorted(glob(str(output_dir / "results_*.json")))

    if not files:
        return None

    latest_file = files[-1]
    with open(latest_file) as f:
        results = json.load(f)

    print(f"Loaded cached results from: {latest_file}")
    return results


def compare_results(current: dict, other: dict):
    """Print holdout MAE per model for the current and a previous run."""
    print("\n" + "=" * 70)
    print("RUN COMPARISON (holdout MAE, lower is better)")
    print("=" * 70)

    current_summary = current.get("holdout", {})
    other_summary = other.get("holdout", {})

    print(f"\n{'Model':<40} {'Previous':>9} {'Current':>9} {'Δ':>9}")
    print("-" * 70)

    for model, metrics in current_summary.items():
        if model not in other_summary:
            continue
        curr_mae = metrics["mae"]
        other_mae = other_summary[model]["mae"]
        print(f"{model:<40} {other_mae:>9.3f} {curr_mae:>9.3f} {curr_mae - other_mae:>+9.3f}")


def load_inputs(config: dict):
    """Load trips, stations, demographics and weather named in the config."""
    data_config = config["data"]

    trips = load_trip_data(data_config["trips_path"])

    stations_path = data_config.get("stations_path")
    if stations_path and Path(stations_path).exists():
        stations = load_station_info(stations_path)
    else:
        logging.warning("No station file found, deriving the roster from trip start stations")
        stations = stations_from_trips(trips)

    demographics = None
    demographics_path = data_config.get("demographics_path")
    if demographics_path and Path(demographics_path).exists():
        demographics = load_demographics(demographics_path)

    weather = None
    weather_path = data_config.get("weather_path")
    if weather_path and Path(weather_path).exists():
        weather = load_weather(weather_path)

    return trips, stations, demographics, weather


def build_feature_panel(config: dict, trips, stations, demographics, weather, report):
    """Run the panel stages: grid, registry, panel, lag features."""
    time_config = config["time"]
    freq = time_config.get("freq", "1h")
    grid = build_time_grid(time_config["start_date"], time_config["end_date"], freq)
    registry = build_station_registry(stations, demographics)

    hourly_weather = None
    if weather is not None:
        hourly_weather = prepare_weather(
            weather,
            freq=freq,
            missing_temperature=config.get("weather", {}).get(
                "missing_temperature", DEFAULT_MISSING_TEMPERATURE
            ),
        )

    panel = build_panel(registry, grid, trips, hourly_weather, report)

    holiday_config = config.get("holidays", {})
    holidays = resolve_holidays(
        holiday_config.get("dates"),
        country=holiday_config.get("country"),
        years=range(grid[0].year, grid[-1].year + 1),
    )
    panel = add_lag_features(
        panel,
        offsets=config.get("lags", {}).get("offsets", DEFAULT_LAG_OFFSETS),
        holidays=holidays,
        holiday_window=holiday_config.get("window_days", DEFAULT_HOLIDAY_WINDOW),
    )
    return panel, registry


def write_error_tables(predictions: pd.DataFrame, registry, config: dict, output_dir: Path, prefix: str):
    """Write week, bucket, station and covariate error tables as CSV."""
    analysis_config = config.get("analysis", {})
    model = analysis_config.get("model")
    if model not in set(predictions["model"]):
        model = predictions["model"].iloc[-1]

    tables = {
        "error_by_model_week": error_by_model_week(predictions),
        "error_by_model_bucket": error_by_model_bucket(predictions),
        "error_by_station_bucket": error_by_station_bucket(predictions, registry, model=model),
        "covariate_scatter": covariate_scatter(
            predictions,
            registry,
            covariates=analysis_config.get(
                "covariates", ["median_income", "pct_public_transit", "pct_white"]
            ),
            time_bucket=analysis_config.get("covariate_time_bucket", "AM Rush"),
            model=model,
        ),
    }
    for name, table in tables.items():
        path = output_dir / f"{prefix}_{name}.csv"
        table.to_csv(path, index=False)
        print(f"  Wrote {path}")


def main():
    """Main entry point."""
    args = parse_args()

    print("=" * 60)
    print("Station Demand Forecasting Pipeline")
    print("=" * 60)

    config = load_config(args.config)
    print(f"\nLoaded config from: {args.config}")

    # Override config with command line args
    if args.models:
        config.setdefault("models", {})["run"] = [m.strip() for m in args.models.split(",")]
    if args.output_dir:
        config["data"]["output_dir"] = args.output_dir
    if args.seed is not None:
        config.setdefault("cross_validation", {})["random_seed"] = args.seed

    random_seed = config.get("cross_validation", {}).get("random_seed")
    logging.info(f"Random seed for this run: {random_seed}")

    # Fail on bad spec configuration before any data is loaded
    specs = build_registry(config)
    holdout_config = config.get("holdout", {})
    splitter = None
    if not args.no_holdout:
        splitter = HoldoutByWeek(
            train_weeks=holdout_config["train_weeks"],
            test_weeks=holdout_config["test_weeks"],
        )

    output_dir = Path(config["data"]["output_dir"])
    output_dir.mkdir(parents=True, exist_ok=True)

    print("\n" + "-" * 40)
    print("Loading Data")
    print("-" * 40)

    trips, stations, demographics, weather = load_inputs(config)

    print("\n" + "-" * 40)
    print("Building Panel")
    print("-" * 40)

    report = ExclusionReport()
    panel, registry = build_feature_panel(config, trips, stations, demographics, weather, report)
    print(f"Panel: {len(registry)} stations, {len(panel):,} station-intervals")

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    lag_offsets = config.get("lags", {}).get("offsets", DEFAULT_LAG_OFFSETS)
    results = {
        "models": [s.name for s in specs],
        "config": config,
        "timestamp": timestamp,
        "random_seed": random_seed,
    }

    if splitter is not None:
        print("\n" + "-" * 40)
        print("Running Holdout Evaluation")
        print("-" * 40)

        holdout = HoldoutEvaluator(specs, splitter, lag_offsets=lag_offsets).run(panel)
        report.merge(holdout.report)
        results["holdout"] = holdout.summary
        results["holdout_by_week"] = holdout.scores.to_dict(orient="records")

        if len(holdout.predictions):
            write_error_tables(holdout.predictions, registry, config, output_dir, "holdout")

    if not args.no_cv:
        print("\n" + "-" * 40)
        print("Running Cross-Validation")
        print("-" * 40)

        cv_config = config.get("cross_validation", {})
        cv = run_cross_validation(
            panel,
            specs,
            n_folds=cv_config.get("n_folds", 5),
            random_seed=random_seed,
            lag_offsets=lag_offsets,
        )
        report.merge(cv.report)
        results["cv_folds"] = cv.scores.to_dict(orient="records")
        results["cv_summary"] = {
            model: {k: {"mean": v[0], "std": v[1]} for k, v in summary.items()}
            for model, summary in cv.summary.items()
        }
        cv.scores.to_csv(output_dir / "cv_folds.csv", index=False)

    results["exclusions"] = report.to_dict()

    print("\n" + "-" * 40)
    print("Excluded Rows")
    print("-" * 40)
    for scope, causes in results["exclusions"].items():
        print(f"  {scope}: " + ", ".join(f"{c}={n:,}" for c, n in causes.items()))

    previous = load_cached_results(output_dir) if args.compare else None

    results_file = output_dir / f"results_{timestamp}.json"
    with open(results_file, "w") as f:
        json.dump(results, f, indent=2, default=str)
    print(f"\nResults saved to: {results_file}")

    logging.info(f"Run completed with random_seed={random_seed}")

    if args.compare:
        if previous:
            compare_results(results, previous)
        else:
            print("\nNo cached results found to compare against")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
