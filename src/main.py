"""Main CLI interface for the team quality forecaster."""

import argparse
import logging
import sys
import warnings

from .data.loader import DataLoader
from .errors import ConvergenceWarning, DataShapeError, UnresolvedTeamNameError
from .inference.model import ModelConfig
from .pipeline.forecast import ForecastConfig, SeasonForecaster

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_NOT_CONVERGED = 2


def create_model_config(args) -> ModelConfig:
    """
    Create the model configuration from parsed CLI arguments.

    Args:
        args: Parsed ``forecast`` arguments

    Returns:
        ModelConfig for the requested variant
    """
    return ModelConfig.for_variant(
        args.model,
        df=args.df,
        home_sigma=args.home_sigma,
        inj_sigma=args.inj_sigma,
        draws=args.draws,
        tune=args.tune,
        chains=args.chains,
        cores=args.cores,
        target_accept=args.target_accept,
        random_seed=args.seed,
    )


def run_forecast(args):
    """Fit the model and forecast upcoming games."""
    print(f"Loading season data from {args.teams}...")

    try:
        season = DataLoader.load_season(args.teams, args.games, args.upcoming, args.injuries)
        model_config = create_model_config(args)
    except (DataShapeError, UnresolvedTeamNameError, ValueError, OSError) as e:
        print(f"Error loading data: {e}")
        return EXIT_INPUT_ERROR

    print(f"Loaded {season.n_teams} teams, {season.n_games} completed games, "
          f"{len(season.upcoming)} upcoming games")

    config = ForecastConfig(
        model=model_config,
        through_week=args.through_week,
        predict_week=args.predict_week,
        use_cache=False,
    )
    print(f"Fitting {model_config.variant} model "
          f"({model_config.chains} chains x {model_config.draws} draws)...")

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", ConvergenceWarning)
        try:
            result = SeasonForecaster(config).run(season)
        except DataShapeError as e:
            print(f"Error: {e}")
            return EXIT_INPUT_ERROR

    # Display results
    print(f"\n{'='*60}")
    print(f"TEAM QUALITY - {model_config.variant.upper()} MODEL")
    print(f"{'='*60}\n")
    print(result.team_table.sort_values("rank").to_string(index=False, float_format="%.3f"))

    if not result.parameter_table.empty:
        print(f"\n{'='*60}")
        print("MODEL PARAMETERS")
        print(f"{'='*60}\n")
        print(result.parameter_table.to_string(index=False, float_format="%.3f"))

    if not result.prediction_table.empty:
        print(f"\n{'='*60}")
        print("PREDICTIONS")
        print(f"{'='*60}\n")
        print(result.prediction_table.to_string(index=False, float_format="%.2f"))

    print(f"\nSaving forecast to {args.output}...")
    DataLoader.save_forecast_to_json(result, args.output)
    if args.samples_output:
        print(f"Saving posterior draws to {args.samples_output}...")
        DataLoader.save_samples_to_csv(result, args.samples_output)

    if not result.converged:
        print("\nWARNING: sampler did not converge: " + "; ".join(result.fit.diagnostics.problems))
        return EXIT_NOT_CONVERGED

    print("Done!")
    return EXIT_OK


def create_sample(args):
    """Create sample data file."""
    print(f"Creating sample data at {args.output}...")
    DataLoader.create_sample_data(args.output)
    print("Sample data created!")
    print(f"\nYou can now run a forecast with:")
    print(f"  python -m src.main forecast --teams {args.output} --model home")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Team Quality Forecaster - Bayesian team ratings and game predictions"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Forecast command
    forecast_parser = subparsers.add_parser("forecast", help="Fit team quality and predict upcoming games")
    forecast_parser.add_argument(
        "--teams", "-t",
        required=True,
        help="Roster table (JSON/CSV), or a combined season JSON when --games is omitted"
    )
    forecast_parser.add_argument("--games", "-g", default=None, help="Completed games (or full schedule) table")
    forecast_parser.add_argument("--upcoming", "-u", default=None, help="Upcoming games table")
    forecast_parser.add_argument("--injuries", default=None, help="Per-week injury counts table")
    forecast_parser.add_argument(
        "--output", "-o",
        default="forecast.json",
        help="Output JSON file for the forecast (default: forecast.json)"
    )
    forecast_parser.add_argument("--samples-output", default=None, help="Optional CSV for raw posterior draws")
    forecast_parser.add_argument(
        "--model", "-m",
        choices=["base", "home", "injury"],
        default="home",
        help="Model variant (default: home)"
    )
    forecast_parser.add_argument("--df", type=float, default=7.0, help="Student-t degrees of freedom (default: 7)")
    forecast_parser.add_argument("--home-sigma", type=float, default=3.0, help="Prior scale of home_adv (injury model)")
    forecast_parser.add_argument("--inj-sigma", type=float, default=1.0, help="Prior scale of inj_adv (injury model)")
    forecast_parser.add_argument("--draws", type=int, default=2000, help="Posterior draws per chain")
    forecast_parser.add_argument("--tune", type=int, default=1000, help="Warmup iterations per chain")
    forecast_parser.add_argument("--chains", type=int, default=4, help="Number of chains")
    forecast_parser.add_argument("--cores", type=int, default=None, help="Worker processes (default: one per chain)")
    forecast_parser.add_argument("--target-accept", type=float, default=0.9, help="NUTS target acceptance rate")
    forecast_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    forecast_parser.add_argument("--through-week", type=int, default=None, help="Fit on games up to this week")
    forecast_parser.add_argument("--predict-week", type=int, default=None, help="Only predict games in this week")

    # Sample command
    sample_parser = subparsers.add_parser("sample", help="Create sample season data")
    sample_parser.add_argument(
        "--output", "-o",
        default="sample_season.json",
        help="Output file for sample data (default: sample_season.json)"
    )
    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "forecast":
        return run_forecast(args)
    elif args.command == "sample":
        return create_sample(args)
    else:
        parser.print_help()
        return EXIT_INPUT_ERROR


if __name__ == "__main__":
    sys.exit(main())
