import argparse

from heart_failure.pipeline import PipelineRunner


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Tune, fit and evaluate the heart-failure LASSO model."
    )
    parser.add_argument(
        "--config",
        default="config/default.yaml",
        help="Path to the YAML configuration file.",
    )
    return parser.parse_args()


def main() -> None:
    """Run the full heart-failure mortality pipeline."""
    args = parse_args()
    runner = PipelineRunner(args.config)
    runner.run()


if __name__ == "__main__":
    main()
