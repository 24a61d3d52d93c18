# reelsync/main.py
import os
import sys
import asyncio
import logging
import argparse
import time

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.dirname(os.path.dirname(__file__))))

from tqdm import tqdm

from reelsync.infrastructure.config.engine_config import load_engine_config, PROVIDER_MODES
from reelsync.infrastructure.config.loaders.yaml_loader import ConfigError
from reelsync.infrastructure.logging.log_manager import initialize_logging
from reelsync.application.simulation.spin_runner import SpinRunner


QUIET = {"level": "WARNING", "propagate": False}
LOUD = {"level": "DEBUG", "propagate": True}

# --log-mode -> (root level, console level, per-logger overrides or None to clear them)
LOG_MODES = {
    "all": ("DEBUG", "DEBUG", {}),
    "app": ("WARNING", "DEBUG", {"domain": QUIET, "application": LOUD, "infrastructure": QUIET}),
    "domain": ("WARNING", "DEBUG", {"domain": LOUD, "application": QUIET, "infrastructure": QUIET}),
    "none": ("WARNING", "WARNING", None),
}


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description="Play reel spins against a ledger or local outcomes")
    parser.add_argument("-c", "--config", default=None,
                        help="YAML file merged over the default engine configuration")
    parser.add_argument("-n", "--spins", type=int, default=10, help="Number of spins to play")
    parser.add_argument("--mode", choices=PROVIDER_MODES, default=None,
                        help="Override the outcome provider mode")
    parser.add_argument("--seed", type=int, default=None, help="Seed for all random streams")
    parser.add_argument("--fps", type=float, default=60.0, help="Render loop frame rate")
    parser.add_argument("--dismiss-delay", type=float, default=0.0,
                        help="Seconds each result popup stays open")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log everything at DEBUG")
    parser.add_argument("--log-mode", choices=sorted(LOG_MODES), default=None,
                        help="'all'=verbose, 'app'=application only, 'domain'=domain only, 'none'=minimal")
    return parser.parse_args(argv)


def build_logging_config(log_config, log_mode=None, verbose=False):
    """Return a copy of the logging section with --log-mode and --verbose applied."""
    log_config = dict(log_config or {})
    log_config["loggers"] = dict(log_config.get("loggers") or {})

    if log_mode in LOG_MODES:
        level, console_level, loggers = LOG_MODES[log_mode]
        log_config["level"] = level
        log_config["console_level"] = console_level
        if loggers is None:
            log_config["loggers"] = {}
        else:
            log_config["loggers"].update({name: dict(settings) for name, settings in loggers.items()})

    if verbose:
        log_config["level"] = log_config["console_level"] = "DEBUG"
    return log_config


async def run_spins(runner: SpinRunner, spins: int):
    with tqdm(total=spins, desc="Spinning", unit="spin") as pbar:
        def on_spin_complete(stats):
            pbar.update(1)
            pbar.set_postfix(remote=stats.remote, local=stats.local, faults=stats.faults)

        return await runner.run(spins, on_spin_complete)


def print_summary(stats, account, currency, elapsed_time):
    print("\nSpin Summary:")
    print(f"- Spins revealed: {stats.spins}")
    print(f"- Remote outcomes: {stats.remote}")
    print(f"- Local outcomes: {stats.local}")
    for reason, count in sorted(stats.fallback_reasons.items()):
        print(f"  - fallback ({reason}): {count}")
    print(f"- Faults recovered: {stats.faults}")
    print(f"- Late results reconciled: {stats.late_reconciled}")
    print(f"- Total reward: {stats.total_reward} {currency}")
    print(f"- Free spins won: {stats.bonus_spins}")
    print(f"- Legendary awards: {stats.rare_awards}")
    print(f"- Account balance: {account.balance} {currency}")
    print(f"\nTotal execution time: {elapsed_time:.2f} seconds")


def main(argv=None):
    """Main entry point for the headless spin runner."""
    args = parse_arguments(argv)
    start_time = time.time()

    overrides = {}
    if args.mode:
        overrides["provider"] = {"mode": args.mode}
    if args.seed is not None:
        overrides["rng"] = {"seed": args.seed}

    try:
        config = load_engine_config(args.config, overrides)
        print(f"Loaded configuration from {args.config or 'defaults'}")
    except ConfigError as e:
        print(f"Error loading configuration: {str(e)}")
        return 1

    initialize_logging(build_logging_config(config.logging, args.log_mode, args.verbose))
    logger = logging.getLogger("main")
    logger.info("Reel spin engine starting")

    try:
        runner = SpinRunner(config, fps=args.fps, dismiss_delay=args.dismiss_delay)
        stats = asyncio.run(run_spins(runner, args.spins))
        print_summary(stats, runner.engine.account, config.provider.currency,
                      time.time() - start_time)
        return 0

    except KeyboardInterrupt:
        logger.info("Run interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Error during run: {str(e)}")
        return 1
    finally:
        logging.shutdown()


if __name__ == "__main__":
    sys.exit(main())
