"""Main entry point for the microgrid notifier"""

import sys
import argparse
import traceback

from microgrid_notifier import __version__
from microgrid_notifier.config.settings import load_config
from microgrid_notifier.utils.logger import setup_logger
from microgrid_notifier.service import NotifierService


def parse_args(argv=None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description='Telemetry threshold notifier for solar/microgrid monitoring'
    )

    parser.add_argument(
        '--config',
        '-c',
        type=str,
        default=None,
        help='Path to configuration file (YAML)'
    )

    parser.add_argument(
        '--log-level',
        '-l',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default=None,
        help='Override log level'
    )

    parser.add_argument(
        '--once',
        action='store_true',
        help='Run a single poll cycle and exit'
    )

    parser.add_argument(
        '--version',
        '-v',
        action='version',
        version=f'Microgrid Notifier v{__version__}'
    )

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)

    try:
        # Load configuration
        config = load_config(args.config)

        # Override log level from command line
        if args.log_level:
            config['service']['log_level'] = args.log_level

        # Setup logger
        logger = setup_logger(config)
        logger.info("=" * 60)
        logger.info(f"{config['service']['name']} v{__version__}")
        logger.info("=" * 60)

        if args.config:
            logger.info(f"Loaded configuration from: {args.config}")
        else:
            logger.info("Using default configuration")

        service = NotifierService(config)

        if args.once:
            fired = service.run_poll_cycle()
            logger.info(f"Single poll cycle finished, {len(fired)} alerts fired")
            return 0

        service.start()

        return 0

    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
