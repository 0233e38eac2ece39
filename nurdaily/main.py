import argparse
import logging
import sys
from nurdaily.core.journal_app import JournalApp


def setup_basic_logging():
    """Setup basic stdout logging before config is loaded"""
    root_logger = logging.getLogger()
    if not root_logger.handlers:  # Only add handler if none exists
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        ))
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.DEBUG)
        logging.debug("Basic logging initialized")


def main(argv=None):
    setup_basic_logging()

    parser = argparse.ArgumentParser(description='Nur Daily journal')
    parser.add_argument('--config',
                        help='Path to config file (default: ~/.nur_daily/config.yaml)')
    args = parser.parse_args(argv)

    app = JournalApp(config_path=args.config)
    app.run()


if __name__ == "__main__":
    main()
