#!/usr/bin/env python3
"""
NFS statistics collector - Main Entry Point

Invoked once per collection interval by the monitoring agent. Writes metric
lines to stdout and diagnostics to stderr.
"""

import sys
import traceback

from nfsstats.cli_parser import parse_arguments
from nfsstats.collector import NFSCollector
from nfsstats.config import EXIT_CODE
from nfsstats.nfs_logging import setup_logging, apply_logging_options
from nfsstats.outputter import PluginOutputter
from nfsstats.errors import (
    NFSStatsException,
    ConfigurationError,
    SourceUnavailableError,
    NoMountsFoundError,
    SnapshotSaveError,
)

logger = setup_logging("nfsstats")


def _main_impl(argv=None, stdout=None):
    """
    Main implementation with error handling.

    Separated from main() so that main() can wrap it with exception handling.
    """
    args = parse_arguments(argv)
    apply_logging_options(logger, args)

    collector = NFSCollector(
        prefix=args.metric_key_prefix,
        tempfile=args.tempfile,
        workdir=args.workdir,
        source=args.source,
        logger=logger,
    )
    logger.debug(f"Snapshot file: {collector.tempfile_path}")

    metrics = collector.run(PluginOutputter(prefix=collector.prefix, stream=stdout))
    if metrics is not None:
        logger.verbose(f"Published {len(metrics)} metrics")
    return EXIT_CODE.SUCCESS


def main(argv=None, stdout=None):
    """
    Main entry point with error handling.

    Fatal collector errors are logged and turned into a non-zero exit code.
    """
    try:
        return _main_impl(argv, stdout)

    except ConfigurationError as e:
        logger.error(str(e))
        return EXIT_CODE.INVALID_ARGUMENTS

    except SourceUnavailableError as e:
        logger.error(str(e))
        return EXIT_CODE.SOURCE_ERROR

    except NoMountsFoundError as e:
        logger.error(str(e))
        return EXIT_CODE.NO_MOUNTS

    except SnapshotSaveError as e:
        logger.error(f"saveValues: {e}")
        return EXIT_CODE.SNAPSHOT_ERROR

    except NFSStatsException as e:
        # Catch-all for any other custom exceptions
        logger.error(str(e))
        return EXIT_CODE.FAILURE

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return EXIT_CODE.INTERRUPTED

    except SystemExit:
        # argparse exits on --help/--version and usage errors
        raise

    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}")
        logger.debug("".join(traceback.format_exc()))
        return EXIT_CODE.FAILURE


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
