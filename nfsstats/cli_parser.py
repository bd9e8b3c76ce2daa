"""
CLI argument parsing for the NFS statistics collector.
"""

import argparse
import os

import yaml

from nfsstats import VERSION
from nfsstats.config import DEFAULT_MOUNTSTATS_PATH, DEFAULT_PREFIX, WORKDIR_ENV
from nfsstats.errors import ConfigurationError, ErrorCode

HELP_MESSAGES = {
    'metric_key_prefix': "Metric key prefix. Also names the default snapshot file.",
    'tempfile': "Snapshot file name, relative to the work directory.",
    'workdir': f"Directory for the snapshot file. Defaults to ${WORKDIR_ENV} or the system temp directory.",
    'source': "Path of the mountstats report to read.",
    'config_file': "YAML file whose keys override the command line options.",
    'verbose': "Log progress messages to stderr.",
    'debug': "Log debug messages with source locations to stderr.",
    'stream_log_level': "Log level for stderr (DEBUG, INFO, WARNING, ...).",
}

# Alternative spellings accepted in the config file
CONFIG_KEY_ALIASES = {
    'prefix': 'metric_key_prefix',
    'tempfile_name': 'tempfile',
}


def build_parser():
    parser = argparse.ArgumentParser(
        prog="nfsstats",
        description="Report NFS client READ/WRITE statistics for a monitoring agent"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--metric-key-prefix", default=DEFAULT_PREFIX, help=HELP_MESSAGES['metric_key_prefix'])
    parser.add_argument("--tempfile", default=None, help=HELP_MESSAGES['tempfile'])
    parser.add_argument("--workdir", default=None, help=HELP_MESSAGES['workdir'])
    parser.add_argument("--source", default=DEFAULT_MOUNTSTATS_PATH, help=HELP_MESSAGES['source'])
    parser.add_argument("--config-file", default=None, help=HELP_MESSAGES['config_file'])

    log_group = parser.add_argument_group("Logging")
    log_group.add_argument("--verbose", action="store_true", help=HELP_MESSAGES['verbose'])
    log_group.add_argument("--debug", action="store_true", help=HELP_MESSAGES['debug'])
    log_group.add_argument("--stream-log-level", default=None, help=HELP_MESSAGES['stream_log_level'])
    return parser


def parse_arguments(argv=None):
    """Parse command-line arguments, apply the config file and validate.

    Args:
        argv: Argument list, defaults to sys.argv[1:].

    Returns:
        argparse.Namespace: Parsed and validated arguments.

    Raises:
        ConfigurationError: If the config file or an option is invalid.
    """
    parsed_args = build_parser().parse_args(argv)

    if parsed_args.config_file:
        parsed_args = apply_yaml_config_overrides(parsed_args)

    validate_args(parsed_args)
    return parsed_args


def apply_yaml_config_overrides(args):
    """
    Apply overrides from a YAML config file to the parsed arguments.

    Keys may use dashes or underscores. Unknown keys and null values are
    skipped.

    Args:
        args (argparse.Namespace): The parsed command-line arguments

    Returns:
        argparse.Namespace: The updated arguments with YAML overrides applied

    Raises:
        ConfigurationError: If the file is missing, unreadable or not a mapping.
    """
    try:
        with open(args.config_file, 'r') as f:
            yaml_config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            f"Config file {args.config_file} not found",
            parameter="config_file",
            actual=args.config_file,
            code=ErrorCode.CONFIG_FILE_NOT_FOUND
        ) from None
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read config file {args.config_file}: {e}",
            parameter="config_file",
            actual=args.config_file,
            code=ErrorCode.CONFIG_FILE_NOT_FOUND
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Error parsing YAML config file: {e}",
            parameter="config_file",
            actual=args.config_file,
            code=ErrorCode.CONFIG_PARSE_ERROR
        ) from e

    if not yaml_config:
        return args
    if not isinstance(yaml_config, dict):
        raise ConfigurationError(
            f"Config file {args.config_file} must contain a mapping of options",
            parameter="config_file",
            expected="mapping",
            actual=type(yaml_config).__name__,
            code=ErrorCode.CONFIG_PARSE_ERROR
        )

    args_dict = vars(args)
    for key, value in yaml_config.items():
        key = str(key).replace('-', '_')
        key = CONFIG_KEY_ALIASES.get(key, key)
        if key not in args_dict or key == 'config_file':
            continue
        if value is None:
            continue
        args_dict[key] = value

    return argparse.Namespace(**args_dict)


def validate_args(args):
    if not args.metric_key_prefix or not str(args.metric_key_prefix).strip():
        raise ConfigurationError(
            "Metric key prefix must not be empty",
            parameter="metric_key_prefix",
            actual=args.metric_key_prefix
        )
    if args.tempfile is not None:
        if not args.tempfile or os.sep in args.tempfile or (os.altsep and os.altsep in args.tempfile):
            raise ConfigurationError(
                "Tempfile must be a plain file name; use --workdir to choose its directory",
                parameter="tempfile",
                actual=args.tempfile
            )
