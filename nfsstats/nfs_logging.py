import datetime
import enum
import logging
import sys

# Define the custom log levels
CRITICAL = logging.CRITICAL
FATAL = CRITICAL
ERROR = logging.ERROR
RESULT = 35
WARNING = logging.WARNING   # 30
WARN = WARNING
STATUS = 25
INFO = logging.INFO         # 20
VERBOSE = 19
DEBUG = logging.DEBUG       # 10
NOTSET = logging.NOTSET

# stdout belongs to the agent plugin protocol, so the default is to stay quiet
DEFAULT_STREAM_LOG_LEVEL = logging.WARNING

custom_levels = {
    'RESULT': RESULT,
    'STATUS': STATUS,
    'VERBOSE': VERBOSE,
}


class COLORS(enum.Enum):
    red = "\033[0;31m"
    green = "\033[0;32m"
    yellow = "\033[0;33m"
    bred = "\033[1;31m"
    bblue = "\033[1;34m"
    normal = "\033[0m"


level_to_color_map = {
    ERROR: COLORS.bred,
    CRITICAL: COLORS.bred,
    WARNING: COLORS.yellow,
    RESULT: COLORS.green,
    STATUS: COLORS.bblue,
}


def get_level_color(level, use_colors=True):
    if not use_colors:
        return ""
    return level_to_color_map.get(level, COLORS.normal).value


def log_level_factory(level_name):
    level_num = custom_levels.get(level_name, logging.NOTSET)

    def log_func(self, message, *args, **kwargs):
        if self.isEnabledFor(level_num):
            # Report the caller's line, not this wrapper's
            kwargs.setdefault("stacklevel", 2)
            self._log(level_num, message, args, **kwargs)
    return log_func


class NFSLogger(logging.Logger):
    """Logger with the STATUS, RESULT and VERBOSE levels attached as methods."""


# Add the custom levels to the logger
for custom_name, custom_num in custom_levels.items():
    logging.addLevelName(custom_num, custom_name)
    setattr(NFSLogger, custom_name.lower(), log_level_factory(custom_name))


class StandardFormatter(logging.Formatter):
    def __init__(self, use_colors=False):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record):
        formatted_time = datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        color = get_level_color(record.levelno, self.use_colors)
        reset = COLORS.normal.value if self.use_colors else ""
        return f"{color}{formatted_time}|{record.levelname}: {record.getMessage()}{reset}"


class DebugFormatter(StandardFormatter):
    def format(self, record):
        formatted_time = datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        color = get_level_color(record.levelno, self.use_colors)
        reset = COLORS.normal.value if self.use_colors else ""
        return f"{color}{formatted_time}|{record.levelname}:{record.module}:{record.lineno}: " \
               f"{record.getMessage()}{reset}"


def setup_logging(name=__name__, stream_log_level=DEFAULT_STREAM_LOG_LEVEL, stream=None):
    """
    Build the collector logger.

    Messages go to stderr unless another stream is given. Colors are only
    used when that stream is a terminal.
    """
    if isinstance(stream_log_level, str):
        stream_log_level = logging.getLevelName(stream_log_level.upper())

    _logger = NFSLogger(name)
    _logger.setLevel(logging.DEBUG)

    stream = stream if stream is not None else sys.stderr
    stream_handler = logging.StreamHandler(stream)
    use_colors = hasattr(stream, "isatty") and stream.isatty()
    stream_handler.setFormatter(StandardFormatter(use_colors=use_colors))
    stream_handler.setLevel(stream_log_level)
    _logger.addHandler(stream_handler)

    return _logger


def apply_logging_options(_logger, args):
    if args is None:
        return
    stream_handlers = [h for h in _logger.handlers if not hasattr(h, 'baseFilename')]

    if getattr(args, "verbose", False):
        for stream_handler in stream_handlers:
            if stream_handler.level > VERBOSE:
                stream_handler.setLevel(VERBOSE)

    if getattr(args, "debug", False):
        for stream_handler in stream_handlers:
            use_colors = getattr(stream_handler.formatter, "use_colors", False)
            stream_handler.setFormatter(DebugFormatter(use_colors=use_colors))
            if stream_handler.level > DEBUG:
                stream_handler.setLevel(DEBUG)

    if getattr(args, "stream_log_level", None):
        for stream_handler in stream_handlers:
            stream_handler.setLevel(args.stream_log_level.upper())
