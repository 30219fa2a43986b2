import pathlib
import sys
from enum import Enum
from typing import Callable, Dict

from twisted.logger import (
    FileLogObserver,
    LogEvent,
    LogLevel,
    formatEventAsClassicLogText,
    globalLogPublisher,
    jsonFileLogObserver,
    textFileLogObserver,
)
from twisted.logger import Logger as TwistedLogger
from twisted.python.logfile import LogFile

from reftoken.config.constants import (
    DEFAULT_JSON_LOG_FILENAME,
    DEFAULT_LOG_FILENAME,
    USER_LOG_DIR,
    verbose_logging_requested,
)

ONE_MEGABYTE = 1_048_576
MAXIMUM_LOG_SIZE = ONE_MEGABYTE * 10
MAX_LOG_FILES = 10

Observer = Callable[[LogEvent], None]


def _rotating_log_file(name: str, path) -> LogFile:
    pathlib.Path(path).mkdir(parents=True, exist_ok=True)
    return LogFile(name=name, directory=path, rotateLength=MAXIMUM_LOG_SIZE, maxRotatedFiles=MAX_LOG_FILES)


def get_console_observer() -> Observer:
    return textFileLogObserver(sys.stdout)


def get_text_file_observer(name=DEFAULT_LOG_FILENAME, path=USER_LOG_DIR) -> Observer:
    logfile = _rotating_log_file(name=name, path=path)
    return FileLogObserver(formatEvent=formatEventAsClassicLogText, outFile=logfile)


def get_json_file_observer(name=DEFAULT_JSON_LOG_FILENAME, path=USER_LOG_DIR) -> Observer:
    logfile = _rotating_log_file(name=name, path=path)
    return jsonFileLogObserver(outFile=logfile)


class GlobalLoggerSettings:
    """
    Process-wide logging switches. Each logging type installs at most one observer
    on twisted's global publisher, filtered by the shared log level.
    """

    log_level = LogLevel.levelWithName("info")

    class LoggingType(Enum):
        CONSOLE = "console"
        TEXT = "text"
        JSON = "json"

    _observer_factories: Dict[LoggingType, Callable[[], Observer]] = {
        LoggingType.CONSOLE: get_console_observer,
        LoggingType.TEXT: get_text_file_observer,
        LoggingType.JSON: get_json_file_observer,
    }
    _observers: Dict[LoggingType, Observer] = dict()

    @classmethod
    def set_log_level(cls, log_level_name: str) -> None:
        cls.log_level = LogLevel.levelWithName(log_level_name)

    @classmethod
    def is_logging(cls, logging_type: LoggingType) -> bool:
        return logging_type in cls._observers

    @classmethod
    def _start_logging(cls, logging_type: LoggingType) -> None:
        if cls.is_logging(logging_type):
            return
        observer = level_filtered(cls._observer_factories[logging_type]())
        globalLogPublisher.addObserver(observer)
        cls._observers[logging_type] = observer

    @classmethod
    def _stop_logging(cls, logging_type: LoggingType) -> None:
        observer = cls._observers.pop(logging_type, None)
        if observer:
            globalLogPublisher.removeObserver(observer)

    @classmethod
    def start_console_logging(cls):
        cls._start_logging(cls.LoggingType.CONSOLE)

    @classmethod
    def stop_console_logging(cls):
        cls._stop_logging(cls.LoggingType.CONSOLE)

    @classmethod
    def start_text_file_logging(cls):
        cls._start_logging(cls.LoggingType.TEXT)

    @classmethod
    def start_json_file_logging(cls):
        cls._start_logging(cls.LoggingType.JSON)

    @classmethod
    def start_verbose_logging(cls) -> bool:
        """
        Turns on debug-level console logging when the verbosity
        environment toggle is set.  Returns True if logging was enabled.
        """
        if not verbose_logging_requested():
            return False
        cls.set_log_level("debug")
        cls.start_console_logging()
        return True


def level_filtered(observer: Observer) -> Observer:
    """Drops events below the global log level, including those emitted by non-reftoken loggers."""
    def _observer(event: LogEvent):
        if event["log_level"] >= GlobalLoggerSettings.log_level:
            observer(event)
    return _observer


class Logger(TwistedLogger):
    """Twisted Logger that tolerates curly braces in messages (ABIs, JSON-RPC payloads, receipts)."""

    @staticmethod
    def escape_format_string(string: str) -> str:
        return string.replace("{", "{{").replace("}", "}}")

    def emit(self, level, format=None, **kwargs):
        if level >= GlobalLoggerSettings.log_level:
            super().emit(level=level, format=self.escape_format_string(str(format)), **kwargs)
