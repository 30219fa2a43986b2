from io import StringIO
from json.encoder import py_encode_basestring_ascii

import pytest
from twisted.logger import LogLevel, formatEvent, jsonFileLogObserver

from reftoken.config.constants import REFTOKEN_ENVVAR_VERBOSE
from reftoken.utilities.logging import GlobalLoggerSettings, Logger, level_filtered


def naive_print_observer(event):
    print(formatEvent(event), end="")


def get_json_observer_for_file(logfile):
    def json_observer(event):
        observer = jsonFileLogObserver(outFile=logfile)
        return observer(event)
    return json_observer


def expected_processing(string_with_curly_braces):
    ascii_string = py_encode_basestring_ascii(string_with_curly_braces)[1:-1]
    expected_output = Logger.escape_format_string(ascii_string)
    return expected_output


# Contract call results and revert reasons routinely carry braces
log_messages = (
    "Deployed ReferenceToken at 0xDeaDbeefdEAdbeefdEadbEEFdeadbeEFdEaDbeeF",
    "{{}}",
    "Observed balanceOf('0x00',) = 10 at block 3",
    "RPC eth_call [{'to': '0x00', 'data': '0x18160ddd'}, 'latest']",
    "execution reverted: {owner}",
    "}{",
    "{",
)


@pytest.mark.parametrize("string", log_messages)
def test_reftoken_logger_escapes_format_strings(capsys, string):
    logger = Logger("test-logger")
    logger.observer = naive_print_observer
    logger.info(string)
    captured = capsys.readouterr()
    assert string == captured.out


@pytest.mark.parametrize("string", log_messages)
def test_reftoken_logger_json_output(string):
    file = StringIO()
    logger = Logger("test-logger")
    logger.observer = get_json_observer_for_file(file)
    logger.info(string)
    logged_event = file.getvalue()
    assert '"log_level": {"name": "info"' in logged_event
    assert f'"log_format": "{expected_processing(string)}"' in logged_event


@pytest.mark.parametrize("value, enabled", (
    ("1", True),
    ("true", True),
    ("YES", True),
    (" on ", True),
    ("0", False),
    ("", False),
    ("nope", False),
))
def test_verbose_logging_toggle(mocker, monkeypatch, value, enabled):
    start_console_logging = mocker.patch.object(GlobalLoggerSettings, 'start_console_logging')
    set_log_level = mocker.patch.object(GlobalLoggerSettings, 'set_log_level')
    monkeypatch.setenv(REFTOKEN_ENVVAR_VERBOSE, value)

    assert GlobalLoggerSettings.start_verbose_logging() is enabled
    assert start_console_logging.called is enabled
    if enabled:
        set_log_level.assert_called_once_with("debug")


def test_verbose_logging_is_off_without_the_toggle(mocker, monkeypatch):
    start_console_logging = mocker.patch.object(GlobalLoggerSettings, 'start_console_logging')
    monkeypatch.delenv(REFTOKEN_ENVVAR_VERBOSE, raising=False)
    assert not GlobalLoggerSettings.start_verbose_logging()
    start_console_logging.assert_not_called()


def test_console_logging_installs_one_observer(mocker):
    add_observer = mocker.patch('reftoken.utilities.logging.globalLogPublisher.addObserver')
    remove_observer = mocker.patch('reftoken.utilities.logging.globalLogPublisher.removeObserver')
    mocker.patch.dict(GlobalLoggerSettings._observers, clear=True)
    console = GlobalLoggerSettings.LoggingType.CONSOLE

    GlobalLoggerSettings.start_console_logging()
    GlobalLoggerSettings.start_console_logging()
    assert GlobalLoggerSettings.is_logging(console)
    add_observer.assert_called_once_with(GlobalLoggerSettings._observers[console])

    GlobalLoggerSettings.stop_console_logging()
    GlobalLoggerSettings.stop_console_logging()
    assert not GlobalLoggerSettings.is_logging(console)
    remove_observer.assert_called_once()


def test_events_below_the_log_level_are_dropped(mocker):
    mocker.patch.object(GlobalLoggerSettings, 'log_level', LogLevel.warn)
    observer = mocker.Mock()
    filtered = level_filtered(observer)

    filtered({"log_level": LogLevel.debug})
    observer.assert_not_called()

    event = {"log_level": LogLevel.error}
    filtered(event)
    observer.assert_called_once_with(event)
