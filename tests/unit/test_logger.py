"""Unit tests for structured logging and secret redaction."""

import json
import logging
import sys

import pytest

from ocean_trading_bot.logging.logger import (
    REDACTED, LoggerManager, SecretRedactingFilter, StructuredFormatter,
    clear_secrets, initialize_logging, redact, register_secret,
)

from conftest import TEST_PRIVATE_KEY


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def manager(temp_config_dir, restore_root_logger):
    manager = LoggerManager(log_dir=str(temp_config_dir), log_level="DEBUG", console_output=False)
    yield manager
    manager.shutdown()


def _read_records(path):
    with open(path, 'r', encoding='utf-8') as f:
        return [json.loads(line) for line in f if line.strip()]


class TestRegisterSecret:
    """Test cases for the secret registry."""

    def test_hex_variants(self):
        register_secret("0x" + TEST_PRIVATE_KEY)
        assert redact(TEST_PRIVATE_KEY) == REDACTED
        assert redact(TEST_PRIVATE_KEY.upper()) == REDACTED
        assert redact("key=0x" + TEST_PRIVATE_KEY) == "key=" + REDACTED

    def test_short_values_are_ignored(self):
        register_secret("abc")
        register_secret("")
        assert redact("abc") == "abc"

    def test_clear(self):
        register_secret(TEST_PRIVATE_KEY)
        clear_secrets()
        assert redact(TEST_PRIVATE_KEY) == TEST_PRIVATE_KEY


class TestSecretRedactingFilter:
    """Test cases for SecretRedactingFilter."""

    def _record(self, msg, args=(), **extra):
        record = logging.LogRecord('test', logging.INFO, __file__, 1, msg, args, None)
        record.__dict__.update(extra)
        return record

    def test_message_and_args(self):
        register_secret(TEST_PRIVATE_KEY)
        record = self._record("loaded key %s", (TEST_PRIVATE_KEY,))
        assert SecretRedactingFilter().filter(record)
        assert record.getMessage() == f"loaded key {REDACTED}"

    def test_extra_fields(self):
        register_secret(TEST_PRIVATE_KEY)
        record = self._record("context", key=TEST_PRIVATE_KEY, context={'nested': [TEST_PRIVATE_KEY]})
        SecretRedactingFilter().filter(record)
        assert record.key == REDACTED
        assert record.context == {'nested': [REDACTED]}

    def test_untouched_without_secrets(self):
        record = self._record("order %s", ("0xabc",))
        SecretRedactingFilter().filter(record)
        assert record.getMessage() == "order 0xabc"
        assert record.args == ("0xabc",)

    def test_clean_extras_keep_their_types(self):
        """Extras without secrets are left as the same objects."""
        register_secret(TEST_PRIVATE_KEY)
        context = {1: (2, 3), 'fills': [{'amount': 10 ** 18}]}
        record = self._record("context", context=context)
        SecretRedactingFilter().filter(record)
        assert record.context is context
        assert record.context == {1: (2, 3), 'fills': [{'amount': 10 ** 18}]}

    def test_only_changed_containers_are_replaced(self):
        register_secret(TEST_PRIVATE_KEY)
        record = self._record("context", context={1: (2, TEST_PRIVATE_KEY)})
        SecretRedactingFilter().filter(record)
        assert record.context == {1: (2, REDACTED)}

    def test_unformattable_record_is_left_for_the_handler(self):
        register_secret(TEST_PRIVATE_KEY)
        record = self._record("%s %s", ("only one",))
        assert SecretRedactingFilter().filter(record)
        assert record.msg == "%s %s"
        assert record.args == ("only one",)

    def test_exception_without_secret_is_kept(self):
        register_secret(TEST_PRIVATE_KEY)
        try:
            raise ValueError("relay timeout")
        except ValueError:
            record = logging.LogRecord('test', logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
        SecretRedactingFilter().filter(record)
        assert record.exc_info is not None
        assert record.exc_info[0] is ValueError


class TestLoggerManager:
    """Test cases for LoggerManager."""

    def test_creates_log_files(self, manager, temp_config_dir):
        manager.get_logger('ocean_trading_bot.test').error("relay unavailable")
        assert (temp_config_dir / "ocean_trading_bot.log").exists()
        assert (temp_config_dir / "errors.log").exists()

    def test_structured_output(self, manager, temp_config_dir):
        manager.get_logger('ocean_trading_bot.test').info(
            "order signed", extra={'order_hash': '0x' + 'ab' * 32})
        records = _read_records(temp_config_dir / "ocean_trading_bot.log")
        signed = [r for r in records if r['message'] == "order signed"]
        assert signed
        assert signed[0]['level'] == 'INFO'
        assert signed[0]['extra']['order_hash'] == '0x' + 'ab' * 32

    def test_errors_file_only_has_errors(self, manager, temp_config_dir):
        log = manager.get_logger('ocean_trading_bot.test')
        log.info("informational")
        log.error("failure")
        levels = {r['level'] for r in _read_records(temp_config_dir / "errors.log")}
        assert levels == {'ERROR'}

    def test_bad_format_args_do_not_raise(self, manager, temp_config_dir):
        register_secret(TEST_PRIVATE_KEY)
        log = manager.get_logger('ocean_trading_bot.test')
        log.info("%s %s", "only one")
        log.info("after the bad record")
        messages = [r['message'] for r in _read_records(temp_config_dir / "ocean_trading_bot.log")]
        assert "after the bad record" in messages

    def test_secret_never_written(self, manager, temp_config_dir):
        register_secret(TEST_PRIVATE_KEY)
        log = manager.get_logger('ocean_trading_bot.test')
        log.info(f"key is {TEST_PRIVATE_KEY}", extra={'key': '0x' + TEST_PRIVATE_KEY})
        try:
            raise ValueError(f"bad key {TEST_PRIVATE_KEY}")
        except ValueError as e:
            log.error(f"signing failed: {e}", extra={'context': {'operation': 'sign'}}, exc_info=True)

        for name in ("ocean_trading_bot.log", "errors.log"):
            content = (temp_config_dir / name).read_text(encoding='utf-8')
            assert TEST_PRIVATE_KEY not in content
            assert REDACTED in content

    def test_get_logger_is_cached(self, manager):
        assert manager.get_logger('a.b') is manager.get_logger('a.b')


def test_initialize_logging_replaces_manager(temp_config_dir, restore_root_logger):
    first = initialize_logging(log_dir=str(temp_config_dir / "one"), console_output=False)
    second = initialize_logging(log_dir=str(temp_config_dir / "two"), console_output=False)
    try:
        root = logging.getLogger()
        assert not any(first.redaction_filter in h.filters for h in root.handlers)
    finally:
        second.shutdown()


def test_formatter_without_extra():
    formatter = StructuredFormatter(include_extra=False)
    record = logging.LogRecord('test', logging.WARNING, __file__, 1, "plain", (), None)
    data = json.loads(formatter.format(record))
    assert data['message'] == "plain"
    assert 'extra' not in data
