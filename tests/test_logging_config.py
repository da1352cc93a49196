"""Tests for logging setup and secret masking."""

import logging

import pytest

from common.logging_config import SensitiveDataFilter, setup_logging


@pytest.fixture(autouse=True)
def fresh_loggers():
    """Detach handlers added by setup_logging so each test starts clean."""
    names = ('drive', 'cli-test', 'cli-idem')
    for name in names:
        logging.getLogger(name).handlers.clear()
    yield
    for name in names:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


@pytest.mark.parametrize('message,secret', [
    ('refresh_token=abc123def', 'abc123def'),
    ('{"access_token": "eyJhbGci.payload"}', 'eyJhbGci.payload'),
    ('Authorization: Bearer eyJtoken', 'eyJtoken'),
    ("'proof_code': 'QUJDREVGR0g='", 'QUJDREVGR0g='),
    ('share_pwd=pw12', 'pw12'),
])
def test_mask_hides_secrets(message, secret):
    """Test known secret patterns are masked."""
    masked = SensitiveDataFilter.mask(message)

    assert secret not in masked
    assert '***MASKED***' in masked


def test_mask_leaves_plain_text():
    """Test messages without secrets pass unchanged."""
    message = 'Upload completed [name=a.txt, file_id=f1, size=10]'
    assert SensitiveDataFilter.mask(message) == message


def test_filter_masks_record_args():
    """Test %-style arguments are masked too."""
    record = logging.LogRecord('drive', logging.INFO, __file__, 1, 'token %s', ('Bearer secret1',), None)

    assert SensitiveDataFilter().filter(record)
    assert record.getMessage() == 'token Bearer ***MASKED***'


def test_setup_logging_configures_component_and_library(capsys):
    """Test the component and drive loggers share one masked handler setup."""
    logger = setup_logging('cli-test', log_level='DEBUG')
    library = logging.getLogger('drive')

    assert logger.level == logging.DEBUG
    assert library.level == logging.DEBUG
    assert logger.propagate is False

    logging.getLogger('drive.client').info('refresh_token=leaked')
    out = capsys.readouterr().out

    assert 'refresh_token=***MASKED***' in out
    assert 'leaked' not in out


def test_setup_logging_is_idempotent():
    """Test repeated setup does not stack handlers."""
    setup_logging('cli-idem', log_level='INFO')
    setup_logging('cli-idem', log_level='WARNING')

    logger = logging.getLogger('cli-idem')
    assert len(logger.handlers) == 1
    assert logger.handlers[0].level == logging.WARNING
