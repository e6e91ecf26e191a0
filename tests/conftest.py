"""Shared fixtures -- catalog, detector, validator, formatter, temp override store."""

import pytest

from answer_standards.formatting.formatter import AutoFormatter
from answer_standards.overrides.manager import ConfigurationManager
from answer_standards.patterns.catalog import default_catalog
from answer_standards.patterns.detector import PatternDetector
from answer_standards.validation.validator import FormatValidator


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def pattern(catalog):
    """Look up a built-in pattern by id."""

    def _get(pattern_id):
        found = catalog.get(pattern_id)
        assert found is not None, pattern_id
        return found

    return _get


@pytest.fixture
def detector(catalog):
    return PatternDetector(catalog)


@pytest.fixture
def validator():
    return FormatValidator()


@pytest.fixture
def formatter(validator, catalog):
    return AutoFormatter(validator=validator, catalog=catalog)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "overrides.db"


@pytest.fixture
def manager(db_path, catalog):
    return ConfigurationManager(db_path, catalog=catalog)
