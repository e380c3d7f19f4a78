"""
Tests for the persistence harness CLI.
"""

import logging

import pytest
from click.testing import CliRunner

from persistence_harness.cli import cli
from persistence_harness.logging_config import LOGGER_NAME


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """The CLI configures the package logger; undo that after each test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


class TestInspect:

    def test_defaults_when_no_properties_file(self, runner):
        result = runner.invoke(cli, ["inspect"])

        assert result.exit_code == 0
        assert "(not found, using defaults)" in result.output
        assert "Dialect: sqlite" in result.output

    def test_masks_password_and_reports_dialect(self, runner, write_properties):
        path = write_properties(
            {"database.url": "postgresql://tester:s3cret@db:5432/tests", "database.echo": False}
        )

        result = runner.invoke(cli, ["inspect", "--properties", str(path)])

        assert result.exit_code == 0
        assert "Dialect: postgresql" in result.output
        assert "s3cret" not in result.output
        assert "database.url = postgresql://tester:***@db:5432/tests" in result.output
        assert "database.echo = False" in result.output

    def test_corrupt_properties_file(self, runner, properties_path):
        properties_path.write_text("database.url: [unterminated\n")

        result = runner.invoke(cli, ["inspect"])

        assert result.exit_code == 1
        assert "Configuration error: could not load" in result.output


class TestCheck:

    def test_in_memory_database(self, runner):
        result = runner.invoke(cli, ["check"])

        assert result.exit_code == 0
        assert "Connected to sqlite://" in result.output

    def test_file_database_from_properties(self, runner, write_properties, tmp_path):
        database = tmp_path / "check.sqlite"
        path = write_properties({"database.url": f"sqlite:///{database}"})

        result = runner.invoke(cli, ["check", "--properties", str(path)])

        assert result.exit_code == 0
        assert "(sqlite)" in result.output

    def test_unreachable_database(self, runner, write_properties, tmp_path):
        path = write_properties({"database.url": f"sqlite:///{tmp_path / 'missing' / 'x.sqlite'}"})

        result = runner.invoke(cli, ["check", "--properties", str(path)])

        assert result.exit_code == 1
        assert "Database error" in result.output
