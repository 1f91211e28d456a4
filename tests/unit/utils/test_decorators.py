"""Unit tests for the CLI operation decorators."""

import click
from click.testing import CliRunner

from aws_infra.utils.decorators import destructive_operation, mutating_operation, read_operation
from aws_infra.utils.exceptions import APIError, CLIError

calls = []


@click.command()
@click.argument("name")
@click.option("--force", is_flag=True)
@click.option("--dry-run", is_flag=True)
@destructive_operation(lambda name="", **kwargs: f"Really remove {name}?")
def remove_thing(name, force, dry_run):
    calls.append((name, dry_run))
    click.echo(f"removed {name}" if not dry_run else f"would remove {name}")


@click.command()
@click.option("--kind", default="api")
@read_operation()
def fail_thing(kind):
    if kind == "api":
        raise APIError("failed describe_things: throttled", retryable=True)
    if kind == "cli":
        raise CLIError("bad input")
    raise RuntimeError("unexpected")


@click.command()
@click.argument("name")
@mutating_operation()
def create_thing(name):
    if name == "taken":
        raise APIError(f"failed create_thing: {name} already exists")
    calls.append((name, False))
    click.echo(f"created {name}")


def setup_function():
    calls.clear()


def test_confirmation_declined():
    result = CliRunner().invoke(remove_thing, ["widget"], input="n\n")

    assert result.exit_code == 0
    assert "Really remove widget?" in result.output
    assert "Operation cancelled by user." in result.output
    assert calls == []


def test_confirmation_accepted():
    result = CliRunner().invoke(remove_thing, ["widget"], input="y\n")

    assert result.exit_code == 0
    assert "removed widget" in result.output
    assert calls == [("widget", False)]


def test_force_skips_prompt():
    result = CliRunner().invoke(remove_thing, ["widget", "--force"])

    assert "Really remove" not in result.output
    assert calls == [("widget", False)]


def test_dry_run_skips_prompt_and_announces():
    result = CliRunner().invoke(remove_thing, ["widget", "--dry-run"])

    assert result.exit_code == 0
    assert "[DRY RUN] Would execute remove-thing" in result.stderr
    assert "[DRY RUN]" not in result.stdout
    assert "would remove widget" in result.output
    assert calls == [("widget", True)]


def test_retryable_error_reported_with_hint():
    result = CliRunner().invoke(fail_thing, [])

    assert result.exit_code == 1
    assert "Error in fail-thing: failed describe_things: throttled" in result.output
    assert "retrying the command may succeed" in result.output


def test_cli_error_reported():
    result = CliRunner().invoke(fail_thing, ["--kind", "cli"])

    assert result.exit_code == 1
    assert "Error in fail-thing: bad input" in result.output
    assert "retrying" not in result.output


def test_unexpected_errors_propagate():
    result = CliRunner().invoke(fail_thing, ["--kind", "other"])

    assert isinstance(result.exception, RuntimeError)


def test_mutating_operation_runs_without_prompt():
    result = CliRunner().invoke(create_thing, ["widget"])

    assert result.exit_code == 0
    assert result.stdout == "created widget\n"
    assert calls == [("widget", False)]


def test_mutating_operation_reports_errors():
    result = CliRunner().invoke(create_thing, ["taken"])

    assert result.exit_code == 1
    assert "Error in create-thing: failed create_thing: taken already exists" in result.stderr
    assert calls == []
