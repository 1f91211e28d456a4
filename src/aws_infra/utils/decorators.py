"""Decorator patterns shared by the CLI commands."""

import click
from functools import wraps
from typing import Callable, Optional

from aws_infra.utils.exceptions import AWSInfraError, CLIError
from aws_infra.utils.logger import setup_logger


def handle_operation_error(operation_name: str, error: Exception) -> None:
    """Centralized error handling for operations.

    Args:
        operation_name: Name of the operation that failed
        error: Exception that occurred
    """
    error_msg = f"Error in {operation_name}: {error}"
    click.echo(error_msg, err=True)

    retryable = getattr(error, "retryable", False)
    if retryable:
        click.echo("The error is transient; retrying the command may succeed.", err=True)

    logger = setup_logger("aws_infra.errors", "errors.log")
    logger.error(
        error_msg,
        extra={
            "operation": operation_name,
            "error_type": type(error).__name__,
            "retryable": retryable,
        },
    )


def aws_operation(
    requires_confirmation: bool = False,
    confirmation_message: Optional[Callable[..., str]] = None,
    supports_dry_run: bool = False,
):
    """Wrap a click command with confirmation, dry-run and error handling.

    Args:
        requires_confirmation: Prompt before running unless ``--force`` was given
        confirmation_message: Builds the prompt from the command's kwargs
        supports_dry_run: Stop after printing a notice when ``--dry-run`` is set
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            operation_name = func.__name__.replace("_", "-")

            # Pre-execution confirmation
            if requires_confirmation and not kwargs.get("force", False) and not kwargs.get("dry_run", False):
                prompt = (
                    confirmation_message(**kwargs)
                    if confirmation_message
                    else f"Continue with {operation_name}?"
                )
                if not click.confirm(prompt):
                    click.echo("Operation cancelled by user.", err=True)
                    return None

            if supports_dry_run and kwargs.get("dry_run", False):
                click.echo(f"[DRY RUN] Would execute {operation_name}", err=True)

            try:
                return func(*args, **kwargs)
            except (AWSInfraError, CLIError, ValueError) as e:
                handle_operation_error(operation_name, e)
                raise click.exceptions.Exit(1)

        return wrapper

    return decorator


def destructive_operation(confirmation_message: Optional[Callable[..., str]] = None):
    """Decorator for operations that change or remove resources."""
    return aws_operation(
        requires_confirmation=True,
        confirmation_message=confirmation_message,
        supports_dry_run=True,
    )


def read_operation():
    """Decorator for read-only operations."""
    return aws_operation(requires_confirmation=False)


def mutating_operation():
    """Decorator for operations that create or update resources without a prompt."""
    return aws_operation(requires_confirmation=False)
