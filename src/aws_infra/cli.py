#!/usr/bin/env python3
"""
AWS Infra - CLI
Thin command line wrapper over EC2, S3, KMS, CloudFormation, SSM, STS and Auto Scaling
"""

import base64
import binascii
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type

import click

from aws_infra import __version__
from aws_infra.core.aws import (
    AutoScalingManager,
    CloudFormationManager,
    EC2Manager,
    KMSManager,
    S3Manager,
    SSMManager,
    STSManager,
    parse_s3_uri,
)
from aws_infra.core.aws.base import BaseManager
from aws_infra.core.constants import OUTPUT_FORMATS
from aws_infra.core.models import CommandStatus, parse_key_values, total_size
from aws_infra.core.processors import CSVReportGenerator, format_bytes, format_output, format_tags
from aws_infra.utils.config import ConfigManager
from aws_infra.utils.decorators import destructive_operation, mutating_operation, read_operation
from aws_infra.utils.exceptions import CLIError, ValidationRules
from aws_infra.utils.logger import set_console_level, setup_logger
from aws_infra.utils.session import SessionManager


def setup_logging(verbose: bool = False, level: str = "INFO"):
    level = "DEBUG" if verbose else level.upper()
    set_console_level(level)
    return setup_logger("aws_infra.cli", "cli.log", level)


def get_manager(ctx: click.Context, manager_class: Type[BaseManager]) -> BaseManager:
    """Build (once per invocation) a manager bound to the invocation's session."""
    obj = ctx.find_root().obj
    managers = obj.setdefault("managers", {})
    if manager_class not in managers:
        if "session" not in obj:
            obj["session"] = SessionManager.get_session(
                region=obj["region"], profile=obj["profile"], role_arn=obj["role_arn"]
            )
        managers[manager_class] = manager_class(obj["session"], obj["region"])
    return managers[manager_class]


def emit(ctx: click.Context, rows: Sequence[Dict[str, Any]], headers: Optional[List[str]] = None) -> None:
    """Print rows in the selected output format."""
    click.echo(format_output(rows, ctx.find_root().obj["output"], headers))


def write_report(ctx: click.Context, report: Optional[str], prefix: str, rows: List[Dict[str, Any]]) -> None:
    if not report:
        return
    generator = CSVReportGenerator(report)
    filename = generator.timestamped_filename(prefix)
    fieldnames = list(rows[0].keys()) if rows else None
    if generator.generate_report(rows, filename, fieldnames):
        click.echo(f"Report saved to {Path(report) / filename}", err=True)


def key_values(pairs: Sequence[str], option: str) -> Dict[str, str]:
    try:
        return parse_key_values(list(pairs))
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint=option)


def check_instance_ids(instance_ids: Sequence[str]) -> None:
    invalid = [iid for iid in instance_ids if not ValidationRules.validate_instance_id(iid)]
    if invalid:
        raise CLIError(f"Invalid instance id(s): {', '.join(invalid)}")


def check_kms_key_id(key_id: Optional[str]) -> None:
    if key_id is not None and not ValidationRules.validate_kms_key_id(key_id):
        raise CLIError(f"Invalid KMS key id, ARN or alias: {key_id}")


def polling(ctx: click.Context, service: str, timeout: Optional[float], interval: Optional[float]) -> Dict[str, float]:
    settings = ctx.find_root().obj["config"].get_polling_config(service)
    if timeout is not None:
        settings["timeout"] = timeout
    if interval is not None:
        settings["interval"] = interval
    return settings


# Common CLI options
def add_mutation_options(func):
    func = click.option("--force", is_flag=True, help="Skip confirmation prompts")(func)
    func = click.option(
        "--dry-run", is_flag=True, help="Preview changes without executing"
    )(func)
    return func


def add_report_option(func):
    return click.option(
        "--report", type=click.Path(file_okay=False), help="Also write a CSV report to this directory"
    )(func)


def add_wait_options(func):
    func = click.option("--wait", is_flag=True, help="Wait for the operation to finish")(func)
    func = click.option("--timeout", type=float, help="Seconds to wait (default from settings)")(func)
    func = click.option("--interval", type=float, help="Seconds between polls (default from settings)")(func)
    return func


@click.group()
@click.option("--region", help="AWS region (default from settings or AWS_REGION)")
@click.option("--profile", help="AWS credentials profile")
@click.option("--role-arn", help="IAM role to assume before calling AWS")
@click.option(
    "--output",
    "-o",
    type=click.Choice(OUTPUT_FORMATS),
    help="Output format (default from settings: table)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, region, profile, role_arn, output, verbose):
    """AWS Infra - infrastructure operations on EC2, S3, KMS, CloudFormation, SSM and STS"""
    ctx.ensure_object(dict)
    config = ctx.obj.get("config") or ConfigManager()
    setup_logging(verbose, config.get_logging_level())

    ctx.obj["config"] = config
    ctx.obj["region"] = region or config.get_aws_region()
    ctx.obj["profile"] = profile or config.get_aws_profile()
    ctx.obj["role_arn"] = role_arn or config.get_role_arn()
    ctx.obj["output"] = output or config.get_output_format()
    if ctx.obj["output"] not in OUTPUT_FORMATS:
        raise click.BadParameter(
            f"unsupported output format '{ctx.obj['output']}' in settings", param_hint="--output"
        )


@cli.command()
def version():
    """Show version information"""
    click.echo(f"AWS Infra {__version__}")


@cli.command()
@click.pass_context
@read_operation()
def whoami(ctx):
    """Show the caller identity of the current credentials"""
    identity = get_manager(ctx, STSManager).get_identity()
    emit(ctx, [identity.to_row()])


# ---------------------------------------------------------------- EC2

@cli.group()
def ec2():
    """EC2 instances and volumes"""


@ec2.command("list")
@click.option("--name", help="Name tag pattern (substring match unless it contains '*')")
@click.option("--state", "states", multiple=True, help="Instance state filter (repeatable)")
@click.option("--tag", "tags", multiple=True, help="KEY=VALUE tag filter (repeatable)")
@add_report_option
@click.pass_context
@read_operation()
def ec2_list(ctx, name, states, tags, report):
    """List EC2 instances"""
    instances = get_manager(ctx, EC2Manager).list_instances(
        name=name, states=list(states), tags=key_values(tags, "--tag")
    )
    rows = [instance.to_row() for instance in instances]
    emit(ctx, rows)
    write_report(ctx, report, "ec2_instances", rows)


def _instance_prompt(instance_ids=(), **kwargs) -> str:
    return f"Apply to {len(instance_ids)} instance(s): {', '.join(instance_ids)}?"


def _change_instances(ctx, action: str, desired_state: str, instance_ids, dry_run, wait, timeout, interval):
    check_instance_ids(instance_ids)
    manager = get_manager(ctx, EC2Manager)
    if dry_run:
        instances = manager.list_instances(instance_ids=list(instance_ids))
        for instance in instances:
            click.echo(
                f"[DRY RUN] Would {action} {instance.instance_id} ({instance.name or '-'}, {instance.state})",
                err=True,
            )
        return

    transitions = getattr(manager, f"{action}_instances")(list(instance_ids))
    rows = [{"instance_id": iid, "previous": prev, "current": cur} for iid, prev, cur in transitions]
    # json and csv output carry a single document: the final state when waiting
    if not wait or ctx.find_root().obj["output"] == "table":
        emit(ctx, rows)
    if wait:
        settings = polling(ctx, "ec2", timeout, interval)
        instances = manager.wait_instances(list(instance_ids), desired_state, **settings)
        emit(ctx, [instance.to_row() for instance in instances])


@ec2.command("start")
@click.argument("instance_ids", nargs=-1, required=True)
@add_wait_options
@add_mutation_options
@click.pass_context
@destructive_operation(_instance_prompt)
def ec2_start(ctx, instance_ids, wait, timeout, interval, dry_run, force):
    """Start EC2 instances"""
    _change_instances(ctx, "start", "running", instance_ids, dry_run, wait, timeout, interval)


@ec2.command("stop")
@click.argument("instance_ids", nargs=-1, required=True)
@add_wait_options
@add_mutation_options
@click.pass_context
@destructive_operation(_instance_prompt)
def ec2_stop(ctx, instance_ids, wait, timeout, interval, dry_run, force):
    """Stop EC2 instances"""
    _change_instances(ctx, "stop", "stopped", instance_ids, dry_run, wait, timeout, interval)


@ec2.command("terminate")
@click.argument("instance_ids", nargs=-1, required=True)
@add_wait_options
@add_mutation_options
@click.pass_context
@destructive_operation(_instance_prompt)
def ec2_terminate(ctx, instance_ids, wait, timeout, interval, dry_run, force):
    """Terminate EC2 instances"""
    _change_instances(ctx, "terminate", "terminated", instance_ids, dry_run, wait, timeout, interval)


@ec2.command("volumes")
@add_report_option
@click.pass_context
@read_operation()
def ec2_volumes(ctx, report):
    """List EBS volumes"""
    volumes = get_manager(ctx, EC2Manager).describe_volumes()
    rows = [volume.to_row() for volume in volumes]
    emit(ctx, rows)
    if volumes:
        click.echo(
            f"{len(volumes)} volumes, {format_bytes(sum(v.size_bytes for v in volumes))} provisioned",
            err=True,
        )
    write_report(ctx, report, "ebs_volumes", rows)


# ---------------------------------------------------------------- S3

@cli.group()
def s3():
    """S3 buckets and objects"""


@s3.command("ls")
@click.argument("bucket", required=False)
@click.option("--prefix", default="", help="Key prefix")
@add_report_option
@click.pass_context
@read_operation()
def s3_ls(ctx, bucket, prefix, report):
    """List buckets, or objects in BUCKET (name or s3:// URI)"""
    manager = get_manager(ctx, S3Manager)
    if not bucket:
        rows = [b.to_row() for b in manager.list_buckets()]
        emit(ctx, rows)
        write_report(ctx, report, "s3_buckets", rows)
        return

    if bucket.startswith("s3://"):
        bucket, uri_prefix = parse_s3_uri(bucket)
        prefix = prefix or uri_prefix

    objects = manager.list_objects(bucket, prefix)
    rows = [obj.to_row() for obj in objects]
    emit(ctx, rows)
    click.echo(f"{len(objects)} objects, {format_bytes(total_size(objects))} total", err=True)
    write_report(ctx, report, "s3_objects", rows)


@s3.command("mb")
@click.argument("name")
@click.pass_context
@mutating_operation()
def s3_mb(ctx, name):
    """Create a private, encrypted bucket"""
    if not ValidationRules.validate_bucket_name(name):
        raise CLIError(f"Invalid bucket name: {name}")
    if get_manager(ctx, S3Manager).create_bucket(name):
        click.echo(f"make_bucket: {name}")
    else:
        click.echo(f"Bucket {name} already exists")


@s3.command("rb")
@click.argument("name")
@add_mutation_options
@click.pass_context
@destructive_operation(lambda name="", force=False, **kwargs: f"Delete bucket {name}?")
def s3_rb(ctx, name, dry_run, force):
    """Delete a bucket (with --force, its objects too)"""
    manager = get_manager(ctx, S3Manager)
    if dry_run:
        objects = manager.list_objects(name)
        click.echo(
            f"[DRY RUN] Would delete bucket {name} holding {len(objects)} objects "
            f"({format_bytes(total_size(objects))})",
            err=True,
        )
        return
    if manager.delete_bucket(name, force=force):
        click.echo(f"remove_bucket: {name}")
    else:
        click.echo(f"Bucket {name} does not exist")


@s3.command("cp")
@click.argument("source")
@click.argument("destination")
@click.pass_context
@mutating_operation()
def s3_cp(ctx, source, destination):
    """Copy a file to or from S3 (one side must be an s3:// URI)"""
    manager = get_manager(ctx, S3Manager)
    if source.startswith("s3://") and not destination.startswith("s3://"):
        bucket, key = parse_s3_uri(source)
        target = Path(destination)
        if target.is_dir():
            target = target / key.rsplit("/", 1)[-1]
        manager.download_file(bucket, key, target)
        click.echo(f"download: {source} to {target}")
    elif destination.startswith("s3://") and not source.startswith("s3://"):
        path = Path(source)
        if not path.is_file():
            raise CLIError(f"Not a file: {source}")
        bucket, key = parse_s3_uri(destination)
        if not key or key.endswith("/"):
            key = f"{key}{path.name}"
        size = manager.upload_file(path, bucket, key)
        click.echo(f"upload: {source} to s3://{bucket}/{key} ({format_bytes(size)})")
    else:
        raise CLIError("Exactly one of SOURCE and DESTINATION must be an s3:// URI")


@s3.command("sync")
@click.argument("local_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("destination")
@click.option("--delete", is_flag=True, help="Remove remote objects without a local file")
@add_mutation_options
@click.pass_context
@destructive_operation(
    lambda local_dir="", destination="", **kwargs: f"Sync {local_dir} to {destination}?"
)
def s3_sync(ctx, local_dir, destination, delete, dry_run, force):
    """Upload new and changed files from LOCAL_DIR to an s3:// prefix"""
    bucket, prefix = parse_s3_uri(destination)
    result = get_manager(ctx, S3Manager).sync(
        local_dir, bucket, prefix, delete=delete, dry_run=dry_run
    )
    verb = "Would upload" if dry_run else "upload"
    for key in result.uploaded:
        click.echo(f"{verb}: s3://{bucket}/{key}", err=True)
    for key in result.deleted:
        click.echo(f"{'Would delete' if dry_run else 'delete'}: s3://{bucket}/{key}", err=True)
    emit(ctx, [result.to_row()])


# ---------------------------------------------------------------- KMS

@cli.group()
def kms():
    """KMS keys"""


@kms.command("list")
@add_report_option
@click.pass_context
@read_operation()
def kms_list(ctx, report):
    """List KMS keys"""
    rows = [key.to_row() for key in get_manager(ctx, KMSManager).list_keys()]
    emit(ctx, rows)
    write_report(ctx, report, "kms_keys", rows)


@kms.command("create")
@click.option("--description", default="created by aws-infra", help="Key description")
@click.option("--alias", help="Alias to attach (alias/ prefix optional)")
@click.option("--tag", "tags", multiple=True, help="KEY=VALUE tag (repeatable)")
@click.pass_context
@mutating_operation()
def kms_create(ctx, description, alias, tags):
    """Create a symmetric encryption key"""
    manager = get_manager(ctx, KMSManager)
    key = manager.create_key(description, tags=key_values(tags, "--tag"))
    if alias:
        key.aliases.append(manager.create_alias(alias, key.key_id))
    emit(ctx, [key.to_row()])


@kms.command("delete")
@click.argument("key_id")
@click.option("--window", type=int, default=7, show_default=True, help="Pending window in days (7-30)")
@add_mutation_options
@click.pass_context
@destructive_operation(
    lambda key_id="", window=7, **kwargs: f"Schedule deletion of {key_id} in {window} days?"
)
def kms_delete(ctx, key_id, window, dry_run, force):
    """Schedule a key for deletion"""
    check_kms_key_id(key_id)
    manager = get_manager(ctx, KMSManager)
    if dry_run:
        key = manager.describe_key(key_id)
        click.echo(f"[DRY RUN] Would schedule deletion of {key.key_id} ({key.state}) in {window} days", err=True)
        return
    if manager.schedule_key_deletion(key_id, window):
        click.echo(f"Scheduled deletion of {key_id} in {window} days")
    else:
        click.echo(f"Key {key_id} is already pending deletion")


@kms.command("encrypt")
@click.argument("key_id")
@click.argument("plaintext")
@click.pass_context
@read_operation()
def kms_encrypt(ctx, key_id, plaintext):
    """Encrypt PLAINTEXT, printing base64 ciphertext"""
    check_kms_key_id(key_id)
    ciphertext = get_manager(ctx, KMSManager).encrypt(key_id, plaintext.encode("utf-8"))
    click.echo(base64.b64encode(ciphertext).decode("ascii"))


@kms.command("decrypt")
@click.argument("ciphertext")
@click.option("--key-id", help="Key expected to have produced the ciphertext")
@click.pass_context
@read_operation()
def kms_decrypt(ctx, ciphertext, key_id):
    """Decrypt base64 CIPHERTEXT"""
    try:
        blob = base64.b64decode(ciphertext, validate=True)
    except binascii.Error as e:
        raise CLIError(f"Ciphertext is not valid base64: {e}")
    check_kms_key_id(key_id)
    plaintext = get_manager(ctx, KMSManager).decrypt(blob, key_id)
    click.echo(plaintext.decode("utf-8", errors="replace"))


# ---------------------------------------------------------------- CloudFormation

@cli.group()
def cfn():
    """CloudFormation stacks"""


@cfn.command("list")
@click.option("--status", "statuses", multiple=True, help="Stack status filter (repeatable)")
@add_report_option
@click.pass_context
@read_operation()
def cfn_list(ctx, statuses, report):
    """List stacks (deleted stacks excluded by default)"""
    stacks = get_manager(ctx, CloudFormationManager).list_stacks(list(statuses) or None)
    rows = [stack.to_row() for stack in stacks]
    emit(ctx, rows)
    write_report(ctx, report, "cfn_stacks", rows)


@cfn.command("describe")
@click.argument("name")
@click.pass_context
@read_operation()
def cfn_describe(ctx, name):
    """Describe a stack and its outputs"""
    stack = get_manager(ctx, CloudFormationManager).describe_stack(name)
    if stack is None:
        raise CLIError(f"Stack {name} does not exist")
    emit(ctx, [stack.to_row()])
    if stack.outputs:
        emit(ctx, [{"output": k, "value": v} for k, v in stack.outputs.items()])
    if stack.tags:
        click.echo(f"Tags: {format_tags(stack.tags)}", err=True)


@cfn.command("create")
@click.argument("name")
@click.option("--template", "template_file", required=True, type=click.File("r"), help="Template file")
@click.option("--param", "params", multiple=True, help="KEY=VALUE stack parameter (repeatable)")
@click.option("--capability", "capabilities", multiple=True, help="e.g. CAPABILITY_NAMED_IAM (repeatable)")
@click.option("--tag", "tags", multiple=True, help="KEY=VALUE stack tag (repeatable)")
@add_wait_options
@click.pass_context
@mutating_operation()
def cfn_create(ctx, name, template_file, params, capabilities, tags, wait, timeout, interval):
    """Create a stack from a template file"""
    if not ValidationRules.validate_stack_name(name):
        raise CLIError(f"Invalid stack name: {name}")

    manager = get_manager(ctx, CloudFormationManager)
    stack_id = manager.create_stack(
        name,
        template_file.read(),
        parameters=key_values(params, "--param"),
        capabilities=list(capabilities),
        tags=key_values(tags, "--tag"),
    )
    click.echo(f"Created stack {name}: {stack_id}", err=wait)
    if wait:
        stack = manager.poll_stack(name, "CREATE_COMPLETE", **polling(ctx, "cloudformation", timeout, interval))
        emit(ctx, [stack.to_row()])


@cfn.command("delete")
@click.argument("name")
@add_wait_options
@add_mutation_options
@click.pass_context
@destructive_operation(lambda name="", **kwargs: f"Delete stack {name}?")
def cfn_delete(ctx, name, wait, timeout, interval, dry_run, force):
    """Delete a stack"""
    manager = get_manager(ctx, CloudFormationManager)
    if dry_run:
        stack = manager.describe_stack(name)
        state = stack.status if stack else "does not exist"
        click.echo(f"[DRY RUN] Would delete stack {name} ({state})", err=True)
        return
    manager.delete_stack(name)
    click.echo(f"Deleting stack {name}", err=wait)
    if wait:
        manager.poll_stack(name, "DELETE_COMPLETE", **polling(ctx, "cloudformation", timeout, interval))
        click.echo(f"Deleted stack {name}")


# ---------------------------------------------------------------- SSM

@cli.group()
def ssm():
    """SSM parameters and remote commands"""


@ssm.command("get")
@click.argument("name")
@click.option("--no-decrypt", is_flag=True, help="Do not decrypt SecureString values")
@click.pass_context
@read_operation()
def ssm_get(ctx, name, no_decrypt):
    """Print a parameter value"""
    parameter = get_manager(ctx, SSMManager).get_parameter(name, with_decryption=not no_decrypt)
    if parameter is None:
        raise CLIError(f"Parameter {name} not found")
    click.echo(parameter.value)


@ssm.command("put")
@click.argument("name")
@click.argument("value")
@click.option(
    "--type",
    "parameter_type",
    type=click.Choice(["String", "StringList", "SecureString"]),
    default="String",
    show_default=True,
)
@click.option("--description", help="Parameter description")
@click.option("--no-overwrite", is_flag=True, help="Fail if the parameter exists")
@click.pass_context
@mutating_operation()
def ssm_put(ctx, name, value, parameter_type, description, no_overwrite):
    """Create or update a parameter"""
    if not ValidationRules.validate_parameter_name(name):
        raise CLIError(f"Invalid parameter name: {name}")
    version = get_manager(ctx, SSMManager).put_parameter(
        name, value, parameter_type, overwrite=not no_overwrite, description=description
    )
    click.echo(f"Parameter {name} is at version {version}")


@ssm.command("delete")
@click.argument("name")
@add_mutation_options
@click.pass_context
@destructive_operation(lambda name="", **kwargs: f"Delete parameter {name}?")
def ssm_delete(ctx, name, dry_run, force):
    """Delete a parameter"""
    if dry_run:
        click.echo(f"[DRY RUN] Would delete parameter {name}", err=True)
        return
    if get_manager(ctx, SSMManager).delete_parameter(name):
        click.echo(f"Deleted parameter {name}")
    else:
        click.echo(f"Parameter {name} not found")


@ssm.command("list")
@click.option("--path", default="/", show_default=True, help="Parameter path")
@add_report_option
@click.pass_context
@read_operation()
def ssm_list(ctx, path, report):
    """List parameters under a path"""
    rows = [p.to_row() for p in get_manager(ctx, SSMManager).list_parameters(path)]
    emit(ctx, rows, ["name", "type", "version", "last_modified"])
    write_report(ctx, report, "ssm_parameters", rows)


@ssm.command("run")
@click.argument("instance_id")
@click.argument("commands", nargs=-1, required=True)
@click.option("--document", default="AWS-RunShellScript", show_default=True, help="SSM document name")
@click.option("--timeout", type=float, help="Seconds to wait (default from settings)")
@click.option("--interval", type=float, help="Seconds between polls (default from settings)")
@click.pass_context
@mutating_operation()
def ssm_run(ctx, instance_id, commands, document, timeout, interval):
    """Run shell COMMANDS on an instance and print their output"""
    check_instance_ids([instance_id])
    manager = get_manager(ctx, SSMManager)
    command_id = manager.send_command([instance_id], list(commands), document)
    invocation = manager.poll_command(
        command_id, instance_id, CommandStatus.SUCCESS, **polling(ctx, "ssm", timeout, interval)
    )
    if invocation.stdout:
        click.echo(invocation.stdout.rstrip("\n"))
    if invocation.stderr:
        click.echo(invocation.stderr.rstrip("\n"), err=True)
    click.echo(f"Command {command_id} on {instance_id}: {invocation.status.value}", err=True)


# ---------------------------------------------------------------- Auto Scaling

@cli.group()
def asg():
    """EC2 Auto Scaling groups"""


@asg.command("list")
@click.argument("names", nargs=-1)
@click.pass_context
@read_operation()
def asg_list(ctx, names):
    """List Auto Scaling groups"""
    groups = get_manager(ctx, AutoScalingManager).describe_groups(list(names) or None)
    emit(ctx, [group.to_row() for group in groups])


@asg.command("set-health")
@click.argument("instance_id")
@click.option("--status", required=True, type=click.Choice(["Healthy", "Unhealthy"]))
@add_mutation_options
@click.pass_context
@destructive_operation(
    lambda instance_id="", status="", **kwargs: f"Mark {instance_id} as {status}?"
)
def asg_set_health(ctx, instance_id, status, dry_run, force):
    """Set the health status of an Auto Scaling instance"""
    check_instance_ids([instance_id])
    if dry_run:
        click.echo(f"[DRY RUN] Would mark {instance_id} as {status}", err=True)
        return
    get_manager(ctx, AutoScalingManager).set_instance_health(instance_id, status)
    click.echo(f"Marked {instance_id} as {status}")


if __name__ == "__main__":
    cli()
