"""Core AWS infrastructure module: service managers, models and output processors."""

from .aws import (
    AutoScalingManager,
    CloudFormationManager,
    EC2Manager,
    KMSManager,
    S3Manager,
    SSMManager,
    STSManager,
)
from .models import (
    AutoScalingGroupInfo,
    BucketInfo,
    CommandInvocation,
    CommandStatus,
    DataKey,
    Identity,
    InstanceInfo,
    InstanceState,
    KeyInfo,
    ObjectInfo,
    ParameterInfo,
    StackInfo,
    SyncResult,
    VolumeInfo,
)
from .processors import CSVReportGenerator, format_bytes, format_output, render_table

__all__ = [
    # AWS Managers
    "AutoScalingManager",
    "CloudFormationManager",
    "EC2Manager",
    "KMSManager",
    "S3Manager",
    "SSMManager",
    "STSManager",
    # Models
    "AutoScalingGroupInfo",
    "BucketInfo",
    "CommandInvocation",
    "DataKey",
    "Identity",
    "InstanceInfo",
    "KeyInfo",
    "ObjectInfo",
    "ParameterInfo",
    "StackInfo",
    "SyncResult",
    "VolumeInfo",
    # Enums
    "CommandStatus",
    "InstanceState",
    # Processors
    "CSVReportGenerator",
    "format_bytes",
    "format_output",
    "render_table",
]
