"""Simple data models for AWS resources."""

from .autoscaling import AutoScalingGroupInfo
from .cloudformation import FAILED_STACK_STATUSES, StackInfo
from .ec2 import InstanceInfo, InstanceState, VolumeInfo
from .identity import Identity
from .kms import DataKey, KeyInfo
from .s3 import BucketInfo, ObjectInfo, SyncResult, total_size
from .ssm import CommandInvocation, CommandStatus, ParameterInfo
from .tags import dict_to_tags, parse_key_values, tags_to_dict

__all__ = [
    # EC2 models
    "InstanceInfo",
    "InstanceState",
    "VolumeInfo",
    # S3 models
    "BucketInfo",
    "ObjectInfo",
    "SyncResult",
    "total_size",
    # KMS models
    "KeyInfo",
    "DataKey",
    # CloudFormation models
    "StackInfo",
    "FAILED_STACK_STATUSES",
    # SSM models
    "ParameterInfo",
    "CommandInvocation",
    "CommandStatus",
    # STS / Auto Scaling
    "Identity",
    "AutoScalingGroupInfo",
    # Tag helpers
    "tags_to_dict",
    "dict_to_tags",
    "parse_key_values",
]
