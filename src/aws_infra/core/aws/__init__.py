"""AWS core modules."""

from .autoscaling import AutoScalingManager, create_autoscaling_manager
from .cloudformation import CloudFormationManager, create_cloudformation_manager
from .ec2 import EC2Manager, create_ec2_manager
from .kms import KMSManager, create_kms_manager
from .s3 import S3Manager, create_s3_manager, parse_s3_uri
from .ssm import SSMManager, create_ssm_manager
from .sts import STSManager, create_sts_manager

__all__ = [
    "AutoScalingManager",
    "create_autoscaling_manager",
    "CloudFormationManager",
    "create_cloudformation_manager",
    "EC2Manager",
    "create_ec2_manager",
    "KMSManager",
    "create_kms_manager",
    "S3Manager",
    "create_s3_manager",
    "parse_s3_uri",
    "SSMManager",
    "create_ssm_manager",
    "STSManager",
    "create_sts_manager",
]
