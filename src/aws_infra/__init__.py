"""AWS Infra - thin CLI and manager layer over the AWS SDK."""

__version__ = "0.1.0"
