#!/usr/bin/env python3
"""Core constants for AWS infrastructure operations."""

# AWS Service Constants
DEFAULT_AWS_REGION = "us-west-2"
DEFAULT_ROLE_SESSION_NAME = "aws-infra"

# Polling Constants (seconds)
DEFAULT_POLL_TIMEOUT = 600.0
DEFAULT_POLL_INTERVAL = 10.0
FIRST_POLL_WAIT = 1.0

# S3 Constants
S3_DELETE_BATCH_SIZE = 1000

# KMS Constants
KMS_MIN_PENDING_WINDOW_DAYS = 7
KMS_MAX_PENDING_WINDOW_DAYS = 30

# Output Constants
DEFAULT_OUTPUT_FORMAT = "table"
OUTPUT_FORMATS = ("table", "json", "csv")
DEFAULT_TABLE_FORMAT = "github"

# Report Format Constants
REPORT_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
SCAN_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
