from enum import Enum


class Environment(str, Enum):
    """Environment profiles."""

    LOCAL = "local"
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class WatchEventType(str, Enum):
    """Event types emitted by the Kubernetes watch API."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    BOOKMARK = "BOOKMARK"
    ERROR = "ERROR"


# Environment variables injected into every task container, in this order
ENV_HANDLER = "LAMBDA_HANDLER"
ENV_TASK_NAME = "LAMBDA_TASK_NAME"
ENV_REQUEST_ID = "LAMBDA_REQUEST_ID"
ENV_KWARGS = "LAMBDA_KWARGS"

# Job labels
LABEL_APP = "app"
LABEL_APP_VALUE = "lambda-task"
LABEL_TASK = "task"
LABEL_REQUEST_ID = "request-id"

# Job policy
TASK_CONTAINER_NAME = "task"
JOB_RESTART_POLICY = "Never"
JOB_BACKOFF_LIMIT = 0
JOB_TTL_SECONDS_AFTER_FINISHED = 3600

# Task defaults
DEFAULT_IMAGE_PULL_POLICY = "IfNotPresent"
DEFAULT_HANDLER = "handler"
DEFAULT_TIMEOUT_SECONDS = 300

# Reconciliation
RECONCILE_REQUEUE_SECONDS = 300
ERROR_REQUEUE_SECONDS = 60
