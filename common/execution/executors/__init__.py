"""
Job executors.
"""

from common.execution.executors.base import JobExecutor
from common.execution.executors.k8s import K8sJobExecutor

__all__ = ["JobExecutor", "K8sJobExecutor"]
