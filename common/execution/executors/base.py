"""
Base executor interface.

Defines the submission interface for Job execution.
"""

from abc import ABC, abstractmethod

from common.execution.job_spec import JobSpec


class JobExecutor(ABC):
    """Abstract base class for job executors."""

    @abstractmethod
    def submit(self, job_spec: JobSpec) -> str:
        """
        Submit a job based on specification.

        Submission is one-way: the executor does not wait for, poll or
        cancel the job it created.

        Args:
            job_spec: Job specification with name, image, env vars, etc.

        Returns:
            Name of the created job
        """
        pass
