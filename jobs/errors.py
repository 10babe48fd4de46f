from __future__ import annotations


class JobError(RuntimeError):
    """Base class for job lifecycle errors."""


class LaunchFailure(JobError):
    """
    The remote start call failed. No job was registered, so there is no id
    to query later.
    """

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(f"Error starting {kind} job: {message}")
        self.kind = kind


class TransientPollError(JobError):
    """
    The remote probe call itself raised (network blip, 5xx, timeout).
    The job's stored state was not touched; polling may simply retry.
    """

    def __init__(self, job_id: str, message: str) -> None:
        super().__init__(f"Failed to check job {job_id}: {message}")
        self.job_id = job_id


class DownloadFailure(JobError):
    """
    Fetching or saving the artifact of a completed job failed.
    The remote computation still succeeded; callers report this as a warning.
    """

    def __init__(self, job_id: str, message: str) -> None:
        super().__init__(f"Failed to save artifact for job {job_id}: {message}")
        self.job_id = job_id
