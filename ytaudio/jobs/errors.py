"""Exceptions raised by the job layer."""


class ConversionError(Exception):
    """Base class for job-layer errors."""


class InvalidInputError(ConversionError):
    """The submitted URL is empty or not a supported video URL."""


class DuplicateJobError(ConversionError):
    """A job with the same id is already in the store."""


class JobNotFoundError(ConversionError):
    """No job with the given id exists."""

    def __init__(self, job_id: str):
        super().__init__("Job not found")
        self.job_id = job_id


class JobNotReadyError(ConversionError):
    """The job exists but has not completed."""

    def __init__(self, job_id: str):
        super().__init__("Conversion not completed yet")
        self.job_id = job_id
