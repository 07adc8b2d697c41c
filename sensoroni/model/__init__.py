from .job import Job, JobFilter, JobResult

__all__ = ["Job", "JobFilter", "JobResult"]
