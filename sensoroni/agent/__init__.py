from .jobmgr import JobManager, JobProcessor

__all__ = ["JobManager", "JobProcessor"]
