# ============================================================================
# sensoroni
# Analyze job processor
# ============================================================================
#
# Fans a single "analyze" job out to a catalog of subprocess analyzers, runs
# them with bounded parallelism and per-analyzer timeouts, and folds their
# output into length-capped summaries attached to the job.
#
# PACKAGES:
# - base/: configuration and logging setup
# - model/: Job, JobFilter and JobResult
# - analyze/: registry, eligibility gate, executor, synthesizer, aggregator
# - agent/: minimal job manager that routes jobs to processors
#
# ============================================================================

__version__ = "0.1.0"
