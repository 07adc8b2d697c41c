# ============================================================================
# sensoroni/analyze/__init__.py
# Analyze Package - fan a job out to subprocess analyzers
# ============================================================================
#
# MODULES IN THIS PACKAGE:
# - registry.py: discovers analyzers on disk, installs their dependencies
# - installer.py: runs the dependency installer for one analyzer
# - gate.py: decides whether a job should be analyzed
# - executor.py: bounded parallel execution with per-analyzer timeouts
# - synthesizer.py: raw analyzer output -> capped summary
# - aggregator.py: appends results to the job, decides stage success
# - processor.py: the job processor the host registers
#
# WORKFLOW:
# Catalog built once → gate → executor → synthesizer → aggregator
#
# ============================================================================

from .models import AnalyzerCatalog, AnalyzerDefinition, AnalyzerTask, ExecutionOutcome
from .gate import ANALYZE_JOB_KIND, is_eligible
from .synthesizer import INTERNAL_FAILURE, synthesize
from .processor import AnalyzeProcessor

__all__ = [
    "ANALYZE_JOB_KIND",
    "INTERNAL_FAILURE",
    "AnalyzeProcessor",
    "AnalyzerCatalog",
    "AnalyzerDefinition",
    "AnalyzerTask",
    "ExecutionOutcome",
    "is_eligible",
    "synthesize",
]
