"""
sensoroni/analyze/executor.py

Bounded parallel execution of analyzer processes.

Every enabled analyzer becomes an AnalyzerTask. Tasks run concurrently
through a semaphore-bounded pool: at most `parallel_limit` processes are
alive at once, the rest wait for a slot. Each task owns its deadline; when it
expires only that process is killed, and whatever stdout it had written is
kept on the outcome. Outcomes are collected in completion order at a single
point, so nothing shared is mutated while tasks run.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Iterable, List, Mapping

from sensoroni.analyze.models import AnalyzerCatalog, AnalyzerDefinition, AnalyzerTask, ExecutionOutcome
from sensoroni.base.config import AnalyzeConfig
from sensoroni.errors import ErrorCode, SensoroniError, handle_error

logger = logging.getLogger(__name__)

# Grace period for stdout/stderr readers after the process has exited
DRAIN_TIMEOUT_SECONDS = 2.0
EXIT_POLL_SECONDS = 0.05
READ_CHUNK_SIZE = 64 * 1024


def encode_parameters(parameters: Mapping[str, Any]) -> str:
    return json.dumps(dict(parameters), sort_keys=True, default=str)


def build_task(definition: AnalyzerDefinition, parameters: Mapping[str, Any], config: AnalyzeConfig) -> AnalyzerTask:
    env = dict(os.environ)
    python_path = [str(definition.site_packages_path)]
    if env.get("PYTHONPATH"):
        python_path.append(env["PYTHONPATH"])
    env["PYTHONPATH"] = os.pathsep.join(python_path)

    return AnalyzerTask(
        analyzer_id=definition.id,
        command=tuple(definition.run_command),
        input=encode_parameters(parameters),
        timeout=config.timeout_seconds,
        cwd=config.analyzers_path,
        env=env,
    )


def build_tasks(catalog: AnalyzerCatalog, parameters: Mapping[str, Any], config: AnalyzeConfig) -> List[AnalyzerTask]:
    """One task per enabled analyzer, in catalog order."""
    return [build_task(d, parameters, config) for d in catalog.enabled()]


async def _read_stream(stream: asyncio.StreamReader, buffer: bytearray) -> None:
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)


async def _wait_exit(proc: asyncio.subprocess.Process) -> int:
    # proc.wait() also waits for the pipes to close, which a leftover child
    # holding stdout can delay indefinitely.
    while proc.returncode is None:
        await asyncio.sleep(EXIT_POLL_SECONDS)
    return proc.returncode


def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        if proc.returncode is None:
            proc.kill()
    except ProcessLookupError:
        pass


class BoundedExecutor:
    """
    Runs analyzer tasks with at most `parallel_limit` alive at once.
    A fresh semaphore is created per run so the executor can be reused across
    event loops (one loop per job).
    """

    def __init__(self, parallel_limit: int):
        if parallel_limit < 1:
            raise ValueError("parallel_limit must be at least 1")
        self.parallel_limit = parallel_limit

    async def run(self, tasks: Iterable[AnalyzerTask]) -> List[ExecutionOutcome]:
        tasks = list(tasks)
        if not tasks:
            return []

        semaphore = asyncio.Semaphore(self.parallel_limit)

        async def bounded(task: AnalyzerTask) -> ExecutionOutcome:
            async with semaphore:
                try:
                    return await self.execute(task)
                except Exception as exc:
                    error = handle_error(exc, f"analyzer {task.analyzer_id}")
                    logger.error(f"[executor] {task.analyzer_id}: unexpected error: {error}")
                    return ExecutionOutcome(analyzer_id=task.analyzer_id, error=error)

        logger.info(f"[executor] dispatching {len(tasks)} analyzers (limit {self.parallel_limit})")

        outcomes: List[ExecutionOutcome] = []
        for next_done in asyncio.as_completed([bounded(t) for t in tasks]):
            outcomes.append(await next_done)
        return outcomes

    async def execute(self, task: AnalyzerTask) -> ExecutionOutcome:
        """Run one analyzer process to completion or deadline."""
        loop = asyncio.get_running_loop()
        start = loop.time()

        def elapsed_ms() -> float:
            return (loop.time() - start) * 1000.0

        try:
            proc = await asyncio.create_subprocess_exec(
                *task.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=task.cwd,
                env=task.env,
            )
        except OSError as exc:
            error = SensoroniError(
                ErrorCode.ANALYZER_LAUNCH_FAILED,
                f"Unable to launch analyzer {task.analyzer_id}: {exc}",
                details={"command": list(task.command)},
            )
            logger.error(f"[executor] {error}")
            return ExecutionOutcome(analyzer_id=task.analyzer_id, error=error, duration_ms=elapsed_ms())

        stdout = bytearray()
        stderr = bytearray()
        readers = [
            asyncio.create_task(_read_stream(proc.stdout, stdout)),
            asyncio.create_task(_read_stream(proc.stderr, stderr)),
        ]

        error = None
        try:
            try:
                await asyncio.wait_for(_wait_exit(proc), timeout=task.timeout)
            except asyncio.TimeoutError:
                if proc.returncode is None:
                    error = SensoroniError(
                        ErrorCode.ANALYZER_TIMEOUT,
                        f"Analyzer {task.analyzer_id} exceeded {task.timeout}s",
                        details={"timeout_seconds": task.timeout},
                    )
        finally:
            # Never leave a process behind, even if this task is cancelled.
            _kill(proc)
            await self._drain(proc, readers)

        if error is None and proc.returncode != 0:
            error = SensoroniError(
                ErrorCode.ANALYZER_EXEC_FAILED,
                f"Analyzer {task.analyzer_id} exited with code {proc.returncode}",
                details={"returncode": proc.returncode},
            )

        if error is not None:
            tail = bytes(stderr[-500:]).decode("utf-8", errors="replace").strip()
            logger.error(f"[executor] {error}" + (f": {tail}" if tail else ""))
        else:
            logger.debug(f"[executor] {task.analyzer_id} finished in {elapsed_ms():.0f}ms")

        return ExecutionOutcome(
            analyzer_id=task.analyzer_id,
            output=bytes(stdout),
            error=error,
            returncode=proc.returncode,
            duration_ms=elapsed_ms(),
            stderr=bytes(stderr),
        )

    @staticmethod
    async def _drain(proc: asyncio.subprocess.Process, readers: List[asyncio.Task]) -> None:
        # A grandchild may still hold the pipes open after the analyzer exits.
        _, pending = await asyncio.wait(readers, timeout=DRAIN_TIMEOUT_SECONDS)
        for reader in pending:
            reader.cancel()
        await asyncio.gather(*readers, return_exceptions=True)
        if pending:
            # Release the pipes so the transport does not outlive the loop.
            proc._transport.close()
        try:
            await asyncio.wait_for(proc.wait(), timeout=DRAIN_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(f"[executor] pid {proc.pid} transport did not close")


async def run_analyzers_async(
    catalog: AnalyzerCatalog,
    parameters: Mapping[str, Any],
    config: AnalyzeConfig,
) -> List[ExecutionOutcome]:
    tasks = build_tasks(catalog, parameters, config)
    return await BoundedExecutor(config.parallel_limit).run(tasks)


def run_analyzers(
    catalog: AnalyzerCatalog,
    parameters: Mapping[str, Any],
    config: AnalyzeConfig,
) -> List[ExecutionOutcome]:
    """Blocking entry point: returns once every selected analyzer has finished."""
    return asyncio.run(run_analyzers_async(catalog, parameters, config))
