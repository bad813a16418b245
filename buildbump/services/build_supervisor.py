"""
Build supervision service for buildbump.

Submits a build to the build-execution system and polls it until it
succeeds, fails or runs out of time:

    SUBMITTED -> POLLING -> SUCCEEDED | FAILED | TIMED_OUT

POLLING is the only non-terminal state after submission. Once a job is
terminal its outcome is recorded and it is never polled again.

The executor is any object with:
    submit_job(source_ref, subdirectory, target_tag) -> handle
    poll_status(handle) -> JobStatus
    fetch_logs(handle) -> str
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..domain.build import BuildOutcome, BuildRequest, JobStatus, SupervisorState
from ..exit_codes import PreconditionError, WaitCancelled

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_TIMEOUT = 300.0


@dataclass
class BuildJob:
    """
    Handle for one supervised build.

    Attributes:
        handle: Opaque handle returned by the executor
        request: The request the job was submitted for
        state: Current supervisor state
        outcome: Terminal outcome once state is terminal
        polls: Number of status polls issued so far
    """
    handle: Any
    request: BuildRequest
    state: SupervisorState = SupervisorState.SUBMITTED
    outcome: Optional[BuildOutcome] = None
    polls: int = 0


class BuildSupervisor:
    """
    Drives build jobs to a terminal outcome with bounded polling.

    Time is injectable so tests can simulate it:

        clock = FakeClock()
        supervisor = BuildSupervisor(executor, poll_interval=5,
                                     clock=clock.now, sleep=clock.sleep)

    Example:
        supervisor = BuildSupervisor(KubernetesJobClient(...))
        job = supervisor.submit(request)
        outcome = supervisor.wait(job, timeout=300)
    """

    def __init__(
        self,
        executor,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Initialize BuildSupervisor.

        Args:
            executor: Build-execution collaborator
            poll_interval: Seconds between status polls
            timeout: Default seconds to wait for a terminal state
            clock: Monotonic time source
            sleep: Sleep function; when None, time.sleep (or the cancel
                event's wait, when one is given to wait())
        """
        if poll_interval <= 0:
            raise PreconditionError('poll_interval', poll_interval, "must be positive")
        if timeout < 0:
            raise PreconditionError('timeout', timeout, "must not be negative")
        self.executor = executor
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep

    def submit(self, request: BuildRequest) -> BuildJob:
        """
        Hand the build to the executor. Returns without waiting.

        Raises:
            Whatever the executor raises on rejection (e.g., BuildSubmissionError)
        """
        if request.job_id:
            handle = self.executor.submit_job(
                request.source_ref, request.subdirectory, request.target_tag,
                job_id=request.job_id,
            )
        else:
            handle = self.executor.submit_job(
                request.source_ref, request.subdirectory, request.target_tag,
            )
        logger.info(f"Submitted build {handle} for {request.subdirectory} at {request.target_tag}")
        return BuildJob(handle=handle, request=request)

    def wait(
        self,
        job: BuildJob,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> BuildOutcome:
        """
        Poll a job until it reaches a terminal state or the timeout elapses.

        The first poll happens immediately. The underlying job is never
        cancelled, not on timeout and not when the wait is abandoned.

        Args:
            job: Job returned by submit()
            timeout: Seconds to wait (default: the supervisor's timeout)
            cancel_event: Setting this event abandons the wait

        Returns:
            BuildOutcome.SUCCEEDED, BuildOutcome.failed(logs) or BuildOutcome.TIMED_OUT

        Raises:
            WaitCancelled: If cancel_event was set before a terminal state;
                the job stays in POLLING and may be waited on again
        """
        if job.state.is_terminal:
            return job.outcome

        timeout = self.timeout if timeout is None else timeout
        if timeout < 0:
            raise PreconditionError('timeout', timeout, "must not be negative")

        self._check_cancelled(job, cancel_event)
        job.state = SupervisorState.POLLING
        deadline = self._clock() + timeout

        while True:
            status = self.executor.poll_status(job.handle)
            job.polls += 1
            logger.debug(f"Build {job.handle} poll {job.polls}: {status.value}")

            if status is JobStatus.SUCCEEDED:
                return self._finish(job, SupervisorState.SUCCEEDED, BuildOutcome.SUCCEEDED)

            if status is JobStatus.FAILED:
                logs = self._collect_logs(job)
                return self._finish(job, SupervisorState.FAILED, BuildOutcome.failed(logs))

            remaining = deadline - self._clock()
            if remaining <= 0:
                logger.warning(f"Build {job.handle} still pending after {timeout}s; leaving it running")
                return self._finish(job, SupervisorState.TIMED_OUT, BuildOutcome.TIMED_OUT)

            self._pause(min(self.poll_interval, remaining), cancel_event)
            self._check_cancelled(job, cancel_event)

    def run(self, request: BuildRequest, timeout: Optional[float] = None) -> BuildOutcome:
        """Submit a build and wait for its outcome."""
        return self.wait(self.submit(request), timeout=timeout)

    def _pause(self, delay: float, cancel_event: Optional[threading.Event]) -> None:
        if self._sleep is None and cancel_event is not None:
            cancel_event.wait(delay)
        else:
            (self._sleep or time.sleep)(delay)

    def _collect_logs(self, job: BuildJob) -> str:
        try:
            return self.executor.fetch_logs(job.handle)
        except Exception as e:
            logger.warning(f"Could not fetch logs for failed build {job.handle}: {e}")
            return f"(logs unavailable: {e})"

    def _check_cancelled(self, job: BuildJob, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Stopped waiting for build {job.handle}; the job keeps running")
            raise WaitCancelled(f"Wait for build {job.handle} cancelled")

    def _finish(self, job: BuildJob, state: SupervisorState, outcome: BuildOutcome) -> BuildOutcome:
        job.state = state
        job.outcome = outcome
        logger.info(f"Build {job.handle} {state.value}")
        return outcome
