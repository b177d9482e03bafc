# services/job_engine.py

"""
Job engine - runs batch tracking jobs and drives their lifecycle.

Each submitted file gets its own asyncio task. Rows of one job are tracked
strictly one after another; different jobs run concurrently. Pause, resume
and cancel are cooperative and only take effect between rows.
"""

import asyncio
import functools
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from awb_tracker.core.config import Settings, clamp_delay, settings
from awb_tracker.core.errors import InvalidJobActionError, JobNotFoundError
from awb_tracker.models.events import (
    CompleteEvent,
    JobEvent,
    LogEvent,
    LogLevel,
    ProgressEvent,
    ResultEvent
)
from awb_tracker.models.job import ACTION_SOURCES, ACTION_TARGETS, Job, JobAction, JobState
from awb_tracker.models.tracking import TrackRecord, TrackResult, TrackResultCreate
from awb_tracker.services.broadcaster import EventBroadcaster
from awb_tracker.services.identifier import split_mawb
from awb_tracker.services.job_control import JobControl
from awb_tracker.services.job_store import JobStore
from awb_tracker.services.row_source import RowSource

logger = logging.getLogger(__name__)

Lookup = Callable[[str, str], Awaitable[TrackRecord]]


class JobEngine:
    def __init__(
            self,
            store: JobStore,
            broadcaster: EventBroadcaster,
            lookup: Lookup,
            config: Settings = settings
    ):
        self.store = store
        self.broadcaster = broadcaster
        self._lookup = lookup
        self._config = config
        self._controls: Dict[int, JobControl] = {}
        self._tasks: Dict[int, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def submit(self, filename: str, content: bytes, delay_ms: Optional[int] = None) -> Job:
        """Create a job and start tracking it in the background"""
        delay = clamp_delay(delay_ms, self._config)
        job = await self.store.create_job(filename)

        control = JobControl()
        self._controls[job.id] = control
        task = asyncio.create_task(
            self._run(job.id, filename, content, delay / 1000, control),
            name=f"awb-job-{job.id}"
        )
        self._tasks[job.id] = task
        task.add_done_callback(functools.partial(self._forget, job.id))

        logger.info(f"Job {job.id} submitted: '{filename}', delay={delay}ms")
        return job

    async def control(self, job_id: int, action: JobAction) -> Job:
        """Apply pause/resume/cancel; nothing changes if the action is rejected"""
        action = JobAction(action)
        job = await self.store.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)

        allowed = ACTION_SOURCES[action]
        if job.status not in allowed:
            raise InvalidJobActionError(
                f"Cannot {action.value} job {job_id} while it is {job.status.value}"
            )

        # The store re-checks atomically in case the worker moved the job meanwhile
        try:
            updated = await self.store.transition(job_id, ACTION_TARGETS[action], allowed_from=allowed)
        except InvalidJobActionError:
            current = await self.store.get_job(job_id)
            state = current.status.value if current else "gone"
            raise InvalidJobActionError(
                f"Cannot {action.value} job {job_id} while it is {state}"
            )

        control = self._controls.get(job_id)
        if control is not None:
            if action == JobAction.PAUSE:
                control.pause()
            elif action == JobAction.RESUME:
                control.resume()
            else:
                control.cancel()

        logger.info(f"Job {job_id}: {action.value} applied, status now {updated.status.value}")
        self._log(job_id, f"Job {updated.status.value} by user", LogLevel.INFO)
        return updated

    async def get_job(self, job_id: int) -> Job:
        job = await self.store.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def list_jobs(self) -> List[Job]:
        return await self.store.list_jobs()

    async def get_results(self, job_id: int) -> List[TrackResult]:
        return await self.store.get_results(job_id)

    def is_running(self, job_id: int) -> bool:
        task = self._tasks.get(job_id)
        return task is not None and not task.done()

    async def wait(self, job_id: int, timeout: Optional[float] = None) -> Job:
        """Wait for a job's worker to finish and return the final snapshot"""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
        return await self.get_job(job_id)

    async def shutdown(self) -> None:
        """Stop every running worker; their jobs are marked failed"""
        tasks = [task for task in self._tasks.values() if not task.done()]
        if not tasks:
            return
        logger.info(f"Stopping {len(tasks)} running job(s)")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # worker
    # ------------------------------------------------------------------
    def _forget(self, job_id: int, task: asyncio.Task) -> None:
        self._tasks.pop(job_id, None)
        self._controls.pop(job_id, None)

    def _publish(self, event: JobEvent) -> None:
        try:
            self.broadcaster.publish(event)
        except Exception as e:
            logger.debug(f"Broadcast of {event.type} for job {event.job_id} failed: {e}")

    def _log(self, job_id: int, message: str, level: LogLevel = LogLevel.INFO) -> None:
        self._publish(LogEvent(job_id=job_id, message=message, level=level))

    async def _run(
            self,
            job_id: int,
            filename: str,
            content: bytes,
            delay_seconds: float,
            control: JobControl
    ) -> None:
        try:
            try:
                await self.store.transition(job_id, JobState.PROCESSING, allowed_from={JobState.PENDING})
            except InvalidJobActionError:
                if control.cancelled:
                    logger.info(f"Job {job_id} cancelled before it started")
                    self._publish(CompleteEvent(
                        job_id=job_id,
                        message="Tracking cancelled. Processed 0 records."
                    ))
                    return
                raise

            self._log(job_id, f"Reading {filename}", LogLevel.INFO)
            source = await asyncio.to_thread(
                RowSource.from_upload, filename, content, self._config.identifier_column_hint
            )
            await self.store.set_total(job_id, source.total)
            self._log(
                job_id,
                f"Found {source.total} rows, MAWB column '{source.identifier_column}'",
                LogLevel.INFO
            )

            processed = await self._process_rows(job_id, source, delay_seconds, control)
            # A pause can land while the file is parsed or after the last row
            await control.checkpoint()
            await self._finish(job_id, processed, source.total, control)

        except asyncio.CancelledError:
            await self._fail(job_id, "Worker stopped before the job finished")
            raise
        except Exception as e:
            logger.error(f"Job {job_id} failed: {e}", exc_info=True)
            await self._fail(job_id, str(e))

    async def _process_rows(
            self,
            job_id: int,
            source: RowSource,
            delay_seconds: float,
            control: JobControl
    ) -> int:
        total = source.total
        processed = 0

        for row_number, row in enumerate(source, start=1):
            if not await control.checkpoint():
                break

            await self._process_row(job_id, row_number, source.identifier(row), control)

            processed = row_number
            await self.store.update_progress(job_id, processed)
            if not control.cancelled:
                self._publish(ProgressEvent(job_id=job_id, current=processed, total=total))

            if not await control.checkpoint():
                break
            if row_number < total:
                await control.pace(delay_seconds)

        return processed

    async def _process_row(self, job_id: int, row_number: int, mawb: str, control: JobControl) -> None:
        parts = split_mawb(mawb)
        if not parts.is_valid:
            self._log(job_id, f"[Row {row_number}] Skipping invalid MAWB: {mawb}", LogLevel.WARN)
            return

        self._log(
            job_id,
            f"[Row {row_number}] Tracking MAWB: {mawb} (prefix: {parts.prefix}, awbno: {parts.awb_no})",
            LogLevel.INFO
        )

        try:
            record = await self._lookup(parts.prefix, parts.awb_no)
        except Exception as e:
            logger.warning(f"Job {job_id} row {row_number}: lookup for {mawb} failed: {e}")
            self._log(job_id, f"[Row {row_number}] Error tracking {mawb}: {e}", LogLevel.ERROR)
            return

        fields = record.model_dump() if record is not None else {}
        result = await self.store.add_result(
            job_id,
            TrackResultCreate(mawb=mawb, prefix=parts.prefix, awb_no=parts.awb_no, **fields)
        )

        self._log(job_id, f"[Row {row_number}] Success: {mawb}", LogLevel.SUCCESS)
        if not control.cancelled:
            self._publish(ResultEvent(job_id=job_id, data=result))

    async def _finish(self, job_id: int, processed: int, total: int, control: JobControl) -> None:
        while not control.cancelled:
            try:
                await self.store.transition(job_id, JobState.COMPLETED, allowed_from={JobState.PROCESSING})
            except InvalidJobActionError:
                job = await self.get_job(job_id)
                if job.status == JobState.PAUSED:
                    await control.checkpoint()
                    await asyncio.sleep(0)
                    continue
                if job.status != JobState.CANCELLED:
                    raise
                break
            else:
                logger.info(f"Job {job_id} completed: {processed}/{total} rows")
                self._publish(CompleteEvent(
                    job_id=job_id,
                    message=f"Tracking completed. Processed {processed} records."
                ))
                return

        logger.info(f"Job {job_id} cancelled after {processed}/{total} rows")
        self._publish(CompleteEvent(
            job_id=job_id,
            message=f"Tracking cancelled. Processed {processed} of {total} records."
        ))

    async def _fail(self, job_id: int, reason: str) -> None:
        try:
            await self.store.transition(job_id, JobState.FAILED)
        except InvalidJobActionError:
            logger.info(f"Job {job_id} already finished, not marking failed: {reason}")
            return
        except Exception as e:
            logger.error(f"Job {job_id}: could not record failure: {e}", exc_info=True)
        self._log(job_id, f"Job failed: {reason}", LogLevel.ERROR)
