#!/usr/bin/env python3
"""
Outcome sweep scheduler.

Enqueues the sweep job onto the RQ queue every OUTCOME_SWEEP_INTERVAL_MIN
minutes; when the queue is not reachable the sweep runs in this process.
"""
import sys

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from helpdesk.observability.logging import log
from helpdesk.queue.jobs import run_outcome_sweep_job
from helpdesk.queue.rq_conn import get_reachable_queue
from helpdesk.settings import settings


def trigger_sweep():
    q = get_reachable_queue()
    if q is not None:
        job = q.enqueue(run_outcome_sweep_job, job_timeout=settings.INBOUND_JOB_TIMEOUT_SEC * 5)
        log(event="outcome_sweep_enqueued", jobId=job.id)
        return
    try:
        run_outcome_sweep_job()
    except Exception as e:
        # Next tick retries; the scheduler itself must keep running
        log(event="outcome_sweep_tick_failed", errorType=type(e).__name__, error=str(e)[:300])


def main() -> int:
    scheduler = BlockingScheduler()
    scheduler.add_job(
        trigger_sweep,
        trigger=IntervalTrigger(minutes=settings.OUTCOME_SWEEP_INTERVAL_MIN),
        id="outcome_sweep",
        name="Outcome follow-up sweep",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    log(event="scheduler_start", intervalMin=settings.OUTCOME_SWEEP_INTERVAL_MIN)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        log(event="scheduler_stop")
    return 0


if __name__ == "__main__":
    sys.exit(main())
