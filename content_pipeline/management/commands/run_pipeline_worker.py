"""
Management command to run the pipeline worker.

Polls for PENDING jobs, runs them one at a time, and enqueues scheduled
runs from the pipeline schedule.

Usage:
    python manage.py run_pipeline_worker          # Run until interrupted
    python manage.py run_pipeline_worker --once   # Single poll, then exit
"""

import asyncio

from django.core.management.base import BaseCommand

from content_pipeline.services.worker import PipelineWorker


class Command(BaseCommand):
    help = "Run the single-process pipeline job worker"

    def add_arguments(self, parser):
        parser.add_argument(
            "--once",
            action="store_true",
            help="Poll once (refresh schedule, run at most one job) and exit",
        )

    def handle(self, *args, **options):
        worker = PipelineWorker()

        if options["once"]:
            job = asyncio.run(worker.run_once())
            if job is None:
                self.stdout.write("No pending jobs")
            else:
                job.refresh_from_db()
                self.stdout.write(self.style.SUCCESS(f"Job {job.id} finished: {job.status}"))
            return

        self.stdout.write(self.style.SUCCESS("Pipeline worker running (Ctrl+C to stop)"))
        try:
            asyncio.run(worker.run_forever())
        except KeyboardInterrupt:
            worker.stop()
            self.stdout.write(self.style.WARNING("Pipeline worker interrupted"))
