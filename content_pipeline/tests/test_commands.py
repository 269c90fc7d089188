"""
Tests for the content pipeline management commands.
"""

from io import StringIO
from unittest.mock import AsyncMock, MagicMock, patch

from django.core.management import call_command
from django.test import TestCase

from content_pipeline.models import PipelineJob, PipelineJobStatus


class ListSkillsCommandTests(TestCase):
    def test_lists_bundled_skills(self):
        out = StringIO()

        call_command("list_skills", stdout=out)

        output = out.getvalue()
        self.assertIn("extract-product-specs", output)
        self.assertIn("generate-review", output)


class RunPipelineWorkerCommandTests(TestCase):
    def patch_worker(self, job):
        worker = MagicMock()
        worker.run_once = AsyncMock(return_value=job)
        return patch(
            "content_pipeline.management.commands.run_pipeline_worker.PipelineWorker",
            return_value=worker,
        )

    def test_once_without_jobs(self):
        out = StringIO()

        with self.patch_worker(None):
            call_command("run_pipeline_worker", "--once", stdout=out)

        self.assertIn("No pending jobs", out.getvalue())

    def test_once_reports_job_status(self):
        job = PipelineJob.objects.create(category="노트북", status=PipelineJobStatus.DONE, in_flight=None)
        out = StringIO()

        with self.patch_worker(job):
            call_command("run_pipeline_worker", "--once", stdout=out)

        self.assertIn(f"Job {job.id} finished: done", out.getvalue())
