"""
Django models for the affiliate content pipeline.

Models: Product, CrawlHistory, WebReviewReference, ProductReview,
        PipelineJob, PipelineLog, PipelineSchedule

Products are keyed by a deterministic slug derived from maker + model and
are upserted on every re-crawl. Crawl history, web review references,
generated reviews and job logs are append-only.
"""

import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from content_pipeline.exceptions import InvalidJobTransition


class Sentiment(models.TextChoices):
    """Sentiment classification of a third-party review."""

    POSITIVE = "POSITIVE", "Positive"
    NEUTRAL = "NEUTRAL", "Neutral"
    NEGATIVE = "NEGATIVE", "Negative"


class PipelineJobStatus(models.TextChoices):
    """Status of a pipeline job."""

    PENDING = "pending", "Pending"
    RUNNING = "running", "Running"
    DONE = "done", "Done"
    FAILED = "failed", "Failed"


class TriggeredBy(models.TextChoices):
    """Who created a pipeline job."""

    MANUAL = "manual", "Manual"
    SCHEDULER = "scheduler", "Scheduler"


class ScheduleFrequency(models.TextChoices):
    """How often the scheduled pipeline runs."""

    DAILY = "daily", "Daily"
    WEEKLY = "weekly", "Weekly"


IN_FLIGHT_STATUSES = (PipelineJobStatus.PENDING, PipelineJobStatus.RUNNING)


class Product(models.Model):
    """
    One crawled product.

    The slug is the natural key: re-crawling the same product overwrites the
    spec fields and keeps the row (and its history) intact.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    slug = models.CharField(max_length=255, unique=True, help_text="maker-model slug")

    # Specs
    maker = models.CharField(max_length=100)
    model = models.CharField(max_length=255)
    cpu = models.CharField(max_length=255, default="Unknown")
    ram = models.FloatField(default=0, help_text="RAM in GB")
    storage = models.CharField(max_length=255, default="Unknown")
    gpu = models.CharField(max_length=255, default="Unknown")
    display_size = models.FloatField(default=0, help_text="Display size in inches")
    weight = models.FloatField(default=0, help_text="Weight in kg")
    os = models.CharField(max_length=100, default="Unknown")
    price = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0"), help_text="Price in KRW"
    )

    # Storefront
    image_url = models.CharField(max_length=500, blank=True)
    affiliate_url = models.URLField(max_length=1000, blank=True)
    category_id = models.CharField(max_length=100, blank=True, db_index=True)

    # Metadata
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    def save(self, *args, **kwargs):
        self.updated_at = timezone.now()
        super().save(*args, **kwargs)

    class Meta:
        db_table = "products"
        ordering = ["maker", "model"]

    def __str__(self):
        return f"{self.maker} {self.model} ({self.slug})"

    def to_specs(self):
        """Map the stored row back to ProductSpecs."""
        from content_pipeline.services.pipeline_types import ProductSpecs

        return ProductSpecs(
            maker=self.maker,
            model=self.model,
            cpu=self.cpu,
            ram=float(self.ram),
            storage=self.storage,
            gpu=self.gpu,
            display_size=float(self.display_size),
            weight=float(self.weight),
            os=self.os,
            price=float(self.price),
        )

    @property
    def latest_review(self):
        """Most recent generated review, which is the one displayed."""
        return self.reviews.order_by("-created_at").first()


class CrawlHistory(models.Model):
    """
    One record per crawl of a product page.

    html_hash is the SHA-256 of the exact HTML handed to extraction, so an
    unchanged page can be detected before spending another LLM call.
    """

    id = models.BigAutoField(primary_key=True)
    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="crawl_history"
    )
    url = models.URLField(max_length=2000)
    html_hash = models.CharField(max_length=64, db_index=True)
    last_crawled_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "crawl_history"
        ordering = ["-last_crawled_at"]
        verbose_name_plural = "Crawl history"
        indexes = [
            models.Index(
                fields=["product", "last_crawled_at"], name="crawl_history_product_idx"
            ),
        ]

    def __str__(self):
        return f"{self.url[:80]} @ {self.last_crawled_at:%Y-%m-%d %H:%M}"


class WebReviewReference(models.Model):
    """A third-party opinion snapshot attached to a product."""

    id = models.BigAutoField(primary_key=True)
    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="web_reviews"
    )
    source = models.CharField(max_length=100, help_text="e.g. YouTube, Reddit, Naver Blog")
    url = models.URLField(max_length=2000)
    summary_text = models.TextField()
    sentiment = models.CharField(max_length=10, choices=Sentiment.choices)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "web_review_references"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"[{self.source}] {self.sentiment} {self.url[:60]}"


class ProductReview(models.Model):
    """
    Generated critique article.

    Never updated; a newer row supersedes older ones for display.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name="reviews"
    )
    summary = models.TextField()
    pros = models.JSONField(default=list)
    cons = models.JSONField(default=list)
    recommended_for = models.TextField(blank=True)
    not_recommended_for = models.TextField(blank=True)
    spec_highlights = models.JSONField(default=list)
    strategy = models.JSONField(null=True, blank=True)
    sentiment_analysis = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "product_reviews"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Review for {self.product.slug} ({self.created_at:%Y-%m-%d})"


class PipelineJob(models.Model):
    """
    One pipeline invocation.

    Status moves PENDING -> RUNNING -> DONE | FAILED and never back. The
    in_flight flag is True while PENDING or RUNNING and NULL afterwards; a
    partial unique constraint on it allows at most one in-flight job.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    status = models.CharField(
        max_length=20,
        choices=PipelineJobStatus.choices,
        default=PipelineJobStatus.PENDING,
    )
    triggered_by = models.CharField(
        max_length=20, choices=TriggeredBy.choices, default=TriggeredBy.MANUAL
    )
    in_flight = models.BooleanField(null=True, default=True, editable=False)

    # Parameters
    category = models.CharField(max_length=100)
    makers = models.JSONField(default=list)
    listing_urls = models.JSONField(
        default=list,
        blank=True,
        help_text="Listing pages to process; discovered from category/makers when empty",
    )

    # Timing
    created_at = models.DateTimeField(default=timezone.now)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    # Error Details
    error_message = models.TextField(blank=True)

    class Meta:
        db_table = "pipeline_jobs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="pipeline_jobs_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["in_flight"],
                condition=Q(in_flight=True),
                name="single_in_flight_pipeline_job",
            ),
        ]

    def __str__(self):
        return f"Job {self.id} - {self.category} ({self.status})"

    @property
    def duration_seconds(self):
        """Calculate job duration."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def is_terminal(self) -> bool:
        return self.status in (PipelineJobStatus.DONE, PipelineJobStatus.FAILED)

    def start(self):
        """Mark job as running. Only a PENDING job can start."""
        now = timezone.now()
        updated = PipelineJob.objects.filter(
            pk=self.pk, status=PipelineJobStatus.PENDING
        ).update(status=PipelineJobStatus.RUNNING, started_at=now)
        if not updated:
            raise InvalidJobTransition(
                f"Job {self.pk} cannot start from status '{self.status}'"
            )
        self.status = PipelineJobStatus.RUNNING
        self.started_at = now

    def complete(self, success: bool = True, error_message: str = None):
        """Mark a RUNNING job as done or failed."""
        status = PipelineJobStatus.DONE if success else PipelineJobStatus.FAILED
        now = timezone.now()
        updated = PipelineJob.objects.filter(
            pk=self.pk, status=PipelineJobStatus.RUNNING
        ).update(
            status=status,
            completed_at=now,
            in_flight=None,
            error_message=error_message or "",
        )
        if not updated:
            raise InvalidJobTransition(
                f"Job {self.pk} cannot complete from status '{self.status}'"
            )
        self.status = status
        self.completed_at = now
        self.in_flight = None
        self.error_message = error_message or ""

    def log_lines(self, limit: int = None):
        """Log messages in emission order."""
        logs = self.logs.order_by("id").values_list("message", flat=True)
        if limit is not None:
            logs = logs[:limit]
        return list(logs)


class PipelineLog(models.Model):
    """One log line emitted by a running pipeline job."""

    id = models.BigAutoField(primary_key=True)
    job = models.ForeignKey(PipelineJob, on_delete=models.CASCADE, related_name="logs")
    message = models.TextField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "pipeline_logs"
        ordering = ["id"]

    def __str__(self):
        return self.message[:100]


class PipelineSchedule(models.Model):
    """
    Singleton configuration for automatically enqueued pipeline runs.

    Read by the worker's scheduler on every refresh interval.
    """

    id = models.BigAutoField(primary_key=True)
    enabled = models.BooleanField(default=False)
    frequency = models.CharField(
        max_length=10, choices=ScheduleFrequency.choices, default=ScheduleFrequency.DAILY
    )
    hour = models.IntegerField(
        default=3, validators=[MinValueValidator(0), MaxValueValidator(23)]
    )
    minute = models.IntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(59)]
    )
    day_of_week = models.IntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(6)],
        help_text="0 = Sunday ... 6 = Saturday (cron convention), weekly only",
    )
    category = models.CharField(max_length=100, default="노트북")
    makers = models.JSONField(default=list)
    updated_at = models.DateTimeField(default=timezone.now)

    def save(self, *args, **kwargs):
        self.updated_at = timezone.now()
        super().save(*args, **kwargs)

    class Meta:
        db_table = "pipeline_schedule"
        verbose_name = "Pipeline Schedule"
        verbose_name_plural = "Pipeline Schedule"

    def __str__(self):
        state = "enabled" if self.enabled else "disabled"
        return f"Pipeline schedule ({state}): {self.cron_expression()}"

    @classmethod
    def load(cls) -> "PipelineSchedule":
        """Return the stored schedule, or an unsaved default instance."""
        from django.conf import settings

        schedule = cls.objects.order_by("id").first()
        if schedule is None:
            schedule = cls(
                category=settings.PIPELINE_DEFAULT_CATEGORY,
                makers=list(settings.PIPELINE_DEFAULT_MAKERS),
            )
        return schedule

    def cron_expression(self) -> str:
        if self.frequency == ScheduleFrequency.WEEKLY and self.day_of_week is not None:
            return f"{self.minute} {self.hour} * * {self.day_of_week}"
        return f"{self.minute} {self.hour} * * *"
