"""
Initial schema for the content pipeline.
"""

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "slug",
                    models.CharField(help_text="maker-model slug", max_length=255, unique=True),
                ),
                ("maker", models.CharField(max_length=100)),
                ("model", models.CharField(max_length=255)),
                ("cpu", models.CharField(default="Unknown", max_length=255)),
                ("ram", models.FloatField(default=0, help_text="RAM in GB")),
                ("storage", models.CharField(default="Unknown", max_length=255)),
                ("gpu", models.CharField(default="Unknown", max_length=255)),
                (
                    "display_size",
                    models.FloatField(default=0, help_text="Display size in inches"),
                ),
                ("weight", models.FloatField(default=0, help_text="Weight in kg")),
                ("os", models.CharField(default="Unknown", max_length=100)),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Price in KRW",
                        max_digits=14,
                    ),
                ),
                ("image_url", models.CharField(blank=True, max_length=500)),
                ("affiliate_url", models.URLField(blank=True, max_length=1000)),
                (
                    "category_id",
                    models.CharField(blank=True, db_index=True, max_length=100),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "products",
                "ordering": ["maker", "model"],
            },
        ),
        migrations.CreateModel(
            name="PipelineJob",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("running", "Running"),
                            ("done", "Done"),
                            ("failed", "Failed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "triggered_by",
                    models.CharField(
                        choices=[("manual", "Manual"), ("scheduler", "Scheduler")],
                        default="manual",
                        max_length=20,
                    ),
                ),
                (
                    "in_flight",
                    models.BooleanField(default=True, editable=False, null=True),
                ),
                ("category", models.CharField(max_length=100)),
                ("makers", models.JSONField(default=list)),
                (
                    "listing_urls",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Listing pages to process; discovered from category/makers when empty",
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("error_message", models.TextField(blank=True)),
            ],
            options={
                "db_table": "pipeline_jobs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"], name="pipeline_jobs_status_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("in_flight", True)),
                        fields=("in_flight",),
                        name="single_in_flight_pipeline_job",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PipelineSchedule",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("enabled", models.BooleanField(default=False)),
                (
                    "frequency",
                    models.CharField(
                        choices=[("daily", "Daily"), ("weekly", "Weekly")],
                        default="daily",
                        max_length=10,
                    ),
                ),
                (
                    "hour",
                    models.IntegerField(
                        default=3,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(23),
                        ],
                    ),
                ),
                (
                    "minute",
                    models.IntegerField(
                        default=0,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(59),
                        ],
                    ),
                ),
                (
                    "day_of_week",
                    models.IntegerField(
                        blank=True,
                        help_text="0 = Sunday ... 6 = Saturday (cron convention), weekly only",
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(6),
                        ],
                    ),
                ),
                ("category", models.CharField(default="노트북", max_length=100)),
                ("makers", models.JSONField(default=list)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "verbose_name": "Pipeline Schedule",
                "verbose_name_plural": "Pipeline Schedule",
                "db_table": "pipeline_schedule",
            },
        ),
        migrations.CreateModel(
            name="ProductReview",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("summary", models.TextField()),
                ("pros", models.JSONField(default=list)),
                ("cons", models.JSONField(default=list)),
                ("recommended_for", models.TextField(blank=True)),
                ("not_recommended_for", models.TextField(blank=True)),
                ("spec_highlights", models.JSONField(default=list)),
                ("strategy", models.JSONField(blank=True, null=True)),
                ("sentiment_analysis", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reviews",
                        to="content_pipeline.product",
                    ),
                ),
            ],
            options={
                "db_table": "product_reviews",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="WebReviewReference",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                (
                    "source",
                    models.CharField(
                        help_text="e.g. YouTube, Reddit, Naver Blog", max_length=100
                    ),
                ),
                ("url", models.URLField(max_length=2000)),
                ("summary_text", models.TextField()),
                (
                    "sentiment",
                    models.CharField(
                        choices=[
                            ("POSITIVE", "Positive"),
                            ("NEUTRAL", "Neutral"),
                            ("NEGATIVE", "Negative"),
                        ],
                        max_length=10,
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="web_reviews",
                        to="content_pipeline.product",
                    ),
                ),
            ],
            options={
                "db_table": "web_review_references",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="PipelineLog",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("message", models.TextField()),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "job",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="logs",
                        to="content_pipeline.pipelinejob",
                    ),
                ),
            ],
            options={
                "db_table": "pipeline_logs",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="CrawlHistory",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("url", models.URLField(max_length=2000)),
                ("html_hash", models.CharField(db_index=True, max_length=64)),
                (
                    "last_crawled_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="crawl_history",
                        to="content_pipeline.product",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Crawl history",
                "db_table": "crawl_history",
                "ordering": ["-last_crawled_at"],
                "indexes": [
                    models.Index(
                        fields=["product", "last_crawled_at"],
                        name="crawl_history_product_idx",
                    ),
                ],
            },
        ),
    ]
