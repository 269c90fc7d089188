"""
Django admin configuration for the content pipeline.

Products and their crawl/review history are browsable; pipeline jobs and
their logs are read-only; the schedule singleton is editable.
"""

from django.contrib import admin
from django.utils.html import format_html

from content_pipeline.models import (
    CrawlHistory,
    PipelineJob,
    PipelineLog,
    PipelineSchedule,
    Product,
    ProductReview,
    WebReviewReference,
)


class WebReviewReferenceInline(admin.TabularInline):
    model = WebReviewReference
    extra = 0
    fields = ["source", "sentiment", "url", "created_at"]
    readonly_fields = ["created_at"]


class ProductReviewInline(admin.StackedInline):
    model = ProductReview
    extra = 0
    fields = ["summary", "created_at"]
    readonly_fields = ["summary", "created_at"]
    show_change_link = True


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for crawled products."""

    list_display = ["slug", "maker", "model", "price", "category_id", "updated_at"]
    list_filter = ["maker", "category_id"]
    search_fields = ["slug", "maker", "model"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["maker", "model"]
    inlines = [WebReviewReferenceInline, ProductReviewInline]

    fieldsets = (
        ("Identity", {
            "fields": ("id", "slug", "maker", "model", "category_id"),
        }),
        ("Specs", {
            "fields": ("cpu", "ram", "storage", "gpu", "display_size", "weight", "os", "price"),
        }),
        ("Storefront", {
            "fields": ("image_url", "affiliate_url"),
        }),
        ("Timestamps", {
            "fields": ("created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )


@admin.register(CrawlHistory)
class CrawlHistoryAdmin(admin.ModelAdmin):
    list_display = ["product", "url", "html_hash_short", "last_crawled_at"]
    search_fields = ["product__slug", "url", "html_hash"]
    readonly_fields = ["product", "url", "html_hash", "last_crawled_at"]
    ordering = ["-last_crawled_at"]

    def html_hash_short(self, obj):
        return obj.html_hash[:12]
    html_hash_short.short_description = "HTML hash"


@admin.register(WebReviewReference)
class WebReviewReferenceAdmin(admin.ModelAdmin):
    list_display = ["product", "source", "sentiment", "url", "created_at"]
    list_filter = ["sentiment", "source"]
    search_fields = ["product__slug", "url", "summary_text"]


@admin.register(ProductReview)
class ProductReviewAdmin(admin.ModelAdmin):
    """Generated reviews are append-only."""

    list_display = ["product", "summary_short", "created_at"]
    search_fields = ["product__slug", "summary"]
    readonly_fields = [
        "id",
        "product",
        "summary",
        "pros",
        "cons",
        "recommended_for",
        "not_recommended_for",
        "spec_highlights",
        "strategy",
        "sentiment_analysis",
        "created_at",
    ]
    ordering = ["-created_at"]

    def summary_short(self, obj):
        return obj.summary[:80]
    summary_short.short_description = "Summary"

    def has_add_permission(self, request):
        return False


class PipelineLogInline(admin.TabularInline):
    model = PipelineLog
    extra = 0
    fields = ["created_at", "message"]
    readonly_fields = ["created_at", "message"]
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(PipelineJob)
class PipelineJobAdmin(admin.ModelAdmin):
    """
    Admin interface for pipeline jobs.

    Read-only view of job status, parameters and log lines.
    """

    list_display = [
        "id_short",
        "status_badge",
        "triggered_by",
        "category",
        "created_at",
        "duration_display",
    ]
    list_filter = [
        "status",
        "triggered_by",
        ("created_at", admin.DateFieldListFilter),
    ]
    search_fields = ["id", "category"]
    readonly_fields = [
        "id",
        "status",
        "triggered_by",
        "category",
        "makers",
        "listing_urls",
        "created_at",
        "started_at",
        "completed_at",
        "error_message",
    ]
    ordering = ["-created_at"]
    inlines = [PipelineLogInline]

    fieldsets = (
        ("Job Information", {
            "fields": ("id", "status", "triggered_by"),
        }),
        ("Parameters", {
            "fields": ("category", "makers", "listing_urls"),
        }),
        ("Timing", {
            "fields": ("created_at", "started_at", "completed_at"),
        }),
        ("Error Details", {
            "fields": ("error_message",),
            "classes": ("collapse",),
        }),
    )

    def id_short(self, obj):
        """Display shortened job ID."""
        return str(obj.id)[:8]
    id_short.short_description = "Job ID"

    def status_badge(self, obj):
        """Display status as colored badge."""
        colors = {
            "pending": "#ffc107",
            "running": "#007bff",
            "done": "#28a745",
            "failed": "#dc3545",
        }
        color = colors.get(obj.status, "#6c757d")
        return format_html(
            '<span style="background-color: {}; color: white; '
            'padding: 2px 8px; border-radius: 4px;">{}</span>',
            color, obj.status.title()
        )
    status_badge.short_description = "Status"
    status_badge.admin_order_field = "status"

    def duration_display(self, obj):
        """Display job duration in human-readable format."""
        if obj.duration_seconds:
            seconds = obj.duration_seconds
            if seconds < 60:
                return f"{seconds:.1f}s"
            elif seconds < 3600:
                return f"{seconds / 60:.1f}m"
            else:
                return f"{seconds / 3600:.1f}h"
        return "-"
    duration_display.short_description = "Duration"

    def has_add_permission(self, request):
        """Jobs are created through the API or the scheduler."""
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(PipelineSchedule)
class PipelineScheduleAdmin(admin.ModelAdmin):
    list_display = ["__str__", "enabled", "frequency", "hour", "minute", "day_of_week", "updated_at"]
    readonly_fields = ["updated_at"]

    def has_add_permission(self, request):
        """Only one schedule row exists."""
        return not PipelineSchedule.objects.exists()
