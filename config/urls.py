"""
URL configuration for the content pipeline.

Routes:
- /admin/              Django admin (products, reviews, jobs, schedule)
- /api/health/         Health check, no authentication
- /api/v1/pipeline/    Pipeline job and schedule API
- /api/v1/products/    Review generation
- /api/schema/, /api/docs/  OpenAPI schema and Swagger UI
"""

from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from content_pipeline.views import health_check

admin.site.site_header = "Content Pipeline Admin"
admin.site.site_title = "Content Pipeline"

urlpatterns = [
    path("admin/", admin.site.urls),

    # OpenAPI
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path(
        "api/docs/",
        SpectacularSwaggerView.as_view(url_name="schema"),
        name="swagger-ui",
    ),

    # Load balancer check
    path("api/health/", health_check, name="health-check"),

    path("api/v1/", include("content_pipeline.api.urls")),
]
