"""
Custom throttle classes for the pipeline admin API.
"""

from rest_framework.throttling import UserRateThrottle


class PipelineTriggerThrottle(UserRateThrottle):
    """
    Throttle for manual pipeline triggers.

    Rate: 10 requests per hour per user.
    Applied to: /api/v1/pipeline/jobs/ (POST)
    """

    rate = '10/hour'
    scope = 'pipeline_trigger'


class GenerationThrottle(UserRateThrottle):
    """
    Throttle for LLM generation endpoints.

    Rate: 50 requests per hour per user.
    Applied to: /api/v1/products/<slug>/review/
    """

    rate = '50/hour'
    scope = 'generation'
