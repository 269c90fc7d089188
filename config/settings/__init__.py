"""
Settings package for the content pipeline.

DJANGO_ENV selects the module: "production", "test", or anything else for
development. Tests set DJANGO_SETTINGS_MODULE=config.settings.test directly.
"""

import os

_env = os.getenv("DJANGO_ENV", "development")

if _env == "production":
    from .production import *
elif _env == "test":
    from .test import *
else:
    from .development import *
