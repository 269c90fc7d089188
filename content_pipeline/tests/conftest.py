"""
Pytest configuration and fixtures for the content pipeline test suite.
"""

from unittest.mock import AsyncMock

import pytest


@pytest.fixture(scope="session")
def django_db_setup(django_db_blocker):
    """Configure the test database and run migrations."""
    from django.core.management import call_command

    with django_db_blocker.unblock():
        call_command("migrate", "--run-syncdb", verbosity=0)


@pytest.fixture
def api_client():
    """Create a test API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def fake_llm():
    """LLM runner double whose run() is an AsyncMock."""
    llm = AsyncMock()
    llm.run = AsyncMock(return_value="")
    return llm


@pytest.fixture
def skills_dir(tmp_path):
    """Empty skills root for tests that author their own SKILL.md files."""
    root = tmp_path / "skills"
    root.mkdir()
    return root
