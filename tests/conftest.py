"""Pytest configuration and fixtures."""

import os

import pytest

from tests.fakes.fake_stores import FakeCredentialStore, FakeReviewItemStore


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["CEPHO_ENV"] = "test"


@pytest.fixture
def review_store():
    return FakeReviewItemStore()


@pytest.fixture
def credential_store():
    return FakeCredentialStore()
