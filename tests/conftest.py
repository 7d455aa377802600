from __future__ import annotations

import pytest

from tracker import workflow
from tracker.models import User


@pytest.fixture
def user(db):
    return User.objects.create_user(username="ada", email="ada@example.com", password="pw-123456")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="grace", email="grace@example.com", password="pw-123456")


@pytest.fixture
def make_opportunity(user):
    def _make(owner=None, **fields):
        fields.setdefault("title", "Rhodes Scholarship")
        fields.setdefault("opportunity_type", "scholarship")
        return workflow.create_opportunity((owner or user).pk, **fields)
    return _make
