from unittest.mock import MagicMock

import pytest
from django.core.cache import cache

from activemail.hooks import hooks
from activemail.mailer import DjangoMailer, Mailer
from activemail.storage import MemoryTemplateStorage
from tests.active_messages import ContactUs


@pytest.fixture(autouse=True)
def clean_state():
    cache.clear()
    hooks.clear()
    yield
    hooks.clear()


@pytest.fixture
def mailer():
    """A mailer that composes real messages but records sends instead of delivering."""
    mailer = MagicMock(spec=Mailer)
    mailer.compose.side_effect = lambda view_name, data: DjangoMailer().compose(view_name, data)
    mailer.send.return_value = True
    return mailer


@pytest.fixture
def storage():
    return MemoryTemplateStorage()


@pytest.fixture
def contact_message(mailer, storage):
    return ContactUs(
        mailer=mailer,
        template_storage=storage,
        name="Ann",
        email="ann@example.com",
        message="Hello there",
    )
