import pytest

from .providers import FakeProvider


@pytest.fixture
def provider(monkeypatch):
    fake = FakeProvider()
    monkeypatch.setattr("halogin.accounts.oauth.request_json", fake)
    monkeypatch.setattr("halogin.accounts.services.request_json", fake)
    return fake
