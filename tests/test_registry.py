import pytest

from parceltrack.providers import ProviderRegistry, default_registry, get_provider_names
from parceltrack.providers.auspost import AusPostProvider


def _auspost():
    return AusPostProvider(api_key="k", password="p", account_number="a")


def test_register_and_create():
    registry = ProviderRegistry()
    registry.register("auspost", _auspost)
    registry.register("AusPost_Other", _auspost)

    assert isinstance(registry.create("auspost"), AusPostProvider)
    assert isinstance(registry.create("auspost_other"), AusPostProvider)
    assert "AUSPOST" in registry
    assert registry.names() == ["auspost", "auspost_other"]
    assert list(registry) == registry.names()


def test_create_unknown_provider():
    registry = ProviderRegistry()
    with pytest.raises(KeyError, match="Unknown provider 'nope'"):
        registry.create("nope")


def test_registries_are_independent():
    first = ProviderRegistry()
    first.register("auspost", _auspost)
    assert "auspost" not in ProviderRegistry()


def test_default_registry_has_auspost(monkeypatch):
    monkeypatch.setenv("AUSPOST_API_KEY", "key")
    monkeypatch.setenv("AUSPOST_PASSWORD", "pw")
    monkeypatch.setenv("AUSPOST_ACCOUNT_NUMBER", "123")
    registry = default_registry()
    assert get_provider_names() == ["auspost"]
    provider = registry.create("auspost")
    assert isinstance(provider, AusPostProvider)
    assert provider.api_key == "key"
