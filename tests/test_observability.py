from types import SimpleNamespace

from src.core import observability


def _settings(**overrides):
    values = {
        "sentry_dsn": "",
        "env": "development",
        "app_name": "roomblog",
        "app_version": "0.1.0",
        "sentry_traces_sample_rate": 0.0,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_init_sentry_skips_when_dsn_missing(monkeypatch) -> None:
    observability.reset_observability_for_tests()

    called = {"count": 0}

    def fake_init(**kwargs):  # noqa: ARG001
        called["count"] += 1

    monkeypatch.setattr(observability, "_call_sentry_init", fake_init)
    monkeypatch.setattr(observability, "get_settings", lambda: _settings())

    assert observability.init_sentry() is False
    assert called["count"] == 0
    observability.reset_observability_for_tests()


def test_init_sentry_initializes_once(monkeypatch) -> None:
    observability.reset_observability_for_tests()

    calls = []

    def fake_init(**kwargs):
        calls.append(kwargs)

    monkeypatch.setattr(observability, "FastApiIntegration", lambda: object())
    monkeypatch.setattr(observability, "_call_sentry_init", fake_init)
    monkeypatch.setattr(
        observability,
        "get_settings",
        lambda: _settings(
            sentry_dsn="https://abc@example.ingest.sentry.io/1",
            env="production",
            sentry_traces_sample_rate=0.2,
        ),
    )

    assert observability.init_sentry() is True
    assert observability.init_sentry() is True
    assert len(calls) == 1
    assert calls[0]["dsn"] == "https://abc@example.ingest.sentry.io/1"
    assert calls[0]["environment"] == "production"
    assert calls[0]["release"] == "roomblog@0.1.0"
    assert calls[0]["traces_sample_rate"] == 0.2
    assert calls[0]["send_default_pii"] is False
    observability.reset_observability_for_tests()


def test_capture_and_scope_are_noops_until_initialized(monkeypatch) -> None:
    observability.reset_observability_for_tests()

    def fail(*args, **kwargs):
        raise AssertionError("sentry should not be called")

    monkeypatch.setattr(observability.sentry_sdk, "capture_exception", fail)
    monkeypatch.setattr(observability.sentry_sdk, "new_scope", fail)

    with observability.sentry_scope(user_id="user-1", request_id="req-1"):
        observability.capture_exception(RuntimeError("boom"))
