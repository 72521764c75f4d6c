import json
import logging

from sitemedia.core.errors import InvalidIdentifier, LookupMiss, MediaError, RenderLoadFailure
from sitemedia.core.logging import JsonFormatter, RequestIdFilter, bind_request_id, get_request_id
from sitemedia.core.settings import DEFAULT_FOLDER_PRIORITY, Settings
from sitemedia.media.models import ResourceType


def make_record(**extra):
    record = logging.LogRecord("sitemedia.media.resolver", logging.INFO, __file__, 1, "Asset resolved.", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_request_id_and_extra():
    record = make_record(tier="bulk", resource_type=ResourceType.VIDEO, tiers_tried=("primary", "bulk"))
    with bind_request_id("req-1"):
        RequestIdFilter().filter(record)
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "Asset resolved."
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["tier"] == "bulk"
    assert payload["resource_type"] == "video"
    assert payload["tiers_tried"] == ["primary", "bulk"]


def test_request_id_resets_after_block():
    with bind_request_id() as request_id:
        assert get_request_id() == request_id
    assert get_request_id() == "-"


def test_settings_lists_from_env(monkeypatch):
    monkeypatch.setenv("VIDEO_EXTENSIONS", "MP4, webm,.OGV")
    monkeypatch.setenv("FOLDER_PRIORITY", "team, hero")
    settings = Settings()
    assert settings.VIDEO_EXTENSIONS == (".mp4", ".webm", ".ogv")
    assert settings.FOLDER_PRIORITY == ("team", "hero")


def test_settings_defaults(monkeypatch):
    for name in ("FOLDER_PRIORITY", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET", "SUPABASE_URL"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    assert settings.FOLDER_PRIORITY == DEFAULT_FOLDER_PRIORITY
    assert not settings.cloudinary_admin_configured
    assert not settings.supabase_configured


def test_error_hierarchy():
    miss = LookupMiss("static", "hero-home", "absent")
    assert isinstance(miss, MediaError)
    assert str(miss) == "static: 'hero-home' (absent)"
    assert isinstance(InvalidIdentifier("blank"), ValueError)
    assert str(RenderLoadFailure("https://x/a.jpg", "HTTP 404")) == "failed to load https://x/a.jpg: HTTP 404"
