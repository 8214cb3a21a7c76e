"""Tests for AR viewer routing."""

import asyncio
import json
from datetime import timezone
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from arviewer.availability import UnavailableReason, resolve_availability
from arviewer.environment import Platform, classify_environment
from arviewer.launch import CallerContractViolation, build_launch_target, build_scene_viewer_intent
from utils.validation import AssetDescriptor, Catalog, CatalogEntry, FileSize, Variants

IOS_SAFARI = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
IOS_CHROME = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) CriOS/120.0.6099.119 Mobile/15E148 Safari/604.1"
)
IOS_LINE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Mobile/15E148 Safari Line/13.21.0"
)
ANDROID_CHROME = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)
ANDROID_LINE = ANDROID_CHROME + " Line/13.21.0"
ANDROID_FIREFOX = "Mozilla/5.0 (Android 14; Mobile; rv:121.0) Gecko/121.0 Firefox/121.0"
DESKTOP_EDGE = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0"
)
DESKTOP_CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def make_descriptor(file_name: str, size: int = 2048) -> AssetDescriptor:
    return AssetDescriptor(
        file_name=file_name,
        path=f"model/{file_name}",
        size=FileSize(byte_count=size, human_readable="2.0 KB"),
        updated_at="2024-01-15T10:30:00.000Z",
    )


def make_entry(model_id: str = "fox", ios: bool = True, android: bool = False) -> CatalogEntry:
    ios_asset = make_descriptor(f"{model_id}.usdz") if ios else None
    android_asset = make_descriptor(f"{model_id}.glb") if android else None
    primary = ios_asset or android_asset
    return CatalogEntry(
        id=model_id,
        display_name=model_id.title(),
        file_name=primary.file_name,
        model_path=ios_asset.path if ios_asset else None,
        android_model_path=android_asset.path if android_asset else None,
        thumbnail_path=f"model/{model_id}.png",
        size=primary.size,
        updated_at=primary.updated_at,
        variants=Variants(ios=ios_asset, android=android_asset),
    )


class TestEnvironmentClassifier:
    """Tests for user-agent classification."""

    def test_ios_safari(self):
        env = classify_environment(IOS_SAFARI)

        assert env.platform is Platform.IOS
        assert env.is_safari
        assert env.supports_quick_look
        assert not env.supports_scene_viewer

    def test_ios_line_blocks_quick_look(self):
        """The in-app browser wins even though the engine is Safari."""
        env = classify_environment(IOS_LINE)

        assert env.is_ios
        assert env.in_app_browser
        assert not env.supports_quick_look

    def test_ios_chrome_is_not_safari(self):
        env = classify_environment(IOS_CHROME)

        assert env.is_ios
        assert not env.is_safari
        assert not env.supports_quick_look

    def test_android_chrome(self):
        env = classify_environment(ANDROID_CHROME)

        assert env.platform is Platform.ANDROID
        assert env.is_chrome
        assert env.supports_scene_viewer
        # Android Chrome carries "Safari" but is never treated as Safari
        assert not env.is_safari

    def test_android_line(self):
        env = classify_environment(ANDROID_LINE)

        assert env.is_android
        assert env.in_app_browser
        assert not env.supports_scene_viewer

    def test_android_firefox(self):
        env = classify_environment(ANDROID_FIREFOX)

        assert env.is_android
        assert not env.is_chrome
        assert not env.supports_scene_viewer

    def test_edge_is_not_chrome(self):
        env = classify_environment(DESKTOP_EDGE)

        assert env.platform is Platform.OTHER
        assert not env.is_chrome

    @pytest.mark.parametrize("user_agent", ["", None, "curl/8.4.0", DESKTOP_CHROME])
    def test_unknown_defaults_to_other(self, user_agent):
        env = classify_environment(user_agent)

        assert env.platform is Platform.OTHER
        assert not env.supports_quick_look
        assert not env.supports_scene_viewer

    def test_ios_token_takes_precedence(self):
        env = classify_environment("iPhone Android Safari")

        assert env.platform is Platform.IOS
        assert not env.is_android


class TestAvailabilityResolver:
    """Tests for the availability decision table."""

    def test_ios_available(self):
        result = resolve_availability(make_entry(ios=True), classify_environment(IOS_SAFARI))

        assert result.available
        assert result.fallback_href == "model/fox.usdz"
        assert result.reason is None

    def test_ios_missing_asset(self):
        entry = make_entry(ios=False, android=True)

        result = resolve_availability(entry, classify_environment(IOS_SAFARI))

        assert not result.available
        assert result.reason is UnavailableReason.MISSING_IOS_ASSET
        assert result.hint

    def test_ios_in_app_browser(self):
        result = resolve_availability(make_entry(), classify_environment(IOS_LINE))

        assert not result.available
        assert result.reason is UnavailableReason.IN_APP_BROWSER
        assert "Safari" in result.label

    def test_ios_unsupported_browser(self):
        result = resolve_availability(make_entry(), classify_environment(IOS_CHROME))

        assert not result.available
        assert result.reason is UnavailableReason.UNSUPPORTED_BROWSER

    def test_android_missing_asset(self):
        """fox.usdz only: Android Chrome reports the missing GLB."""
        result = resolve_availability(make_entry(ios=True), classify_environment(ANDROID_CHROME))

        assert not result.available
        assert result.reason is UnavailableReason.MISSING_ANDROID_ASSET
        assert "GLB" in result.label

    def test_android_available_defers_fallback(self):
        entry = make_entry(ios=False, android=True)

        result = resolve_availability(entry, classify_environment(ANDROID_CHROME))

        assert result.available
        assert result.fallback_href is None

    def test_android_in_app_vs_unsupported(self):
        entry = make_entry(ios=False, android=True)

        in_app = resolve_availability(entry, classify_environment(ANDROID_LINE))
        firefox = resolve_availability(entry, classify_environment(ANDROID_FIREFOX))

        assert in_app.reason is UnavailableReason.IN_APP_BROWSER
        assert firefox.reason is UnavailableReason.UNSUPPORTED_BROWSER
        assert in_app.label != firefox.label

    def test_both_assets_available_everywhere(self):
        entry = make_entry(ios=True, android=True)

        assert resolve_availability(entry, classify_environment(IOS_SAFARI)).available
        assert resolve_availability(entry, classify_environment(ANDROID_CHROME)).available
        assert resolve_availability(entry, classify_environment(DESKTOP_CHROME)).available

    def test_other_prefers_ios_asset(self):
        entry = make_entry(ios=True, android=True)

        result = resolve_availability(entry, classify_environment(DESKTOP_CHROME))

        assert result.fallback_href == "model/fox.usdz"

    def test_other_glb_only(self):
        entry = make_entry(ios=False, android=True)

        result = resolve_availability(entry, classify_environment(DESKTOP_CHROME))

        assert result.available
        assert result.fallback_href == "model/fox.glb"

    def test_other_no_asset(self):
        entry = CatalogEntry.model_construct(
            id="ghost", display_name="Ghost", file_name="ghost.usdz",
            model_path=None, android_model_path=None,
        )

        result = resolve_availability(entry, classify_environment(DESKTOP_CHROME))

        assert not result.available
        assert result.reason is UnavailableReason.NO_ASSET


class TestLaunchTargetBuilder:
    """Tests for launch target construction."""

    def test_scene_viewer_intent(self):
        intent = build_scene_viewer_intent("model/chair.glb", "https://example.com/gallery/", "Chair")

        assert intent == (
            "intent://arvr.google.com/scene-viewer/1.0"
            "?file=https%3A%2F%2Fexample.com%2Fgallery%2Fmodel%2Fchair.glb"
            "&mode=ar_preferred&title=Chair"
            "#Intent;scheme=https;package=com.google.ar.core;"
            "action=android.intent.action.VIEW;"
            "S.browser_fallback_url=https%3A%2F%2Fexample.com%2Fgallery%2F;end;"
        )

        query = urlsplit(intent.split("#", 1)[0]).query
        params = parse_qs(query)
        assert params["file"] == ["https://example.com/gallery/model/chair.glb"]
        assert params["title"] == ["Chair"]

    def test_scene_viewer_intent_without_title(self):
        intent = build_scene_viewer_intent("model/chair.glb", "https://example.com/")

        assert "title=" not in intent
        assert "mode=ar_preferred#Intent" in intent

    def test_scene_viewer_title_is_encoded(self):
        intent = build_scene_viewer_intent("model/my chair.glb", "https://example.com/", "Red Chair")

        assert "title=Red+Chair" in intent
        params = parse_qs(urlsplit(intent.split("#", 1)[0]).query)
        assert params["file"] == ["https://example.com/model/my%20chair.glb"]

    def test_ios_target(self):
        env = classify_environment(IOS_SAFARI)
        entry = make_entry()

        target = build_launch_target(resolve_availability(entry, env), entry, env, "https://example.com/")

        assert target.platform is Platform.IOS
        assert target.href == "model/fox.usdz"
        assert target.target == "_self"

    def test_android_target(self):
        env = classify_environment(ANDROID_CHROME)
        entry = make_entry("chair", ios=False, android=True)

        target = build_launch_target(
            resolve_availability(entry, env), entry, env, "https://example.com/gallery/", "Chair"
        )

        assert target.platform is Platform.ANDROID
        assert target.href.startswith("intent://arvr.google.com/scene-viewer/1.0?")
        assert "title=Chair" in target.href

    def test_download_target(self):
        env = classify_environment(DESKTOP_CHROME)
        entry = make_entry(ios=False, android=True)

        target = build_launch_target(resolve_availability(entry, env), entry, env, "https://example.com/")

        assert target.href == "model/fox.glb"
        assert target.target == "_blank"
        assert target.features == "noopener"

    def test_unavailable_result_is_a_contract_violation(self):
        env = classify_environment(IOS_LINE)
        entry = make_entry()
        result = resolve_availability(entry, env)

        with pytest.raises(CallerContractViolation):
            build_launch_target(result, entry, env, "https://example.com/")


class TestStatus:
    """Tests for status messages, badges and share links."""

    def test_status_message(self):
        from arviewer.status import build_status_message

        message = build_status_message(
            3, "2024-01-15T10:30:00.000Z", classify_environment(DESKTOP_CHROME), tz=timezone.utc
        )

        assert message.text == "3 models. Last updated: 2024/01/15 10:30"
        assert message.tone == "default"

    def test_status_message_with_hint(self):
        from arviewer.status import build_status_message

        message = build_status_message(1, None, classify_environment(IOS_LINE))

        assert "unknown" in message.text
        assert "LINE" in message.text

    def test_format_date_invalid(self):
        from arviewer.status import format_date

        assert format_date("not a date") == "unknown"

    def test_platform_badge(self):
        from arviewer.status import platform_badge

        assert platform_badge(make_entry(ios=True, android=True)).label == "iOS & Android"
        assert platform_badge(make_entry(ios=True)).label == "iOS / USDZ"
        assert platform_badge(make_entry(ios=False, android=True)).label == "Android / GLB"

    def test_share_url(self):
        from arviewer.status import build_share_url

        assert build_share_url("https://example.com/gallery/", "fox") == "https://example.com/gallery/?model=fox"
        assert (
            build_share_url("https://example.com/?lang=zh&model=old#top", "蘋果")
            == "https://example.com/?lang=zh&model=%E8%98%8B%E6%9E%9C#top"
        )


def catalog_payload() -> dict:
    catalog = Catalog(
        generated_at="2024-01-15T10:30:00.000Z",
        total=2,
        items=[make_entry("chair", ios=False, android=True), make_entry("fox", ios=True)],
    )
    return catalog.model_dump(by_alias=True, mode="json")


def run_load(session, handler, **kwargs):
    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await session.load(client=client, **kwargs)
    return asyncio.run(_run())


class TestSession:
    """Tests for the gallery session."""

    def test_load_and_launch(self):
        from arviewer.session import GallerySession

        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=catalog_payload())

        session = GallerySession(ANDROID_CHROME, "https://example.com/gallery/")
        status = run_load(session, handler)

        assert str(requests[0].url) == "https://example.com/gallery/data/models.json"
        assert status.text.startswith("2 models.")
        assert [item.id for item in session.catalog.items] == ["chair", "fox"]
        assert session.availability("chair").available
        assert not session.availability("fox").available

        target = session.launch("chair")
        assert "file=https%3A%2F%2Fexample.com%2Fgallery%2Fmodel%2Fchair.glb" in target.href
        assert "title=Chair" in target.href

        with pytest.raises(CallerContractViolation):
            session.launch("fox")

    def test_force_reload_busts_cache(self):
        from arviewer.session import GallerySession

        urls = []

        def handler(request):
            urls.append(request.url)
            return httpx.Response(200, json=catalog_payload())

        session = GallerySession(DESKTOP_CHROME, "https://example.com/")
        run_load(session, handler, force_reload=True)

        assert "v" in parse_qs(urls[0].query.decode())

    def test_failure_keeps_previous_catalog(self):
        from arviewer.session import GallerySession

        session = GallerySession(DESKTOP_CHROME, "https://example.com/")
        run_load(session, lambda request: httpx.Response(200, json=catalog_payload()))

        status = run_load(session, lambda request: httpx.Response(404))

        assert status.tone == "warning"
        assert session.catalog.total == 2

    def test_invalid_json_is_a_fetch_failure(self):
        from arviewer.session import GallerySession

        session = GallerySession(DESKTOP_CHROME, "https://example.com/")
        status = run_load(session, lambda request: httpx.Response(200, text="<html>"))

        assert status.tone == "warning"
        assert session.catalog.items == []

    def test_transport_error_is_a_fetch_failure(self):
        from arviewer.session import GallerySession

        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        session = GallerySession(DESKTOP_CHROME, "https://example.com/")
        status = run_load(session, handler)

        assert status.tone == "warning"

    def test_non_list_items_is_empty(self):
        from arviewer.session import GallerySession

        payload = {"generatedAt": "2024-01-15T10:30:00.000Z", "total": 0, "items": {"oops": 1}}
        session = GallerySession(DESKTOP_CHROME, "https://example.com/")
        run_load(session, lambda request: httpx.Response(200, json=payload))

        assert session.catalog.items == []

    def test_focus_id_consumed_once(self):
        from arviewer.session import GallerySession

        session = GallerySession(IOS_SAFARI, "https://example.com/gallery/?model=fox")
        run_load(session, lambda request: httpx.Response(200, json=catalog_payload()))

        assert session.take_focus_id() == "fox"
        assert session.take_focus_id() == ""

    def test_focus_id_kept_until_loaded(self):
        """The ?model= id survives until the catalog has loaded."""
        from arviewer.session import GallerySession

        session = GallerySession(IOS_SAFARI, "https://example.com/gallery/?model=fox")
        assert session.take_focus_id() == ""

        run_load(session, lambda request: httpx.Response(503))
        assert session.take_focus_id() == ""

        run_load(session, lambda request: httpx.Response(200, json=catalog_payload()))
        assert session.take_focus_id() == "fox"

    def test_fetch_catalog_raises(self):
        from catalog.loader import CatalogFetchFailure, fetch_catalog

        async def _run():
            transport = httpx.MockTransport(lambda request: httpx.Response(500))
            async with httpx.AsyncClient(transport=transport) as client:
                await fetch_catalog(client, "https://example.com/data/models.json")

        with pytest.raises(CatalogFetchFailure):
            asyncio.run(_run())

    def test_cache_busted(self):
        from catalog.loader import cache_busted

        assert cache_busted("data/models.json", now_ms=42) == "data/models.json?v=42"
        assert cache_busted("data/models.json?x=1", now_ms=42) == "data/models.json?x=1&v=42"
