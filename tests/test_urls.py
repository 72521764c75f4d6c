from sitemedia.media.models import ResourceType, TransformationSpec
from sitemedia.storage.urls import (
    PLACEHOLDER_DATA_URI,
    CdnConfig,
    UrlStrategy,
    build_responsive_set,
    build_srcset,
    build_url,
    build_video_poster_url,
    build_video_sources,
    filter_responsive_widths,
    normalize_public_id,
)

from tests.conftest import BASE


def test_defaults_fill_quality_format_and_scale_crop(cdn_config):
    url = build_url("hero/home-hero", config=cdn_config)
    assert url == f"{BASE}/image/upload/f_auto,q_auto,c_scale/hero/home-hero"


def test_fill_crop_with_gravity_when_both_dimensions_given(cdn_config):
    spec = TransformationSpec(width=800, height=600)
    url = build_url("hero/home-hero", spec, config=cdn_config)
    assert url == f"{BASE}/image/upload/f_auto,q_auto,w_800,h_600,c_fill,g_auto/hero/home-hero"


def test_width_only_scales_without_gravity(cdn_config):
    url = build_url("hero/home-hero", TransformationSpec(width=800), config=cdn_config)
    assert url == f"{BASE}/image/upload/f_auto,q_auto,w_800,c_scale/hero/home-hero"


def test_gravity_dropped_for_crop_modes_that_ignore_it(cdn_config):
    spec = TransformationSpec(width=400, height=300, crop="fit", gravity="face")
    url = build_url("team/dr-lee", spec, config=cdn_config)
    assert url == f"{BASE}/image/upload/f_auto,q_auto,w_400,h_300,c_fit/team/dr-lee"


def test_explicit_gravity_and_effect_are_kept(cdn_config):
    spec = TransformationSpec(width=600, height=800, gravity="face", effect="grayscale", quality="90")
    url = build_url("team/dr-lee", spec, config=cdn_config)
    assert url.endswith("/f_auto,q_90,w_600,h_800,c_fill,g_face,e_grayscale/team/dr-lee")


def test_build_url_is_deterministic(cdn_config):
    spec = TransformationSpec(width=640, height=480, format="webp")
    first = build_url("gallery/case-12/after.jpg", spec, config=cdn_config)
    second = build_url("gallery/case-12/after.jpg", TransformationSpec(width=640, height=480, format="webp"), config=cdn_config)
    assert first == second


def test_empty_or_blank_id_returns_placeholder(cdn_config):
    assert build_url("", config=cdn_config) == PLACEHOLDER_DATA_URI
    assert build_url("   ", config=cdn_config) == PLACEHOLDER_DATA_URI
    assert build_url("bad id", config=cdn_config) == PLACEHOLDER_DATA_URI
    assert PLACEHOLDER_DATA_URI.startswith("data:image/svg+xml")


def test_external_url_passes_through(cdn_config):
    url = "https://example.com/images/office.jpg"
    assert build_url(url, TransformationSpec(width=100), config=cdn_config) == url


def test_delivery_url_is_rebuilt_from_its_object_id(cdn_config):
    source = "https://res.cloudinary.com/other/image/upload/f_auto,q_auto/v12/hero/a.jpg"
    url = build_url(source, TransformationSpec(width=300), config=cdn_config)
    assert url == f"{BASE}/image/upload/f_auto,q_auto,w_300,c_scale/hero/a.jpg"


def test_video_resource_type_changes_path(cdn_config):
    url = build_url("videos/loop.mp4", resource_type=ResourceType.VIDEO, config=cdn_config)
    assert url == f"{BASE}/video/upload/f_auto,q_auto,c_scale/videos/loop.mp4"


class TestStrategies:
    spec = TransformationSpec(width=800, height=600)

    def test_standard_adds_configured_version(self):
        config = CdnConfig(cloud_name="practice", default_version="1743748610")
        url = build_url("hero/home-hero", self.spec, config=config)
        assert url.endswith("/c_fill,g_auto/v1743748610/hero/home-hero")

    def test_standard_keeps_existing_version(self):
        config = CdnConfig(cloud_name="practice", default_version="1743748610")
        url = build_url("v99/hero/home-hero", self.spec, config=config)
        assert "/v1743748610/" not in url
        assert url.endswith("/v99/hero/home-hero")

    def test_simplified_keeps_format_quality_width_only(self):
        config = CdnConfig(cloud_name="practice", default_version="1743748610")
        url = build_url("hero/home-hero", self.spec, strategy=UrlStrategy.SIMPLIFIED, config=config)
        assert url == f"{BASE}/image/upload/f_auto,q_auto,w_800/hero/home-hero"

    def test_bare_has_no_transformation_segment(self, cdn_config):
        url = build_url("hero/home-hero", self.spec, strategy=UrlStrategy.BARE, config=cdn_config)
        assert url == f"{BASE}/image/upload/hero/home-hero"

    def test_all_strategies_differ(self, cdn_config):
        urls = {
            build_url("hero/home-hero", self.spec, strategy=strategy, config=cdn_config)
            for strategy in UrlStrategy
        }
        assert len(urls) == 3


class TestResponsive:
    def test_widths_over_twice_the_base_are_dropped(self):
        assert filter_responsive_widths([320, 640, 960, 1280, 1920], 400) == [320, 640]

    def test_widths_are_deduplicated_and_sorted(self):
        assert filter_responsive_widths([640, 320, 640, 0, -5]) == [320, 640]

    def test_responsive_set_scales_height_with_aspect_ratio(self, cdn_config):
        spec = TransformationSpec(width=400, height=300)
        variants = build_responsive_set("gallery/a.jpg", [320, 640, 960], spec, config=cdn_config)
        assert variants == [
            (320, f"{BASE}/image/upload/f_auto,q_auto,w_320,h_240,c_fill,g_auto/gallery/a.jpg"),
            (640, f"{BASE}/image/upload/f_auto,q_auto,w_640,h_480,c_fill,g_auto/gallery/a.jpg"),
        ]

    def test_responsive_set_uses_spec_breakpoints_by_default(self, cdn_config):
        spec = TransformationSpec(responsive_breakpoints=[480, 240])
        widths = [width for width, _ in build_responsive_set("hero/a", None, spec, config=cdn_config)]
        assert widths == [240, 480]

    def test_empty_id_has_no_variants(self, cdn_config):
        assert build_responsive_set("", [320], config=cdn_config) == []
        assert build_srcset("", [320], config=cdn_config) == ""

    def test_srcset_format(self, cdn_config):
        srcset = build_srcset("hero/a", [320, 640], TransformationSpec(width=400), config=cdn_config)
        assert srcset == (
            f"{BASE}/image/upload/f_auto,q_auto,w_320,c_scale/hero/a 320w, "
            f"{BASE}/image/upload/f_auto,q_auto,w_640,c_scale/hero/a 640w"
        )


def test_normalize_public_id_strips_transformations_and_version():
    url = "https://res.cloudinary.com/demo/image/upload/c_fill,w_100/g_auto/v99/team/dr.jpg"
    assert normalize_public_id(url) == "team/dr.jpg"
    assert normalize_public_id("/hero/home-hero/") == "hero/home-hero"
    assert normalize_public_id("") == ""


def test_video_poster_url(cdn_config):
    url = build_video_poster_url("videos/backgrounds/hero-loop.mp4", config=cdn_config)
    assert url == f"{BASE}/video/upload/f_jpg,q_auto,c_scale/videos/backgrounds/hero-loop.jpg"


def test_video_sources_cover_formats_and_widths(cdn_config):
    sources = build_video_sources("clip.mp4", formats=("mp4",), widths=(1080, 480), config=cdn_config)
    assert sources == [
        {
            "src": f"{BASE}/video/upload/f_mp4,q_auto,w_480,c_scale/clip.mp4",
            "type": "video/mp4",
            "media": "(max-width: 480px)",
        },
        {
            "src": f"{BASE}/video/upload/f_mp4,q_auto,w_1080,c_scale/clip.mp4",
            "type": "video/mp4",
            "media": "(min-width: 721px)",
        },
    ]
    assert build_video_sources("", config=cdn_config) == []


def test_missing_quality_and_format_fall_back_to_auto(cdn_config):
    spec = TransformationSpec(quality=None, format=None)
    assert (spec.quality, spec.format) == ("auto", "auto")
    assert build_url("hero/a", spec, config=cdn_config) == f"{BASE}/image/upload/f_auto,q_auto,c_scale/hero/a"
    filled = spec.with_defaults({"quality": 80, "format": "webp"})
    assert (filled.quality, filled.format) == ("80", "webp")


def test_object_id_is_percent_encoded(cdn_config):
    url = build_url("team/dr-josé?#1.jpg", config=cdn_config)
    assert url == f"{BASE}/image/upload/f_auto,q_auto,c_scale/team/dr-jos%C3%A9%3F%231.jpg"


def test_encoded_delivery_url_is_not_encoded_twice(cdn_config):
    source = "https://res.cloudinary.com/other/image/upload/v1/team/dr-jos%C3%A9.jpg"
    assert normalize_public_id(source) == "team/dr-josé.jpg"
    assert build_url(source, config=cdn_config) == f"{BASE}/image/upload/f_auto,q_auto,c_scale/team/dr-jos%C3%A9.jpg"
