from src.cms.media.media_models import MediaReference
from src.cms.media.media_urls import (
    IMAGE_DEFAULTS,
    MediaUrlBuilder,
    TransformOptions,
    build_url,
    responsive_variants,
)

BASE = "https://ik.imagekit.io/demo"


def test_build_url_renders_directives_in_fixed_order() -> None:
    url = build_url(
        BASE,
        "/history/bg.jpg",
        {"width": 300, "height": 200, "crop": "maintain_ratio"},
    )

    assert url == f"{BASE}/history/bg.jpg?tr:w-300,h-200,c-maintain_ratio"


def test_build_url_orders_all_options_regardless_of_input_order() -> None:
    options = {
        "focus": "auto",
        "crop": "at_max",
        "aspect_ratio": "16-9",
        "format": "webp",
        "quality": 80,
        "height": 200,
        "width": 400,
    }

    url = build_url(BASE, "/a.jpg", options)

    assert url == f"{BASE}/a.jpg?tr:w-400,h-200,q-80,f-webp,ar-16-9,c-at_max,fo-auto"
    assert build_url(BASE, "/a.jpg", options) == url


def test_build_url_without_options_returns_base() -> None:
    assert build_url(BASE, "/history/bg.jpg", {}) == f"{BASE}/history/bg.jpg"
    assert build_url(BASE, "/history/bg.jpg") == f"{BASE}/history/bg.jpg"


def test_build_url_skips_unset_and_falsy_values() -> None:
    url = build_url(BASE, "/a.jpg", {"width": 0, "height": None, "format": "", "quality": 70})

    assert url == f"{BASE}/a.jpg?tr:q-70"


def test_build_url_returns_empty_for_missing_path() -> None:
    assert build_url(BASE, "", {"width": 100}) == ""


def test_build_url_passes_videos_through() -> None:
    assert build_url(BASE, "/programs/festival/videos/clip.MP4", {"width": 300}) == (
        f"{BASE}/programs/festival/videos/clip.MP4"
    )


def test_build_url_normalizes_slashes() -> None:
    assert build_url(BASE + "/", "team/p.png", {"width": 10}) == f"{BASE}/team/p.png?tr:w-10"


def test_merged_overrides_only_set_fields() -> None:
    merged = IMAGE_DEFAULTS.merged({"width": 300, "quality": None})

    assert merged == TransformOptions(width=300, quality=80, format="webp")


def test_responsive_variants_apply_image_defaults() -> None:
    variants = responsive_variants(BASE, "/founder/p.jpg")

    assert variants["thumbnail"] == f"{BASE}/founder/p.jpg?tr:w-300,h-200,q-80,f-webp,c-maintain_ratio"
    assert variants["small"] == f"{BASE}/founder/p.jpg?tr:w-640,q-80,f-webp"
    assert variants["original"] == f"{BASE}/founder/p.jpg?tr:q-90,f-webp"
    assert set(variants) == {"thumbnail", "small", "medium", "large", "original"}


def test_url_builder_falls_back_to_direct_url_without_endpoint() -> None:
    ref = MediaReference("id-1", "/team/p.jpg", "https://cdn.example/team/p.jpg", "p.jpg")
    builder = MediaUrlBuilder(endpoint=None)

    assert builder.image_url(ref, {"width": 10}) == "https://cdn.example/team/p.jpg"
    assert builder.image_url(None) == ""


def test_url_builder_gallery_variants() -> None:
    ref = MediaReference("id-1", "/programs/sports/gallery/g.png", "u", "g.png")
    builder = MediaUrlBuilder(endpoint=BASE)

    [item] = builder.gallery([ref])

    assert item["reference_id"] == "id-1"
    assert item["thumbnail"] == f"{BASE}/programs/sports/gallery/g.png?tr:w-300,q-80,f-webp"
    assert item["full"] == f"{BASE}/programs/sports/gallery/g.png?tr:q-90,f-webp"
