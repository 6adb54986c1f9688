import itertools

import pytest

from app.core.presets import FORMALITY_LEVELS, SEASON_PRESETS
from app.schemas.fits import FitImages
from app.services.fits.synth import (
    ACCESSORIES_COLOR,
    FORMALITY_AESTHETICS,
    GARMENT_CANDIDATES,
    PREVIEW_IMAGE_URL,
    SYNTHETIC_CONFIDENCE,
    describe_fit,
    synthesize_analysis,
)
from app.services.fits.types import SessionContext
from tests.fixtures.fakes import FirstChoice

ALL_IMAGES = FitImages(
    top_url="https://cdn.test/top.jpg",
    top_layer_url="https://cdn.test/layer.jpg",
    bottom_url="https://cdn.test/bottom.jpg",
    shoes_url="https://cdn.test/shoes.jpg",
    accessories_url="https://cdn.test/acc.jpg",
)


def test_fall_casual_bottom_only():
    ctx = SessionContext(session_id="demo_1", season="Fall", formality="casual")
    out = synthesize_analysis(ctx, FitImages(bottom_url="https://cdn.test/bottom.jpg"))
    assert out.top is None
    assert out.top_layer is None
    assert out.shoes is None
    assert out.bottom in GARMENT_CANDIDATES["bottom"]["Fall"]
    assert out.colors == {"bottom": SEASON_PRESETS["Fall"].recommended_colors[2]}
    assert out.accessories_tags == []
    assert len(out.aesthetic) == 3
    assert out.aesthetic[:2] == ["earthy", "layered"]
    assert out.aesthetic[2] in FORMALITY_AESTHETICS["casual"]


def test_full_outfit_with_fixed_choices():
    ctx = SessionContext(session_id="demo_1", season="Winter", formality="business-casual")
    out = synthesize_analysis(ctx, ALL_IMAGES, rng=FirstChoice())
    assert out.top == "chunky knit sweater"
    assert out.top_layer == "puffer jacket"
    assert out.bottom == "black jeans"
    assert out.shoes == "winter boots"
    assert out.accessories == ["scarf", "gloves"]
    assert out.accessories_tags == ["scarf", "gloves"]
    assert out.aesthetic == ["cozy", "layered", "professional"]
    assert out.colors == {
        "top": "gray",
        "topLayer": "navy",
        "bottom": "black",
        "shoes": "burgundy",
        "accessories": ACCESSORIES_COLOR,
    }
    assert out.ai_description == (
        "chunky knit sweater, with puffer jacket, black jeans, winter boots, accessorized with scarf, gloves"
    )
    assert out.accessories_description == "Accessorized with scarf and gloves"
    assert out.ai_image_url == PREVIEW_IMAGE_URL
    assert out.confidence == SYNTHETIC_CONFIDENCE
    assert out.timestamp is not None
    assert out.saved is False


def test_no_images_yields_empty_colors_and_description():
    out = synthesize_analysis(SessionContext(session_id="s", season="Summer"), FitImages())
    assert out.colors == {}
    assert out.ai_description == ""
    assert out.accessories_description is None
    assert out.aesthetic


def test_accessories_only_description_is_the_accessories_fragment():
    images = FitImages(accessories_url="https://cdn.test/acc.jpg")
    out = synthesize_analysis(SessionContext(session_id="s", season="Spring"), images, rng=FirstChoice())
    assert out.ai_description == "accessorized with sunglasses, light scarf"
    assert out.colors == {"accessories": ACCESSORIES_COLOR}


def test_unknown_season_and_formality_fall_back_to_defaults():
    ctx = SessionContext(session_id="s", season="Monsoon", formality="black-tie")
    out = synthesize_analysis(ctx, FitImages(top_url="https://cdn.test/top.jpg"), rng=FirstChoice())
    assert out.season == "Spring"
    assert out.formality == "casual"
    assert out.top == "floral blouse"
    assert out.aesthetic == ["floral", "airy", "streetwear"]


def test_season_lookup_ignores_case():
    out = synthesize_analysis(SessionContext(session_id="s", season="fall"), FitImages(), rng=FirstChoice())
    assert out.season == "Fall"


@pytest.mark.parametrize("season,formality", list(itertools.product(SEASON_PRESETS, FORMALITY_LEVELS)))
def test_shape_invariants_for_every_context(season, formality):
    for populated in (FitImages(), ALL_IMAGES, FitImages(shoes_url="x", top_url="y")):
        out = synthesize_analysis(SessionContext(session_id="s", season=season, formality=formality), populated)
        assert len(out.aesthetic) >= 1
        assert set(out.colors) <= set(populated.populated_slots())
        assert out.aesthetic[-1] in FORMALITY_AESTHETICS[formality]


def test_describe_fit_orders_fragments_by_slot():
    garments = {"shoes": "oxfords", "top": "turtleneck", "topLayer": None, "bottom": "cargo pants"}
    assert describe_fit(garments, []) == "turtleneck, cargo pants, oxfords"
