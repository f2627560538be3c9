"""
Tests for slide classification, prompt enhancement and request building.
"""

import pytest

from agents.config import IDEOGRAM_NEGATIVE_PROMPT, RECRAFT_NEGATIVE_PROMPT
from agents.domain.models import Provider, Slide, SlideKind
from agents.generation.exceptions import SlideImageError
from agents.generation.image_prompt_builder import (
    STYLE_PRESETS,
    ImageGenerationPromptBuilder,
    PresentationStyle,
    PromptClassifier,
    PromptEnhancer,
    resolve_style,
)


def test_revenue_slide_with_percentage_needs_text():
    classifier = PromptClassifier()
    result = classifier.classify(SlideKind.CONTENT, "Q3 Revenue Growth", "Revenue grew 42% compared to last quarter")

    assert result.needs_text is True
    assert result.provider == Provider.IDEOGRAM
    assert result.category == 'data'
    assert "Q3 Revenue Growth" in result.base_prompt


def test_photo_style_slide_goes_to_recraft():
    classifier = PromptClassifier()
    result = classifier.classify(SlideKind.CONTENT, "Team Offsite Photo", "")

    assert result.needs_text is False
    assert result.provider == Provider.RECRAFT
    assert result.category == 'team'
    assert result.base_prompt.startswith("Professional team collaboration image related to Team Offsite Photo")


def test_text_cues_in_body():
    classifier = PromptClassifier()

    assert classifier.classify(SlideKind.CONTENT, "Our Story", "Founded in 1998 in Berlin").needs_text
    assert classifier.classify(SlideKind.CONTENT, "Praise", 'She said "best tool ever"').needs_text
    assert classifier.classify(SlideKind.CONTENT, "Pricing", "Plans start at $9 per seat").needs_text
    assert classifier.classify(SlideKind.CONTENT, "Goals", "- Grow\n- Hire\n- Ship").needs_text


def test_title_kind_always_needs_text():
    classifier = PromptClassifier()
    result = classifier.classify(SlideKind.TITLE, "Mountains at dawn", "")

    assert result.needs_text is True
    assert result.provider == Provider.IDEOGRAM


def test_kind_hint_selects_category():
    classifier = PromptClassifier()
    result = classifier.classify(SlideKind.TIMELINE, "Our Journey", "From garage to global")

    assert result.category == 'timeline'
    assert result.needs_text is True
    assert result.base_prompt.startswith("Timeline visual showing progression of")


def test_title_keywords_match_whole_words_only():
    classifier = PromptClassifier()
    # "data" inside "database" must not trigger the data category
    result = classifier.classify(SlideKind.CONTENT, "Database migration", "")

    assert result.category is None
    assert result.needs_text is False
    assert result.base_prompt == "Database migration"


def test_explicit_image_prompt_is_used_verbatim():
    classifier = PromptClassifier()
    result = classifier.classify(SlideKind.CONTENT, "Quarterly numbers", "Sales up 30%",
                                 image_prompt="  A quiet forest lake at sunrise  ")

    assert result.base_prompt == "A quiet forest lake at sunrise"
    assert result.needs_text is False


def test_empty_slide_gets_generic_prompt():
    classifier = PromptClassifier()
    result = classifier.classify(SlideKind.CONTENT, "", "")

    assert result.base_prompt == PromptClassifier.GENERIC_PROMPT


def test_content_sample_is_truncated_and_tags_removed():
    classifier = PromptClassifier(content_word_limit=3)
    result = classifier.classify(
        SlideKind.CONTENT, "", "[IMAGE: office] one two three four five [NOTES: say hi]"
    )

    assert result.base_prompt == "one two three"


def test_short_prompts_are_not_enhanced():
    enhancer = PromptEnhancer(min_length=150)
    prompt = "Mountain lake"

    assert enhancer.enhance(prompt, Provider.IDEOGRAM) == prompt
    assert enhancer.enhance(prompt, Provider.RECRAFT) == prompt


def test_long_prompts_get_provider_modifiers():
    enhancer = PromptEnhancer(min_length=20)
    base = "A wide mountain lake with pine trees around it"

    ideogram = enhancer.enhance(base, Provider.IDEOGRAM)
    recraft = enhancer.enhance(base, Provider.RECRAFT)

    assert ideogram == base + (", clean vector style, minimalist illustration"
                               ", high-quality presentation graphic"
                               ", perfect for business presentation")
    assert recraft == base + (", professional realistic style"
                              ", highly detailed, 4K resolution"
                              ", well-lit environment")


def test_existing_modifiers_are_not_duplicated():
    enhancer = PromptEnhancer(min_length=10)
    base = "Detailed presentation slide backdrop in a flat design style"

    assert enhancer.enhance(base, Provider.IDEOGRAM) == base


def test_denylist_applies_to_recraft_only():
    enhancer = PromptEnhancer()

    assert enhancer.filter("A violent storm over the sea", Provider.RECRAFT) == "A storm over the sea"
    assert enhancer.filter("A Violent storm", Provider.IDEOGRAM) == "A Violent storm"
    # Whole words only
    assert enhancer.filter("Skill building workshop", Provider.RECRAFT) == "Skill building workshop"


def test_denylist_filtered_even_for_short_prompts():
    enhancer = PromptEnhancer(min_length=150)

    assert enhancer.enhance("Drug discovery lab", Provider.RECRAFT) == "discovery lab"


def test_unknown_style_resolves_to_corporate():
    assert resolve_style("steampunk") is STYLE_PRESETS[PresentationStyle.CORPORATE]
    assert resolve_style(None) is STYLE_PRESETS[PresentationStyle.CORPORATE]
    assert resolve_style(" Nature ") is STYLE_PRESETS[PresentationStyle.NATURE]


def test_build_request_for_data_slide():
    builder = ImageGenerationPromptBuilder(style="corporate", size="landscape")
    slide = Slide(id="s1", title="Q3 Revenue Growth", body="Revenue grew 42%")

    request = builder.build_request(slide)
    corporate = STYLE_PRESETS[PresentationStyle.CORPORATE]

    assert request.slide_id == "s1"
    assert request.provider == Provider.IDEOGRAM
    assert request.prompt.endswith(", " + corporate.prompt)
    assert request.negative_prompt == f"{IDEOGRAM_NEGATIVE_PROMPT}, {corporate.negative}"
    assert request.style == corporate.ideogram_style
    assert request.size == "landscape"


def test_build_request_for_photo_slide_uses_style_preference():
    builder = ImageGenerationPromptBuilder(style="nature")
    slide = Slide(id="s2", kind=SlideKind.PHOTO, title="Forest path")

    request = builder.build_request(slide)

    assert request.provider == Provider.RECRAFT
    assert request.style == 'realistic_image/natural_light'
    assert request.negative_prompt.startswith(RECRAFT_NEGATIVE_PROMPT)


def test_builder_accepts_a_custom_classifier():
    class AlwaysText(PromptClassifier):
        def classify_slide(self, slide):
            result = super().classify_slide(slide)
            return type(result)(result.base_prompt, True, result.category)

    builder = ImageGenerationPromptBuilder(classifier=AlwaysText())
    request = builder.build_request(Slide(id="s3", title="Team Offsite Photo"))

    assert request.provider == Provider.IDEOGRAM


@pytest.mark.parametrize("slide", [
    Slide(id="", title="No id"),
    Slide(id=None, title="No id"),
    Slide(id="s4", title=42),
])
def test_malformed_slides_raise(slide):
    builder = ImageGenerationPromptBuilder()

    with pytest.raises(SlideImageError):
        builder.build_request(slide)
