from __future__ import annotations

from adcraft.models import STYLES
from adcraft.prompting import (
    DEFAULT_PALETTE,
    ORTHOGRAPHY_RULES,
    build_brand_analysis_prompt,
    build_caption_prompt,
    build_enhance_prompt,
    build_prompt,
    style_instruction,
)


def test_build_prompt_given_ad_creative_when_called_then_objective_cta_and_rules_are_embedded(sample_config) -> None:
    # Given
    config = sample_config

    # When
    prompt = build_prompt(config)

    # Then
    assert 'TASK: Create a single image for a "Ad Creative" campaign.' in prompt
    assert "STYLE ENGINE: Vibrant Neon (Cyberpunk aesthetics" in prompt
    assert "CAMPAIGN OBJECTIVE: Conversion" in prompt
    assert f"COLOR PALETTE: {DEFAULT_PALETTE}" in prompt
    assert 'CTA Button/Badge: "Compre agora"' in prompt
    assert "TEXT PLACEMENT: Top Center (Headline Style)" in prompt
    assert "Ensure the subject is centered vertically" in prompt
    assert ORTHOGRAPHY_RULES in prompt
    assert "NEGATIVE PROMPT" not in prompt


def test_build_prompt_given_instagram_post_without_cta_when_called_then_optional_sections_are_omitted(
    sample_config,
) -> None:
    # Given
    config = sample_config.model_copy(
        update={"category": "Instagram Post", "show_cta": False, "color_palette": "Pastel pink", "format": "2:1"}
    )

    # When
    prompt = build_prompt(config)

    # Then
    assert "CAMPAIGN OBJECTIVE" not in prompt
    assert "NO additional buttons." in prompt
    assert "COLOR PALETTE: Pastel pink" in prompt
    assert "Create a wide panoramic composition." in prompt
    assert "Layout: Aesthetic composition." in prompt


def test_build_prompt_given_negative_prompt_when_called_then_avoid_section_is_added(sample_config) -> None:
    # Given
    config = sample_config.model_copy(update={"negative_prompt": "blurry faces"})

    # When
    prompt = build_prompt(config)

    # Then
    assert "AVOID THE FOLLOWING: blurry faces" in prompt


def test_build_prompt_given_logo_and_references_when_called_then_images_are_numbered_logo_first(
    sample_config,
) -> None:
    # Given
    config = sample_config

    # When
    prompt = build_prompt(config, has_logo=True, reference_count=3)

    # Then
    assert "Input Image #1 is the BRAND LOGO." in prompt
    assert "Input Images #2 to #4 are VISUAL REFERENCES." in prompt
    assert prompt.index("BRAND LOGO") < prompt.index("VISUAL REFERENCES")
    assert "IMAGE-TO-IMAGE EDITING" not in prompt


def test_build_prompt_given_single_reference_and_short_description_when_called_then_edit_mode_is_requested(
    sample_config,
) -> None:
    # Given
    config = sample_config.model_copy(update={"description": "Change the headline"})

    # When
    prompt = build_prompt(config, reference_count=1)

    # Then
    assert "Input Image #1 is a VISUAL REFERENCE." in prompt
    assert "MODE: IMAGE-TO-IMAGE EDITING." in prompt


def test_style_instruction_given_unknown_style_when_looked_up_then_default_is_returned() -> None:
    # Given
    style = "Watercolor"

    # When
    instruction = style_instruction(style)

    # Then
    assert instruction == "High quality professional design."


def test_auxiliary_prompts_given_context_when_built_then_context_is_embedded() -> None:
    # Given
    styles = STYLES

    # When
    caption = build_caption_prompt("Gastronomy", "Engagement")
    enhance = build_enhance_prompt("a burger", "Ad Creative", "Studio Lighting")
    brand = build_brand_analysis_prompt(styles)

    # Then
    assert "- Niche: Gastronomy" in caption
    assert "- Goal: Engagement" in caption
    assert '- User Input: "a burger"' in enhance
    assert "'Corporate Tech'" in brand
    assert '"niche"' in brand
