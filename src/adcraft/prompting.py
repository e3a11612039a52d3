from __future__ import annotations

from adcraft.models import GenerationConfig

STYLE_INSTRUCTIONS = {
    "Ultra Realistic": "Photorealistic, 8k resolution, raw photo, highly detailed textures, raytracing.",
    "Cinematic": (
        "Movie scene aesthetics, anamorphic lens flare, shallow depth of field, dramatic lighting, color graded."
    ),
    "Studio Lighting": (
        "Professional photography, softbox lighting, clean background, sharp focus, product photography standard."
    ),
    "Minimalist": "Clean lines, negative space, simple geometry, pastel or monochromatic tones, clutter-free.",
    "Advertising": (
        "High-end commercial look, persuasive, glossy finish, perfect composition for sales, punchy colors."
    ),
    "Vibrant Neon": "Cyberpunk aesthetics, neon lights, high contrast, saturated colors, glowing effects.",
    "3D Illustration": (
        "Pixar/Disney style or Octane Render, smooth surfaces, cute or stylized characters, soft lighting."
    ),
    "Corporate Tech": (
        "Blue and white palette, hex patterns, modern UI elements, trustworthy, professional, abstract data flows."
    ),
}
DEFAULT_STYLE_INSTRUCTION = "High quality professional design."

LAYOUT_INSTRUCTIONS = {
    "YouTube Thumbnail": (
        "Composition rule: Rule of Thirds. High contrast. Facial expressions must be exaggerated if present. "
        "Background must be exciting but slightly blurred to pop the subject."
    ),
    "Instagram Post": "Aesthetic composition. Balanced visual weight. Lifestyle approach.",
    "Web Banner": "Horizontal layout. Leave clear empty space (negative space) on the side for text readability.",
}

DEFAULT_PALETTE = "Harmonious professional palette matching the style."

ORTHOGRAPHY_RULES = """*** STRICT ORTHOGRAPHY RULES ***
1. PRESERVE DOUBLE LETTERS ("SS"):
   - Words like "Passo", "Sucesso", "Processo", "Isso", "Massa" MUST KEEP THE DOUBLE 'S'.
   - NEVER simplify to single 'S' (e.g. "Paso" is WRONG).

2. PRESERVE EQUAL WORDS:
   - If a word appears twice, SPELL IT IDENTICALLY BOTH TIMES.
   - Example: "Passo a Passo" -> BOTH must have "SS".
   - Do NOT write "Passo a Paso".

3. VERBATIM COPY:
   - Render the text EXACTLY as typed in "Headline/Text"."""

LOGO_INSTRUCTIONS = """INSTRUCTION: Place this logo into the image as a SMALL, DISCRETE SIGNATURE.

SIZE CONSTRAINT:
- The logo MUST be small (approx. 15% of the image width).
- Do NOT make it giant or dominant. It should not compete with the main subject.

POSITION:
- Corner (Top-Right or Top-Left) or Bottom-Center.
- Keep it purely 2D (Overlay/Watermark style).

STRICT RULES:
1. Do NOT distort the logo.
2. Do NOT turn it into a 3D object.
3. Maintain high contrast visibility."""

# Short descriptions with a single reference switch the model to editing mode.
IMAGE_EDIT_DESCRIPTION_LIMIT = 50


def style_instruction(style: str) -> str:
    return STYLE_INSTRUCTIONS.get(style, DEFAULT_STYLE_INSTRUCTION)


def _reference_section(first_index: int, count: int, description: str) -> str:
    if count > 1:
        header = (
            f"Input Images #{first_index} to #{first_index + count - 1} are VISUAL REFERENCES.\n"
            "INSTRUCTION: Use the composition, lighting mood, and color grading of these images as a guide."
        )
    else:
        header = (
            f"Input Image #{first_index} is a VISUAL REFERENCE.\n"
            "INSTRUCTION: Use the composition, lighting mood, and color grading of this image as a guide."
        )
    lines = ["--- VISUAL REFERENCES ---", header]
    if count == 1 and len(description) < IMAGE_EDIT_DESCRIPTION_LIMIT:
        lines.extend(
            [
                "",
                "MODE: IMAGE-TO-IMAGE EDITING.",
                "Keep the main structure of the Reference Image. Only change the text or correct the details requested.",
            ]
        )
    return "\n".join(lines)


def build_prompt(config: GenerationConfig, has_logo: bool = False, reference_count: int = 0) -> str:
    """Compose the image prompt from the user's options.

    Attached images are referred to by position: the logo, when present, is
    Input Image #1 and references follow it.
    """
    sections: list[str] = [
        "ROLE: You are an Elite Digital Artist and Art Director.\n"
        f'TASK: Create a single image for a "{config.category}" campaign.'
    ]

    identity = [
        "--- VISUAL IDENTITY & PARAMETERS ---",
        f"STYLE ENGINE: {config.style} ({style_instruction(config.style)})",
        f"ATMOSPHERE / MOOD: {config.mood or 'Professional'} "
        "(Ensure lighting and colors reflect this emotion).",
        f"TARGET AUDIENCE/NICHE: {config.niche}",
    ]
    if config.category == "Ad Creative":
        identity.append(
            f"CAMPAIGN OBJECTIVE: {config.objective} (Optimize visual elements to achieve this)."
        )
    identity.append(f"COLOR PALETTE: {config.color_palette or DEFAULT_PALETTE}")
    sections.append("\n".join(identity))

    sections.append(f"--- SCENE DESCRIPTION ---\n{config.description}")

    composition = [
        "--- COMPOSITION & ASPECT RATIO ---",
        f"Desired Aspect Ratio: {config.format}",
        f"Instructions: Compose the image to fit strictly within a {config.format} frame.",
    ]
    if config.format == "4:5":
        composition.append("Ensure the subject is centered vertically with space at top/bottom.")
    elif config.format == "2:1":
        composition.append("Create a wide panoramic composition.")
    sections.append("\n".join(composition))

    if config.show_cta and config.cta_text:
        cta_line = f'CTA Button/Badge: "{config.cta_text}"'
    else:
        cta_line = "NO additional buttons."
    sections.append(
        "\n".join(
            [
                "--- COPYWRITING & TEXT RENDERING (CRITICAL) ---",
                "The image MUST include the following text rendered visibly:",
                f'Headline/Text: "{config.text_on_image}"',
                cta_line,
                "",
                f"TEXT PLACEMENT: {config.text_position or 'Balanced Composition'}",
                "",
                ORTHOGRAPHY_RULES,
            ]
        )
    )

    if config.negative_prompt.strip():
        sections.append(
            "--- NEGATIVE PROMPT (AVOID) ---\n"
            f'AVOID THE FOLLOWING: {config.negative_prompt}, Spanish spelling, Typos, Missing letters, "Paso", "Suceso".'
        )

    image_index = 1
    if has_logo:
        sections.append(
            f"--- BRANDING ASSETS (CRITICAL) ---\nInput Image #{image_index} is the BRAND LOGO.\n{LOGO_INSTRUCTIONS}"
        )
        image_index += 1

    if reference_count > 0:
        sections.append(_reference_section(image_index, reference_count, config.description))

    sections.append(
        "--- FINAL OUTPUT RULES ---\n"
        f"- Layout: {LAYOUT_INSTRUCTIONS.get(config.category, '')}\n"
        "- Quality: 4k, high resolution, sharp details."
    )

    return "\n\n".join(sections) + "\n"


def build_caption_prompt(niche: str, objective: str) -> str:
    return (
        "You are a Social Media Manager Expert.\n\n"
        "TASK: Write a captivating Instagram caption for this image.\n"
        "CONTEXT:\n"
        f"- Niche: {niche}\n"
        f"- Goal: {objective}\n\n"
        "INSTRUCTIONS:\n"
        "- Write in Portuguese (Brazil).\n"
        "- Use an engaging tone suitable for the niche.\n"
        "- Start with a strong hook.\n"
        "- Include a Call to Action (CTA) at the end.\n"
        "- Add 5-10 relevant and trending hashtags.\n"
        "- Keep it concise (under 100 words).\n"
    )


def build_enhance_prompt(description: str, category: str, style: str) -> str:
    return (
        "ACT AS A PROFESSIONAL PROMPT ENGINEER.\n"
        "Rewrite the following simple description into a detailed, high-quality image generation prompt.\n\n"
        "CONTEXT:\n"
        f'- User Input: "{description}"\n'
        f"- Category: {category}\n"
        f"- Desired Style: {style}\n\n"
        "INSTRUCTIONS:\n"
        "- Add details about lighting, camera angle, texture, and mood.\n"
        "- Keep it concise but descriptive (approx 40-60 words).\n"
        "- Ensure it fits the selected Style.\n"
        '- Output ONLY the rewritten prompt text. No "Here is the prompt" prefix.\n'
    )


def build_brand_analysis_prompt(styles: tuple[str, ...]) -> str:
    style_list = ", ".join(f"'{style}'" for style in styles)
    return (
        "You are a Brand Identity Expert. Analyze these images.\n\n"
        "TASK: Extract the visual identity.\n\n"
        "OUTPUT FORMAT: JSON ONLY (No Markdown, No code blocks).\n"
        "Structure:\n"
        "{\n"
        '  "palette": "String describing main hex colors (e.g., #FF0000, #000000) and the mood (e.g., Dark & Neon)",\n'
        f'  "style": "One exact value from this list: [{style_list}]",\n'
        '  "niche": "A short suggestion for the industry niche based on the images"\n'
        "}\n\n"
        "Choose the 'style' that BEST matches the provided images.\n"
    )
