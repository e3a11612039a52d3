"""Pydantic models shared across generation, storage, and reconciliation layers."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

MAX_ITEMS = 12

CATEGORIES = ("Instagram Post", "Ad Creative", "Web Banner", "YouTube Thumbnail")
OBJECTIVES = ("High CTR", "Brand Awareness", "Conversion", "Engagement")
NICHES = (
    "Vlog/Lifestyle",
    "E-commerce",
    "Technology",
    "Health & Fitness",
    "Education",
    "Gaming",
    "Gastronomy",
    "Real Estate",
    "Finance",
)
STYLES = (
    "Ultra Realistic",
    "Cinematic",
    "Studio Lighting",
    "Minimalist",
    "Advertising",
    "Vibrant Neon",
    "3D Illustration",
    "Corporate Tech",
)
MOODS = (
    "Balanced",
    "Happy and Energetic",
    "Professional and Trustworthy",
    "Mysterious and Dark",
    "Luxurious and Elegant",
    "Urgent and High Impact",
    "Calm and Peaceful",
    "Futuristic and Innovative",
)
FORMATS = ("1:1", "9:16", "4:5", "16:9", "2:1")
TEXT_POSITIONS = (
    "Balanced Composition",
    "Top Center (Headline Style)",
    "Bottom Center (Subtitle Style)",
    "Dead Center (Big Impact)",
    "Left Side (Negative Space on Right)",
    "Right Side (Negative Space on Left)",
)


class GenerationSettings(BaseModel):
    """Snapshot of the options an artifact was generated with."""

    model_config = ConfigDict(frozen=True)

    category: str = ""
    description: str = ""
    text_on_image: str = ""
    cta_text: str = ""
    style: str = ""
    format: str = ""
    objective: str = ""
    niche: str = ""
    color_palette: str = ""


class Artifact(BaseModel):
    """One generated creative held in a user's gallery."""

    id: str
    url: str
    timestamp: int
    caption: str | None = None
    settings: GenerationSettings = Field(default_factory=GenerationSettings)

    def with_caption(self, caption: str) -> Artifact:
        return self.model_copy(update={"caption": caption})


class GenerationConfig(BaseModel):
    """User-selected options for one generation request."""

    category: str = "Instagram Post"
    model_count: int = Field(default=1, ge=1, le=3)
    objective: str = "High CTR"
    niche: str = ""
    text_on_image: str = ""
    text_position: str = "Balanced Composition"
    cta_text: str = ""
    show_cta: bool = False
    color_palette: str = ""
    description: str = ""
    negative_prompt: str = ""
    mood: str = "Balanced"
    style: str = "Cinematic"
    format: str = "1:1"
    reference_images: list[Path] = Field(default_factory=list)
    logo_image: Path | None = None

    def snapshot(self) -> GenerationSettings:
        return GenerationSettings(
            category=self.category,
            description=self.description,
            text_on_image=self.text_on_image,
            cta_text=self.cta_text,
            style=self.style,
            format=self.format,
            objective=self.objective,
            niche=self.niche,
            color_palette=self.color_palette,
        )


class EncodedImage(BaseModel):
    """Base64-encoded image ready to be sent inline to the model."""

    mime_type: str
    data: str

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


class BrandAnalysis(BaseModel):
    """Visual identity extracted from brand reference images."""

    palette: str = ""
    style: str = "Cinematic"
    niche_suggestion: str = Field(default="", alias="niche")

    model_config = ConfigDict(populate_by_name=True)
