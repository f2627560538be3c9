from pydantic import BaseModel, Field
from typing import Optional, List


class IdeogramInput(BaseModel):
    """Request body for fal-ai/ideogram/v2"""
    prompt: str
    negative_prompt: str
    style: str = Field(description="auto | general | realistic | design | render_3D | anime")
    aspect_ratio: str = Field(default="1:1", description="e.g. 1:1, 16:9, 9:16, 4:3, 3:4")
    expand_prompt: bool = True  # Let the model elaborate the prompt


class RecraftInput(BaseModel):
    """Request body for fal-ai/recraft-20b"""
    prompt: str
    negative_prompt: str
    style: str
    aspect_ratio: str = "1:1"
    num_images: int = 1
    seed: Optional[int] = None


class ImageReference(BaseModel):
    url: str = Field(min_length=1)
    width: Optional[int] = None
    height: Optional[int] = None
    content_type: Optional[str] = None


class ImageGenerationResponse(BaseModel):
    """Successful fal.ai response; only ``images[0].url`` is used."""
    images: List[ImageReference] = Field(default_factory=list)
    seed: Optional[int] = None
    prompt: Optional[str] = None
