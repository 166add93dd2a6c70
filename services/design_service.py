import base64
import io
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from langchain_core.messages import HumanMessage
from PIL import Image, UnidentifiedImageError

from core.exceptions import GenerationError, InvalidDesignImageError
from core.llm_factory import create_default_llm
from core.settings import settings
from services.code_generation_service import image_part


DESIGN_MAX_TOKENS = 500
MAX_IMAGE_SIDE = 2048
FALLBACK_ANALYSIS = "Could not analyze the image."
ANALYSIS_PROMPT = (
    "Analyze this design image and provide detailed description of the UI elements, layout, colors, "
    "typography, and any interactive components you can identify. Focus on aspects that would be useful "
    "for implementing this design in React/Next.js."
)


def prepare_screenshot(data: bytes) -> str:
    """
    Opens an uploaded screenshot, downsizes it if needed and returns it as
    base64 JPEG, the format the vision prompt declares.
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidDesignImageError(f"Not a readable image: {e}") from e

    if image.mode != "RGB":
        image = image.convert("RGB")
    image.thumbnail((MAX_IMAGE_SIDE, MAX_IMAGE_SIDE))

    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=85)
    return base64.b64encode(buffer.getvalue()).decode("ascii")


@dataclass
class DesignUploadResult:
    analyses: List[str] = field(default_factory=list)
    screenshots: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Successfully analyzed {len(self.screenshots)} design image(s)"


class DesignAnalyzer:
    """Describes a design reference so it can steer code generation."""

    def __init__(self, llm=None):
        self.llm = llm or create_default_llm(max_tokens=DESIGN_MAX_TOKENS)

    def analyze(self, screenshot_b64: str) -> str:
        messages = [HumanMessage(content=[
            {"type": "text", "text": ANALYSIS_PROMPT},
            image_part(screenshot_b64),
        ])]
        try:
            response = self.llm.invoke(messages)
        except Exception as e:
            logging.error(f"Design analysis failed: {e}")
            raise GenerationError(f"Failed to analyze design image: {e}") from e
        return response.content or FALLBACK_ANALYSIS

    def analyze_uploads(self, uploads: Sequence[bytes], limit: Optional[int] = None) -> DesignUploadResult:
        limit = limit or settings.MAX_SCREENSHOTS
        if not uploads:
            raise InvalidDesignImageError("At least one image file is required")
        if len(uploads) > limit:
            raise InvalidDesignImageError(f"At most {limit} design images per request")

        result = DesignUploadResult()
        for data in uploads:
            encoded = prepare_screenshot(data)
            result.screenshots.append(encoded)
            result.analyses.append(self.analyze(encoded))

        logging.info(f"🎨 {result.message}")
        return result
