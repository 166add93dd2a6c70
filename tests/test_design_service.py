"""
Unit tests for Design Service

Screenshots are generated with Pillow.
"""

import base64
import io
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from PIL import Image
from unittest.mock import Mock, MagicMock
from langchain_core.language_models.chat_models import BaseChatModel

from core.exceptions import GenerationError, InvalidDesignImageError
from services.design_service import (
    FALLBACK_ANALYSIS,
    MAX_IMAGE_SIDE,
    DesignAnalyzer,
    prepare_screenshot,
)


def png_bytes(size=(40, 20), mode="RGBA"):
    buffer = io.BytesIO()
    Image.new(mode, size, color=(255, 0, 0, 255) if mode == "RGBA" else "red").save(buffer, format="PNG")
    return buffer.getvalue()


def llm_returning(content):
    mock_llm = Mock(spec=BaseChatModel)
    mock_response = MagicMock()
    mock_response.content = content
    mock_llm.invoke.return_value = mock_response
    return mock_llm


class TestPrepareScreenshot:
    """Test image normalization"""

    def test_returns_jpeg_base64(self):
        encoded = prepare_screenshot(png_bytes())

        image = Image.open(io.BytesIO(base64.b64decode(encoded)))
        assert image.format == "JPEG"
        assert image.mode == "RGB"
        assert image.size == (40, 20)

    def test_downsizes_large_images(self):
        encoded = prepare_screenshot(png_bytes(size=(MAX_IMAGE_SIDE * 2, 100), mode="RGB"))

        image = Image.open(io.BytesIO(base64.b64decode(encoded)))
        assert max(image.size) == MAX_IMAGE_SIDE

    def test_rejects_non_images(self):
        with pytest.raises(InvalidDesignImageError):
            prepare_screenshot(b"not an image at all")


class TestDesignAnalyzer:
    """Test design analysis with a mocked LLM"""

    def test_analyze_sends_image(self):
        mock_llm = llm_returning("A hero section with a centered CTA")

        result = DesignAnalyzer(mock_llm).analyze("AAAA")

        content = mock_llm.invoke.call_args.args[0][0].content
        assert result == "A hero section with a centered CTA"
        assert content[1]["image_url"]["url"] == "data:image/jpeg;base64,AAAA"

    def test_analyze_empty_reply(self):
        assert DesignAnalyzer(llm_returning("")).analyze("AAAA") == FALLBACK_ANALYSIS

    def test_analyze_failure(self):
        mock_llm = Mock(spec=BaseChatModel)
        mock_llm.invoke.side_effect = RuntimeError("vision not supported")

        with pytest.raises(GenerationError):
            DesignAnalyzer(mock_llm).analyze("AAAA")

    def test_analyze_uploads(self):
        analyzer = DesignAnalyzer(llm_returning("Two column layout"))

        result = analyzer.analyze_uploads([png_bytes(), png_bytes()])

        assert len(result.screenshots) == 2
        assert result.analyses == ["Two column layout", "Two column layout"]
        assert result.message == "Successfully analyzed 2 design image(s)"

    def test_analyze_uploads_requires_images(self):
        with pytest.raises(InvalidDesignImageError):
            DesignAnalyzer(llm_returning("x")).analyze_uploads([])

    def test_analyze_uploads_limit(self):
        with pytest.raises(InvalidDesignImageError):
            DesignAnalyzer(llm_returning("x")).analyze_uploads([png_bytes()] * 3, limit=2)
