import json
import logging
from typing import List, Optional

from langchain_core.messages import SystemMessage, HumanMessage
from pydantic import BaseModel, Field, field_validator

from core.exceptions import GenerationError
from core.llm_factory import create_default_llm


GENERATION_MAX_TOKENS = 4000


class CodeGenerationRequest(BaseModel):
    description: str
    target_components: List[str]
    figma_link: Optional[str] = None
    screenshots: List[str] = Field(default_factory=list)  # base64 JPEG
    existing_code: Optional[str] = None

    @field_validator("description")
    @classmethod
    def _description_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Description is required")
        return value.strip()

    @field_validator("target_components")
    @classmethod
    def _components_required(cls, value: List[str]) -> List[str]:
        value = [c.strip() for c in value if c and c.strip()]
        if not value:
            raise ValueError("At least one target component is required")
        return value


class CodeGenerationResponse(BaseModel):
    updated_code: str = ""
    explanation: str = ""
    questions: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)


class ComponentAnalysis(BaseModel):
    components: List[str] = Field(default_factory=list)
    framework: str = "Unknown"
    suggestions: List[str] = Field(default_factory=list)


def clean_json_output(content: str) -> str:
    """Fixes common LLM JSON formatting issues."""
    if "```json" in content:
        content = content.split("```json")[1].split("```")[0]
    elif "```" in content:
        content = content.split("```")[1].split("```")[0]
    return content.strip() or "{}"


def image_part(screenshot_b64: str) -> dict:
    return {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{screenshot_b64}"}}


class CodeGenerator:
    """
    Turns a natural-language UI request into updated component code.
    """
    def __init__(self, llm=None):
        self.llm = llm or create_default_llm(json_mode=True, max_tokens=GENERATION_MAX_TOKENS)

    def generate(self, request: CodeGenerationRequest) -> CodeGenerationResponse:
        logging.info(f"🔨 Generating code for: {', '.join(request.target_components)}")

        prompt = (
            "Generate updated React components based on this request:\n\n"
            f"Description: {request.description}\n"
            f"Target Components: {', '.join(request.target_components)}\n"
        )
        if request.figma_link:
            prompt += f"\nFigma Link: {request.figma_link}"
        if request.existing_code:
            prompt += f"\nExisting Code:\n{request.existing_code}"

        messages = [
            SystemMessage(content=(
                "You are an expert React/Next.js developer. Generate clean, production-ready code "
                "based on user requirements. Always preserve existing functionality while implementing "
                "requested changes. Respond with JSON in this format: "
                "{ 'updatedCode': string, 'explanation': string, 'questions': string[], 'dependencies': string[] }"
            )),
            HumanMessage(content=prompt),
        ]
        for screenshot in request.screenshots:
            messages.append(HumanMessage(content=[
                {"type": "text", "text": "Please also consider this design reference:"},
                image_part(screenshot),
            ]))

        try:
            response = self.llm.invoke(messages)
            result = json.loads(clean_json_output(response.content))
            if not isinstance(result, dict):
                raise ValueError(f"expected a JSON object, got {type(result).__name__}")
            return CodeGenerationResponse(
                updated_code=result.get("updatedCode") or "",
                explanation=result.get("explanation") or "",
                questions=result.get("questions") or [],
                dependencies=result.get("dependencies") or [],
            )
        except Exception as e:
            logging.error(f"Code generation failed: {e}")
            raise GenerationError(f"Failed to generate code: {e}") from e


class CodebaseAnalyzer:
    """Asks the model which components and framework a codebase has."""

    def __init__(self, llm=None):
        self.llm = llm or create_default_llm(json_mode=True)

    def analyze(self, codebase: str) -> ComponentAnalysis:
        logging.info("🧠 Analyzing codebase...")
        messages = [
            SystemMessage(content=(
                "You are a React/Next.js code analysis expert. Analyze the provided codebase and extract "
                "information about components, framework, and provide suggestions for improvements. "
                "Respond with JSON in this format: "
                "{ 'components': string[], 'framework': string, 'suggestions': string[] }"
            )),
            HumanMessage(content=f"Analyze this codebase:\n\n{codebase}"),
        ]

        try:
            response = self.llm.invoke(messages)
            result = json.loads(clean_json_output(response.content))
            if not isinstance(result, dict):
                raise ValueError(f"expected a JSON object, got {type(result).__name__}")
            return ComponentAnalysis(
                components=result.get("components") or [],
                framework=result.get("framework") or "Unknown",
                suggestions=result.get("suggestions") or [],
            )
        except Exception as e:
            logging.error(f"Codebase analysis failed: {e}")
            raise GenerationError(f"Failed to analyze codebase: {e}") from e
