import logging
from typing import Optional

from core.settings import settings
from services.chat_service import ChatAssistant
from services.code_generation_service import CodebaseAnalyzer, CodeGenerator
from services.design_service import DesignAnalyzer
from services.project_service import ProjectService


class AssistantRegistry:
    """
    Builds the LLM-backed services on first use and reuses them afterwards,
    so the app can start (and serve the explorer) without provider keys.
    """

    def __init__(self, projects: ProjectService):
        self.projects = projects
        self._generator: Optional[CodeGenerator] = None
        self._analyzer: Optional[CodebaseAnalyzer] = None
        self._chat: Optional[ChatAssistant] = None
        self._design: Optional[DesignAnalyzer] = None

    def generator(self) -> CodeGenerator:
        if self._generator is None:
            logging.info(f"🔄 Initializing {settings.LLM_PROVIDER} code generator...")
            self._generator = CodeGenerator()
        return self._generator

    def analyzer(self) -> CodebaseAnalyzer:
        if self._analyzer is None:
            logging.info(f"🔄 Initializing {settings.LLM_PROVIDER} codebase analyzer...")
            self._analyzer = CodebaseAnalyzer()
        return self._analyzer

    def chat(self) -> ChatAssistant:
        if self._chat is None:
            logging.info(f"🔄 Initializing {settings.LLM_PROVIDER} chat assistant...")
            self._chat = ChatAssistant(projects=self.projects)
        return self._chat

    def design(self) -> DesignAnalyzer:
        if self._design is None:
            logging.info(f"🔄 Initializing {settings.LLM_PROVIDER} design analyzer...")
            self._design = DesignAnalyzer()
        return self._design

    def reset(self) -> None:
        """Drop cached clients, e.g. after the provider settings changed."""
        logging.info("🔄 Resetting LLM clients...")
        self._generator = None
        self._analyzer = None
        self._chat = None
        self._design = None
