"""
Unit tests for the lazy assistant registry
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from unittest.mock import patch

from services.assistants import AssistantRegistry
from services.project_service import InMemoryProjectStore, ProjectService


class TestAssistantRegistry:
    @patch('services.assistants.CodeGenerator')
    def test_generator_built_once(self, mock_generator):
        """Should build on first use and reuse afterwards"""
        registry = AssistantRegistry(ProjectService(InMemoryProjectStore()))

        first = registry.generator()
        second = registry.generator()

        assert first is second
        mock_generator.assert_called_once_with()

    @patch('services.assistants.ChatAssistant')
    def test_chat_gets_project_service(self, mock_chat):
        projects = ProjectService(InMemoryProjectStore())

        AssistantRegistry(projects).chat()

        mock_chat.assert_called_once_with(projects=projects)

    @patch('services.assistants.DesignAnalyzer')
    @patch('services.assistants.CodebaseAnalyzer')
    def test_reset(self, mock_analyzer, mock_design):
        registry = AssistantRegistry(ProjectService(InMemoryProjectStore()))
        registry.analyzer()
        registry.design()

        registry.reset()
        registry.analyzer()

        assert mock_analyzer.call_count == 2
        assert mock_design.call_count == 1

    def test_nothing_built_up_front(self):
        """Should not need provider keys until an assistant is requested"""
        with patch('services.assistants.CodeGenerator') as mock_generator:
            AssistantRegistry(ProjectService(InMemoryProjectStore()))

        mock_generator.assert_not_called()
