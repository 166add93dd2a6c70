"""
Unit tests for Chat Service
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from unittest.mock import Mock, MagicMock, patch
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from core.exceptions import GenerationError
from core.schemas import ChatMessage
from services.chat_service import BASE_SYSTEM_PROMPT, CHAT_MAX_TOKENS, FALLBACK_REPLY, ChatAssistant
from services.project_service import InMemoryProjectStore, ProjectService


def llm_returning(content):
    mock_llm = Mock(spec=BaseChatModel)
    mock_response = MagicMock()
    mock_response.content = content
    mock_llm.invoke.return_value = mock_response
    return mock_llm


class TestReply:
    """Test single replies"""

    def test_reply_maps_roles(self):
        """Should send a system prompt then user / assistant turns"""
        mock_llm = llm_returning("Sure!")
        history = [
            ChatMessage(role="user", content="Hi"),
            ChatMessage(role="assistant", content="Hello"),
            ChatMessage(role="user", content="Make the header blue"),
        ]

        answer = ChatAssistant(mock_llm).reply(history)

        messages = mock_llm.invoke.call_args.args[0]
        assert answer == "Sure!"
        assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
        assert messages[0].content == BASE_SYSTEM_PROMPT

    def test_reply_includes_context(self):
        mock_llm = llm_returning("ok")

        ChatAssistant(mock_llm).reply([ChatMessage(role="user", content="?")], context="Project: Shop")

        system = mock_llm.invoke.call_args.args[0][0]
        assert system.content.endswith("Context: Project: Shop")

    def test_empty_reply_falls_back(self):
        assert ChatAssistant(llm_returning("")).reply([ChatMessage(role="user", content="?")]) == FALLBACK_REPLY

    def test_reply_failure(self):
        """Should wrap provider errors"""
        mock_llm = Mock(spec=BaseChatModel)
        mock_llm.invoke.side_effect = ConnectionError("network down")

        with pytest.raises(GenerationError) as exc_info:
            ChatAssistant(mock_llm).reply([ChatMessage(role="user", content="?")])

        assert "Failed to chat with AI" in str(exc_info.value)

    @patch('services.chat_service.create_default_llm')
    def test_default_llm(self, mock_create):
        ChatAssistant()

        mock_create.assert_called_once_with(max_tokens=CHAT_MAX_TOKENS)


class TestSend:
    """Test conversation persistence"""

    def test_send_appends_exchange(self):
        projects = ProjectService(InMemoryProjectStore())
        project = projects.create_project("Site")
        assistant = ChatAssistant(llm_returning("Done"), projects=projects)

        messages = assistant.send(project.id, "Add a footer")

        assert [(m.role, m.content) for m in messages] == [("user", "Add a footer"), ("assistant", "Done")]
        assert len(projects.get_conversation(project.id).messages) == 2

        assistant.send(project.id, "Thanks")
        assert len(projects.get_conversation(project.id).messages) == 4

    def test_failed_send_keeps_history(self):
        """Should not persist a half exchange"""
        projects = ProjectService(InMemoryProjectStore())
        project = projects.create_project("Site")
        mock_llm = Mock(spec=BaseChatModel)
        mock_llm.invoke.side_effect = RuntimeError("boom")

        with pytest.raises(GenerationError):
            ChatAssistant(mock_llm, projects=projects).send(project.id, "Hello")

        assert projects.get_conversation(project.id).messages == []

    def test_send_requires_project_service(self):
        with pytest.raises(RuntimeError):
            ChatAssistant(llm_returning("x")).send("p1", "Hello")
