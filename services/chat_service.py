import logging
from typing import List, Optional

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from core.exceptions import GenerationError
from core.llm_factory import create_default_llm
from core.schemas import ChatMessage
from services.project_service import ProjectService


CHAT_MAX_TOKENS = 1000
FALLBACK_REPLY = "Sorry, I couldn't process your request."
BASE_SYSTEM_PROMPT = "You are a helpful AI assistant for WebCraft AI, a tool that helps users build websites with AI."


class ChatAssistant:
    """
    Conversational side of the product. When a project is given, the
    exchange is appended to that project's conversation.
    """

    def __init__(self, llm=None, projects: Optional[ProjectService] = None):
        self.llm = llm or create_default_llm(max_tokens=CHAT_MAX_TOKENS)
        self.projects = projects

    def reply(self, messages: List[ChatMessage], context: Optional[str] = None) -> str:
        system = f"{BASE_SYSTEM_PROMPT} Context: {context}" if context else BASE_SYSTEM_PROMPT
        history = [SystemMessage(content=system)]
        for message in messages:
            if message.role == "user":
                history.append(HumanMessage(content=message.content))
            else:
                history.append(AIMessage(content=message.content))

        try:
            response = self.llm.invoke(history)
        except Exception as e:
            logging.error(f"Chat failed: {e}")
            raise GenerationError(f"Failed to chat with AI: {e}") from e

        return response.content or FALLBACK_REPLY

    def send(self, project_id: str, text: str, context: Optional[str] = None) -> List[ChatMessage]:
        """Adds a user message to the project conversation and returns the updated history."""
        if self.projects is None:
            raise RuntimeError("ChatAssistant.send needs a ProjectService")

        conversation = self.projects.get_conversation(project_id)
        messages = list(conversation.messages) + [ChatMessage(role="user", content=text)]

        answer = self.reply(messages, context=context)
        messages.append(ChatMessage(role="assistant", content=answer))

        self.projects.update_conversation(project_id, messages)
        logging.info(f"💬 Conversation {project_id} now has {len(messages)} messages")
        return messages
