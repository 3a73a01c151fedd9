"""
Chat session state: documents are processed into a knowledge base, then each
user turn is answered against it.

    AWAITING_DOCUMENTS -> PROCESSING -> READY (idle <-> awaiting reply)

A session never returns to AWAITING_DOCUMENTS once it has been ready. A failed
reprocessing run leaves the previous knowledge base and transcript in place.
"""
import logging
import uuid
from enum import Enum
from typing import Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .errors import DocumentProcessingError
from .formats import UploadedFile
from .knowledge_base import build_knowledge_base

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Hi! Your documents are processed. Ask a question and I will answer based on them."
APOLOGY_MESSAGE = "Sorry, something went wrong reaching the assistant. Please try again."


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: Literal["user", "assistant"]
    content: str  # markdown

    def as_turn(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class SessionState(str, Enum):
    AWAITING_DOCUMENTS = "awaiting_documents"
    PROCESSING = "processing"
    READY = "ready"


class ChatSession:
    def __init__(self, answering_client):
        self.answering_client = answering_client
        self.knowledge_base = ""
        self.file_names: List[str] = []
        self.messages: List[ChatMessage] = []
        self.is_ready = False
        self.is_processing = False
        self.awaiting_reply = False

    @property
    def busy(self) -> bool:
        return self.is_processing or self.awaiting_reply

    @property
    def state(self) -> SessionState:
        if self.is_processing:
            return SessionState.PROCESSING
        if self.is_ready:
            return SessionState.READY
        return SessionState.AWAITING_DOCUMENTS

    async def process_documents(self, files: Sequence[UploadedFile]) -> bool:
        """
        Build a new knowledge base from `files` and start a fresh transcript.

        Returns False without doing anything when no files are given or another
        operation is in flight. Raises `DocumentProcessingError` when any file
        fails to extract; the previous state is kept in that case.
        """
        if not files or self.busy:
            return False

        self.is_processing = True
        try:
            knowledge_base = await build_knowledge_base(files)
        except Exception as exc:
            logger.exception("Error processing files: %s", ", ".join(f.name for f in files))
            raise DocumentProcessingError("Error processing files") from exc
        finally:
            self.is_processing = False

        self.knowledge_base = knowledge_base
        self.file_names = [f.name for f in files]
        self.messages = [ChatMessage(role="assistant", content=WELCOME_MESSAGE)]
        self.is_ready = True
        return True

    async def submit(self, text: str) -> Optional[ChatMessage]:
        """
        Append a user turn and the assistant's reply to the transcript.

        Blank input, an unready session or an in-flight operation make this a
        no-op returning None. Answering failures are replaced by an apology.
        """
        content = (text or "").strip()
        if not content or self.busy or not self.is_ready:
            return None

        self.messages.append(ChatMessage(role="user", content=content))
        self.awaiting_reply = True
        try:
            reply = await self.answering_client.answer(
                self.knowledge_base, [m.as_turn() for m in self.messages]
            )
            message = ChatMessage(role="assistant", content=reply)
        except Exception as exc:
            logger.error("Chat error: %s", exc)
            message = ChatMessage(role="assistant", content=APOLOGY_MESSAGE)
        finally:
            self.awaiting_reply = False

        self.messages.append(message)
        return message
