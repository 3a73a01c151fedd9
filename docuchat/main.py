import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, File, HTTPException, UploadFile
from pydantic import BaseModel

from .answering import get_answering_client
from .config import configure_logging
from .errors import DocumentProcessingError
from .formats import UploadedFile
from .pdf_worker import worker_context
from .rendering import render_markdown
from .session import ChatMessage, ChatSession

# ------------------ Logging ------------------
configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    worker_context.shutdown()


# ------------------ Initialize app & session ------------------
app = FastAPI(title="DocuChat API", lifespan=lifespan)

session = ChatSession(get_answering_client())

# ------------------ Schemas ------------------
class ChatIn(BaseModel):
    message: str

class MessageOut(BaseModel):
    id: str
    role: str
    content: str
    html: Optional[str] = None  # None: show `content` as plain text


def to_message_out(message: ChatMessage) -> MessageOut:
    return MessageOut(
        id=message.id,
        role=message.role,
        content=message.content,
        html=render_markdown(message.content),
    )

# ------------------ Health ------------------
@app.get("/health")
async def health():
    return {"status": "ok"}

# ------------------ Session ------------------
@app.get("/session")
async def get_session():
    return {
        "state": session.state.value,
        "ready": session.is_ready,
        "files": session.file_names,
        "characters": len(session.knowledge_base),
        "messages": len(session.messages),
    }

# ------------------ Process Documents ------------------
@app.post("/documents")
async def process_documents(files: Optional[List[UploadFile]] = File(None)):
    """
    Upload PDF, DOCX or TXT files. All files are extracted and joined into a
    new knowledge base; the transcript restarts with a welcome message.
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files selected.")

    uploads = [
        UploadedFile(name=f.filename or "file", content_type=f.content_type or "", data=await f.read())
        for f in files
    ]

    try:
        accepted = await session.process_documents(uploads)
    except DocumentProcessingError:
        raise HTTPException(
            status_code=500,
            detail="Error processing files. Check the server log for details.",
        )
    if not accepted:
        raise HTTPException(status_code=409, detail="Another request is in progress.")

    return {
        "ready": True,
        "files": session.file_names,
        "characters": len(session.knowledge_base),
    }

# ------------------ Transcript ------------------
@app.get("/messages", response_model=List[MessageOut])
async def list_messages():
    return [to_message_out(m) for m in session.messages]

# ------------------ Chat ------------------
@app.post("/chat", response_model=MessageOut)
async def chat(payload: ChatIn):
    """
    Ask a question about the processed documents. Returns the assistant
    message added for this turn (an apology if the model could not be reached).
    """
    if not payload.message.strip():
        raise HTTPException(status_code=400, detail="Message must not be empty.")
    if not session.is_ready:
        raise HTTPException(status_code=409, detail="Process documents before asking questions.")

    message = await session.submit(payload.message)
    if message is None:
        raise HTTPException(status_code=409, detail="Another request is in progress.")
    return to_message_out(message)
