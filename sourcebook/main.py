"""Sourcebook FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Literal

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from sourcebook.backends.gateway import GatewayBackend
from sourcebook.config import settings
from sourcebook.db.database import Database
from sourcebook.drive.client import DriveClient
from sourcebook.drive.tokens import DriveTokenManager
from sourcebook.errors import InvalidRequestError, SourcebookError
from sourcebook.models.chat import ChatIntent, CitedSource, Message, Role
from sourcebook.models.source import Source
from sourcebook.models.workspace import Note, NoteFormat
from sourcebook.orchestrator.assembler import ChatOrchestrator
from sourcebook.orchestrator.fetcher import ContentFetcher, build_pdf_extractor
from sourcebook.orchestrator.summarizer import DocumentSummarizer
from sourcebook.storage.blob import build_storage

logger = logging.getLogger(__name__)

db = Database(settings.database_path)
token_manager = DriveTokenManager(db)
drive_client = DriveClient(token_manager)
fetcher = ContentFetcher(build_storage(), drive_client, build_pdf_extractor())
backend = GatewayBackend()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await db.connect()
    yield
    await db.close()


app = FastAPI(
    title="Sourcebook",
    description="Research workspace assistant grounded in your own documents",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SourcebookError)
async def sourcebook_error_handler(request: Request, exc: SourcebookError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'][1:])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})


# --- Dependencies ---


def get_store() -> Database:
    return db


def get_tokens() -> DriveTokenManager:
    return token_manager


def get_drive() -> DriveClient:
    return drive_client


def get_orchestrator() -> ChatOrchestrator:
    return ChatOrchestrator(db, fetcher, backend)


def get_summarizer() -> DocumentSummarizer:
    return DocumentSummarizer(fetcher, backend)


# --- Request / Response models ---


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CitedSourceOut(ApiModel):
    id: str
    name: str


class ChatMessageIn(ApiModel):
    role: Literal["user", "assistant"]
    content: str
    sources: list[CitedSourceOut] = Field(default_factory=list)


class ChatRequest(ApiModel):
    messages: list[ChatMessageIn] = Field(min_length=1)
    project_id: str | None = Field(default=None, alias="projectId")
    source_ids: list[str] | None = Field(default=None, alias="sourceIds")
    intent: ChatIntent | None = None


class ChatResponse(ApiModel):
    message: str
    sources: list[CitedSourceOut]


class SourceRecord(ApiModel):
    id: str
    name: str
    type: str
    size: int = 0
    file_path: str
    uploaded_at: datetime | None = None
    project_id: str | None = None


class SummarizeRequest(ApiModel):
    source: SourceRecord | None = None
    source_id: str | None = Field(default=None, alias="sourceId")


class SummarizeResponse(ApiModel):
    summary: str


class SaveNoteRequest(ApiModel):
    title: str = Field(min_length=1)
    content: str
    question: str | None = None
    project_id: str | None = Field(default=None, alias="projectId")


class ReorderTasksRequest(ApiModel):
    task_ids: list[str] = Field(alias="taskIds", min_length=1)


class DriveAuthRequest(ApiModel):
    action: Literal["init", "callback"]
    code: str | None = None


# --- Routes ---


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/chat", response_model=ChatResponse)
async def chat(req: ChatRequest, orchestrator: ChatOrchestrator = Depends(get_orchestrator)):
    """Answer the latest message, grounded in the workspace's data."""
    intent = req.intent or ChatIntent.for_request(req.source_ids)
    result = await orchestrator.converse(
        [
            Message(
                role=Role(m.role),
                content=m.content,
                sources=[CitedSource(id=s.id, name=s.name) for s in m.sources],
            )
            for m in req.messages
        ],
        project_id=req.project_id,
        source_ids=req.source_ids,
        intent=intent,
    )
    return ChatResponse(
        message=result.answer,
        sources=[CitedSourceOut(id=s.id, name=s.name) for s in result.cited_sources],
    )


@app.post("/api/summarize", response_model=SummarizeResponse)
async def summarize(
    req: SummarizeRequest,
    summarizer: DocumentSummarizer = Depends(get_summarizer),
    store: Database = Depends(get_store),
):
    """Summarize one document, given inline or by id."""
    if req.source is not None:
        source = Source.from_record(req.source.model_dump(exclude_none=True))
    elif req.source_id:
        source = await store.get_source(req.source_id)
        if source is None:
            raise InvalidRequestError(f"Unknown source: {req.source_id}")
    else:
        raise InvalidRequestError("Invalid request: a source record or sourceId is required")
    return SummarizeResponse(summary=await summarizer.summarize(source))


@app.post("/api/notes")
async def save_answer_as_note(req: SaveNoteRequest, store: Database = Depends(get_store)):
    """Persist an assistant answer as a Markdown note."""
    note = Note(
        title=req.title,
        content=req.content,
        format=NoteFormat.MARKDOWN,
        source_question=req.question,
        project_id=req.project_id,
    )
    return {"id": await store.add_note(note)}


@app.post("/api/tasks/reorder")
async def reorder_tasks(req: ReorderTasksRequest, store: Database = Depends(get_store)):
    await store.reorder_tasks(req.task_ids)
    return {"success": True}


@app.get("/api/drive/files")
async def list_drive_files(drive: DriveClient = Depends(get_drive)):
    return {"files": await drive.list_files()}


@app.post("/api/drive/auth")
async def drive_auth(req: DriveAuthRequest, tokens: DriveTokenManager = Depends(get_tokens)):
    if req.action == "init":
        return {"authUrl": tokens.authorization_url()}
    if not req.code:
        raise InvalidRequestError("Authorization code is required")
    await tokens.exchange_code(settings.workspace_user, req.code)
    return {"success": True}


@app.get("/api/drive/auth/callback")
async def drive_auth_callback(
    code: str | None = None,
    error: str | None = None,
    tokens: DriveTokenManager = Depends(get_tokens),
):
    """OAuth redirect target."""
    if error:
        raise InvalidRequestError(f"Authorization cancelled: {error}")
    if not code:
        raise InvalidRequestError("Missing authorization code")
    await tokens.exchange_code(settings.workspace_user, code)
    return {"success": True}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
