"""
Historian Chat Server

FastAPI server answering questions about the interview corpus.

Endpoints:
- GET  /: Liveness message
- GET  /health: Corpus and provider status
- GET  /api/chat: Usage hint
- POST /api/chat: Ask a question within a session
- GET  /api/chat/history/{qualtrics_id}: Logged messages of one participant

Pipeline (POST /api/chat):
1. Log the user message
2. Lock the session (when a sessionId is given), read its history
3. Retrieve context (RetrievalController)
4. Compose the cited answer (AnswerSynthesizer)
5. Append user + assistant turns to the session, log the answer
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import List, Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..common.config import load_config, HistorianConfig, ensure_directories
from ..common.embedding_service import EmbeddingService, get_embedding_service
from ..common.errors import EmbeddingProviderError, GenerationProviderError
from ..common.llm_client import LLMClient
from ..common.schemas import ConversationTurn, RetrievalResult, Role
from ..retriever import AnswerSynthesizer, CorpusStore, RetrievalController
from .chat_log import ChatLog
from .session_store import SessionStore

logger = logging.getLogger("historian.server.app")


# Global state
config: Optional[HistorianConfig] = None
corpus: Optional[CorpusStore] = None
embedding_service: Optional[EmbeddingService] = None
controller: Optional[RetrievalController] = None
synthesizer: Optional[AnswerSynthesizer] = None
session_store: Optional[SessionStore] = None
chat_log: Optional[ChatLog] = None


def _model_for(llm_config) -> str:
    return {
        "openai": llm_config.openai_model,
        "anthropic": llm_config.anthropic_model,
        "google": llm_config.google_model,
    }.get(llm_config.provider, "")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize components on startup; a broken corpus aborts startup"""
    global config, corpus, embedding_service, controller, synthesizer, session_store, chat_log

    print("[Historian] Starting up...")
    ensure_directories()

    config = load_config()

    # CorpusLoadError propagates: never serve from a partial corpus
    print(f"[Historian] Loading corpus from {config.corpus.embeddings_path}...")
    corpus = CorpusStore.load(config.corpus.embeddings_path, config.corpus.metadata_path)
    print(f"[Historian] Corpus ready: {corpus.size} chunks, {corpus.document_count} interviews")

    embedding_service = get_embedding_service(
        mode=config.embedding.mode,
        model=config.embedding.model,
        openai_api_key=config.embedding.openai_api_key or None,
    )
    if not embedding_service.is_available:
        print("[Historian] Warning: embedding provider unavailable, chat requests will fail")

    controller = RetrievalController.from_config(corpus, embedding_service, config.retriever)

    llm_client = LLMClient(
        provider=config.llm.provider,
        model=_model_for(config.llm),
        openai_api_key=config.llm.openai_api_key or None,
        anthropic_api_key=config.llm.anthropic_api_key or None,
        google_api_key=config.llm.google_api_key or None,
    )
    synthesizer = AnswerSynthesizer.from_config(llm_client, config.llm)
    print(f"[Historian] LLM: {config.llm.provider} (available: {llm_client.is_available})")

    session_store = SessionStore()
    chat_log = ChatLog(config.server.chat_log_path)

    print("[Historian] Ready to answer questions")

    yield

    print("[Historian] Shutting down...")


app = FastAPI(
    title="Historian",
    description="Question answering over oral history interviews",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=load_config().server.cors_origins,
    allow_methods=["GET", "POST"],
    allow_credentials=True,
    allow_headers=["Content-Type", "Authorization"],
)


# =============================================================================
# Request/Response Models
# =============================================================================

class ChatRequest(BaseModel):
    """Chat request body (camelCase keys as sent by the survey frontend)"""
    model_config = ConfigDict(populate_by_name=True)

    question: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    qualtrics_id: Optional[str] = Field(default=None, alias="qualtricsId")


class ChatResponse(BaseModel):
    response: str


def _error(status_code: int, message: str, stage: Optional[str] = None) -> JSONResponse:
    body = {"error": message, "status": "error"}
    if stage:
        body["stage"] = stage
    return JSONResponse(status_code=status_code, content=body)


async def answer_question(question: str, history: List[ConversationTurn]) -> str:
    """Retrieve context and compose the answer for one question"""
    retrieval: RetrievalResult = await controller.retrieve_context(question, history)
    return await synthesizer.acompose(question, history, retrieval)


async def _respond(question: str, history: List[ConversationTurn]) -> Union[str, JSONResponse]:
    """Answer text, or the error response for a failed stage"""
    timeout = config.server.request_timeout if config else None
    try:
        return await asyncio.wait_for(answer_question(question, history), timeout)
    except EmbeddingProviderError as e:
        logger.error("Chat request failed during retrieval: %s", e)
        return _error(502, "Embedding provider failed", stage="retrieval")
    except GenerationProviderError as e:
        logger.error("Chat request failed during generation: %s", e)
        return _error(502, "Generation provider failed", stage="generation")
    except asyncio.TimeoutError:
        logger.error("Chat request timed out after %ss", timeout)
        return _error(504, "Request timed out")


# =============================================================================
# Endpoints
# =============================================================================

@app.get("/")
async def root():
    return {"message": "API is running"}


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "historian",
        "initialized": controller is not None,
        "chunks": corpus.size if corpus else 0,
        "interviews": corpus.document_count if corpus else 0,
        "embedding_available": embedding_service.is_available if embedding_service else False,
        "llm_available": synthesizer.has_llm if synthesizer else False,
        "sessions": len(session_store) if session_store is not None else 0,
    }


@app.get("/api/chat")
async def chat_usage():
    return {"message": "Please use POST method for chat requests"}


@app.post("/api/chat", response_model=ChatResponse)
async def chat(request: ChatRequest):
    """
    Answer a question within a session.

    A request without sessionId is answered without history and is not
    kept in the session store.
    """
    if controller is None or synthesizer is None or session_store is None or chat_log is None:
        raise HTTPException(status_code=503, detail="Server not initialized")

    question = (request.question or "").strip()
    if not question:
        return JSONResponse(status_code=400, content={"error": "Question is required"})

    qualtrics_id = request.qualtrics_id or "unknown"
    session_id = request.session_id
    chatbot_id = config.server.chatbot_id if config else "direct-answers-bot"

    await asyncio.to_thread(
        chat_log.record, qualtrics_id, session_id, Role.USER.value, question, chatbot_id
    )

    if session_id:
        async with session_store.session(session_id) as session:
            response = await _respond(question, session.history)
            if isinstance(response, JSONResponse):
                return response
            session.append(
                ConversationTurn(role=Role.USER, content=question),
                ConversationTurn(role=Role.ASSISTANT, content=response),
            )
    else:
        response = await _respond(question, [])
        if isinstance(response, JSONResponse):
            return response

    await asyncio.to_thread(
        chat_log.record, qualtrics_id, session_id, Role.ASSISTANT.value, response, chatbot_id
    )

    return {"response": response}


@app.get("/api/chat/history/{qualtrics_id}")
async def chat_history(qualtrics_id: str):
    """Logged messages of one participant, oldest first"""
    if chat_log is None:
        raise HTTPException(status_code=503, detail="Chat log not initialized")

    return [asdict(entry) for entry in chat_log.history(qualtrics_id)]


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the Historian server"""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    server_config = load_config().server
    print(f"[Historian] Starting server on port {server_config.port}")
    uvicorn.run(
        "historian.server.app:app",
        host=server_config.host,
        port=server_config.port,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
