from contextlib import asynccontextmanager
from functools import lru_cache
from fastapi import FastAPI, Depends, status
from fastapi.requests import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
from loguru import logger
import statsd
import time

from ragebot import config
from ragebot.assistant import LLMAssistant, build_assistant
from ragebot.auth import create_token, get_current_user, hash_password, verify_password
from ragebot.db import create_tables, get_session
from ragebot.errors import BadRequest, InvalidCredentials, RagebotError
from ragebot.models import User
from ragebot.roast import ConversationRegistry
from ragebot.schemas import Credentials, RagebotRequest, SaveChatRequest
from ragebot.store import create_user, get_user_by_email, list_chat_logs, save_chat_log

metrics = statsd.StatsClient(host=config.GRAPHITE_HOST, port=config.GRAPHITE_HOST_PORT, prefix="ragebot")
conversations = ConversationRegistry()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # create all tables
    create_tables()
    logger.info(f"RageBot server is running (provider: {config.LLM_PROVIDER})")
    yield
    logger.info("RageBot server shutting down")

app = FastAPI(title="RageBot", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

@app.exception_handler(RagebotError)
async def _ragebot_error(req: Request, exc: RagebotError):
    if exc.status_code >= 500:
        logger.error(f"{req.method} {req.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(RequestValidationError)
async def _validation_error(req: Request, exc: RequestValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid request body"})

@app.exception_handler(Exception)
async def _unhandled_error(req: Request, exc: Exception):
    logger.exception(f"{req.method} {req.url.path} failed")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "Something went wrong"})

def get_metrics() -> statsd.StatsClient:
    return metrics

def get_conversations() -> ConversationRegistry:
    return conversations

@lru_cache
def get_assistant() -> LLMAssistant:
    return build_assistant(metrics)

@app.get("/")
def _hello_world():
    return "Hello World"

@app.post("/api/signup", status_code=status.HTTP_201_CREATED)
def _signup(body: Credentials, session: Session = Depends(get_session), metrics: statsd.StatsClient = Depends(get_metrics)):
    if not body.email.strip() or not body.password:
        raise BadRequest("Email and password are required")

    create_user(session, body.email, hash_password(body.password))
    metrics.incr("signup")
    return { "message": "User created successfully" }

@app.post("/api/login")
def _login(body: Credentials, session: Session = Depends(get_session), metrics: statsd.StatsClient = Depends(get_metrics)):
    user = get_user_by_email(session, body.email) if body.email else None
    if user is None or not verify_password(user.password_hash, body.password):
        logger.info("Rejected login attempt")
        metrics.incr("errors.login")
        raise InvalidCredentials

    metrics.incr("login")
    return { "token": create_token(user) }

@app.post("/api/ragebot")
def _roast(
    body: RagebotRequest,
    user: User = Depends(get_current_user),
    assistant: LLMAssistant = Depends(get_assistant),
    conversations: ConversationRegistry = Depends(get_conversations),
    metrics: statsd.StatsClient = Depends(get_metrics),
):
    metrics.incr("ragebot")

    # time it starts handing a request
    start_time = time.time()

    if not body.userMessage or not body.userMessage.strip():
        raise BadRequest("userMessage is required")

    conversation = conversations.get(user.id)
    reply = assistant.roast(conversation, body.userMessage, body.difficulty)

    # log time it took to handle request
    metrics.timing("ragebot_response.timed", (time.time() - start_time) * 1000)

    return {
        "botReply": reply.text,
        "averageScore": reply.formatted_average,
        "scoreLevel": reply.level,
    }

@app.post("/api/summary")
def _summary(
    user: User = Depends(get_current_user),
    assistant: LLMAssistant = Depends(get_assistant),
    conversations: ConversationRegistry = Depends(get_conversations),
    metrics: statsd.StatsClient = Depends(get_metrics),
):
    metrics.incr("summary")
    conversation = conversations.get(user.id)
    summary = assistant.summarize(conversation)
    return { "summary": summary, "overview": conversation.overview() }

@app.post("/api/saveChat", status_code=status.HTTP_201_CREATED)
def _save_chat(
    body: SaveChatRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    conversations: ConversationRegistry = Depends(get_conversations),
    metrics: statsd.StatsClient = Depends(get_metrics),
):
    summary = body.summary
    if summary is None and user.id in conversations:
        summary = conversations.get(user.id).summary

    save_chat_log(
        session,
        user,
        messages=[message.model_dump() for message in body.messages],
        average_score=body.averageScore,
        summary=summary,
    )
    metrics.incr("save_chat")
    return { "message": "Chat saved successfully" }

@app.get("/api/chatLogs")
def _chat_logs(user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    chat_logs = list_chat_logs(session, user.id)
    return { "chatHistory": [chat_log.to_history() for chat_log in chat_logs] }

@app.post("/api/newChat")
def _new_chat(user: User = Depends(get_current_user), conversations: ConversationRegistry = Depends(get_conversations)):
    if conversations.reset(user.id):
        logger.debug(f"Discarded conversation for user {user.id}")
    return { "success": True }
