from dotenv import load_dotenv
from loguru import logger
import secrets
import os

load_dotenv()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")

# openai | ollama
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai")
OLLAMA_SERVE_URL = os.getenv("OLLAMA_SERVE_URL", "http://127.0.0.1:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama2")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///ragebot.db")

def load_jwt_secret():
    secret = os.getenv("JWT_SECRET")
    if secret:
        return secret
    # tokens signed with a random key stop validating when the process restarts
    logger.warning("JWT_SECRET is not set, using a random per-process signing secret")
    return secrets.token_urlsafe(32)

JWT_SECRET = load_jwt_secret()
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

GRAPHITE_HOST = os.getenv("GRAPHITE_HOST", "localhost")
GRAPHITE_HOST_PORT = int(os.getenv("GRAPHITE_HOST_PORT", "8125"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]

PORT = int(os.getenv("PORT", "3005"))
