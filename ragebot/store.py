from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError
from typing import List, Dict, Optional
from loguru import logger
import time

from ragebot.errors import UserAlreadyExists
from ragebot.models import User, ChatLog

def get_time_millis():
    return round(time.time() * 1000)

def normalize_email(email: str) -> str:
    return email.strip().lower()

def get_user_by_email(session: Session, email: str) -> Optional[User]:
    return session.exec(select(User).where(User.email == normalize_email(email))).first()

def get_user(session: Session, user_id: int) -> Optional[User]:
    return session.get(User, user_id)

def create_user(session: Session, email: str, password_hash: str) -> User:
    if get_user_by_email(session, email) is not None:
        raise UserAlreadyExists

    user = User(email=normalize_email(email), password_hash=password_hash)
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # lost a race against a concurrent signup with the same email
        session.rollback()
        raise UserAlreadyExists
    session.refresh(user)

    logger.info(f"Created user {user.id}")
    return user

def save_chat_log(session: Session, user: User, messages: List[Dict[str, str]], average_score: float, summary: Optional[str] = None) -> ChatLog:
    chat_log = ChatLog(
        user_id=user.id,
        timestamp=get_time_millis(),
        average_score=average_score,
        messages=[{"text": m["text"], "side": m["side"]} for m in messages],
        summary=summary,
    )
    session.add(chat_log)
    session.commit()
    session.refresh(chat_log)

    logger.debug(f"Saved chat log {chat_log.id} for user {user.id} ({len(messages)} messages)")
    return chat_log

def list_chat_logs(session: Session, user_id: int) -> List[ChatLog]:
    return session.exec(
        select(ChatLog).where(ChatLog.user_id == user_id).order_by(ChatLog.timestamp, ChatLog.id)
    ).all()
