# conversations.py
from typing import Dict, Iterable, List
from sqlalchemy import or_
from sqlalchemy.orm import Session
from models import Message, User
from schemas import ConversationResponse, UserResponse


def counterparty_of(user_id: str, message: Message) -> str:
    return message.receiver_id if message.sender_id == user_id else message.sender_id


def latest_by_counterparty(user_id: str, messages: Iterable[Message]) -> Dict[str, Message]:
    """Group a user's messages by the other participant, keeping the newest of each group."""
    latest: Dict[str, Message] = {}
    for message in messages:
        other = counterparty_of(user_id, message)
        current = latest.get(other)
        if current is None or (message.created_at, message.id) > (current.created_at, current.id):
            latest[other] = message
    return latest


def get_recent_conversations(db: Session, user_id: str) -> List[ConversationResponse]:
    messages = (
        db.query(Message)
        .filter(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
        .order_by(Message.created_at.desc(), Message.id.desc())
        .all()
    )
    latest = latest_by_counterparty(user_id, messages)
    if not latest:
        return []

    users = db.query(User).filter(User.id.in_(list(latest))).all()
    users.sort(key=lambda u: (latest[u.id].created_at, latest[u.id].id), reverse=True)
    conversations = [
        ConversationResponse(
            **UserResponse.model_validate(u).model_dump(),
            last_message=latest[u.id].content,
            last_message_time=latest[u.id].created_at,
        )
        for u in users
    ]
    return conversations
