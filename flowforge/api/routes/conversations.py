"""Conversation API.

POST /api/v1/conversations                     start a conversation
POST /api/v1/conversations/{id}/messages       send a user turn
POST /api/v1/conversations/{id}/reset          discard requirements and artifact
GET  /api/v1/conversations/{id}                session snapshot
GET  /api/v1/conversations/{id}/artifact       generated workflow (json or yaml)
"""

from __future__ import annotations

import logging
from typing import Any, Literal

import yaml
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from flowforge.api.deps import get_conversation_service
from flowforge.api.schemas import ConversationCreate, MessageCreate, SessionResponse
from flowforge.graph.state import ConversationResponse
from flowforge.services import ConversationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["Conversations"])


@router.post("", response_model=ConversationResponse, status_code=201)
async def start_conversation(
    body: ConversationCreate,
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationResponse:
    """Start a conversation, optionally answering a first message."""
    return await service.start_conversation(body.user_id, body.initial_message)


@router.post("/{session_id}/messages", response_model=ConversationResponse)
async def send_message(
    session_id: str,
    body: MessageCreate,
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationResponse:
    return await service.process_message(session_id, body.content)


@router.post("/{session_id}/reset", response_model=SessionResponse)
async def reset_conversation(
    session_id: str,
    service: ConversationService = Depends(get_conversation_service),
) -> SessionResponse:
    session = await service.reset_conversation(session_id)
    return SessionResponse.from_session(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_conversation(
    session_id: str,
    service: ConversationService = Depends(get_conversation_service),
) -> SessionResponse:
    session = await service.get_session(session_id)
    return SessionResponse.from_session(session)


@router.get("/{session_id}/artifact", response_model=None)
async def get_artifact(
    session_id: str,
    format: Literal["json", "yaml"] = Query("json", description="Output format"),
    service: ConversationService = Depends(get_conversation_service),
) -> dict[str, Any] | PlainTextResponse:
    """Return the generated workflow in the engine's import format.

    404 until a workflow has been generated for the conversation.
    """
    session = await service.get_session(session_id)
    if session.artifact is None:
        raise HTTPException(status_code=404, detail="No workflow has been generated yet")

    payload = session.artifact.to_engine_payload()
    if format == "yaml":
        content = yaml.dump(payload, default_flow_style=False, sort_keys=False)
        return PlainTextResponse(content, media_type="application/yaml")
    return payload
