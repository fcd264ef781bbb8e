"""Chat and summarize endpoints.

``POST /chat`` runs the session protocol. A request whose message is the
start-session sentinel opens a session and answers with one ``session``
record. Every other request must name a live session and is answered with a
stream of ``chunk`` records, or a single ``error`` record if the model fails.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse

from docchat.agent.chat_agent import GREETING, AgentService, get_agent_service
from docchat.agent.sessions import SessionNotFoundError, SessionRegistry
from docchat.api.relay import NDJSON_MEDIA_TYPE, relay_fragments, relay_session
from docchat.models.schemas import ChatRequest, SummarizeRequest, SummarizeResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])
summarize_router = APIRouter(tags=["summarize"])


def get_session_registry(request: Request) -> SessionRegistry:
    """Return the registry owned by the running application."""
    return request.app.state.sessions


@router.post("")
async def chat(
    payload: ChatRequest,
    sessions: SessionRegistry = Depends(get_session_registry),
    agent_service: AgentService = Depends(get_agent_service),
) -> StreamingResponse:
    """Start a session or stream the reply to a message.

    Raises:
        SessionNotFoundError: If the session id is missing, unknown or expired.
    """
    if payload.starts_session:
        context = payload.context if payload.context and payload.context.strip() else None
        session = sessions.create(agent_service.create_conversation(context), context)
        return StreamingResponse(
            relay_session(session.session_id, GREETING),
            media_type=NDJSON_MEDIA_TYPE,
        )

    if not payload.session_id:
        raise SessionNotFoundError("")

    session = sessions.get(payload.session_id)
    session.attach_context(payload.context)
    return StreamingResponse(
        relay_fragments(agent_service.stream_reply(session, payload.message)),
        media_type=NDJSON_MEDIA_TYPE,
    )


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def end_session(
    session_id: str,
    sessions: SessionRegistry = Depends(get_session_registry),
) -> None:
    """Discard a session. Unknown ids are ignored."""
    if sessions.remove(session_id):
        logger.info(f"Session closed by client: {session_id}")


@summarize_router.post("/summarize", response_model=SummarizeResponse)
async def summarize(
    payload: SummarizeRequest,
    agent_service: AgentService = Depends(get_agent_service),
) -> SummarizeResponse:
    """Condense the merged document context into a short summary."""
    summary = await agent_service.summarize(payload.context)
    logger.info(f"Summarized {len(payload.context)} chars into {len(summary)}")
    return SummarizeResponse(summary=summary)
