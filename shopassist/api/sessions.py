from fastapi import APIRouter, Depends, HTTPException, Query

from shopassist.dependencies import get_session_store
from shopassist.models.schemas import SessionDetail, SessionInfo
from shopassist.services.session_store import SessionStore

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.get("", response_model=list[SessionInfo])
async def list_all_sessions(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    store: SessionStore = Depends(get_session_store),
):
    return [
        SessionInfo(
            session_id=s.session_id,
            created_at=s.created_at,
            message_count=len(s.history),
            last_active=s.updated_at,
        )
        for s in store.list_sessions(limit=limit, offset=offset)
    ]


@router.get("/{session_id}", response_model=SessionDetail)
async def get_session_detail(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
):
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return SessionDetail(**session.model_dump())


@router.delete("/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
):
    if not store.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
