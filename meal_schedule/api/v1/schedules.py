"""
Schedule editing routes
Draft sessions over a residence schedule: open, edit, audit, save.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Request

from ...core.error_handler import create_success_response
from ...models.alert import RULE_CATALOG, RuleInfo, summarize_alerts
from ...models.schedule import (
    AlternativeConfig,
    AlternativeConfigBase,
    AlternativeDefinition,
    AlternativeDefinitionBase,
    MealGroup,
    MealGroupBase,
    MealTime,
    MealTimeBase,
    RequestDeadline,
    RequestDeadlineBase,
)
from ...schemas.common import ApiResponse, ErrorResponse
from ...schemas.schedule import (
    AuditResponse,
    DraftResponse,
    PrincipalAlternativeRequest,
    SaveRequest,
    SaveResponse,
    SessionResponse,
)
from ...services.session_service import DraftSession, SessionRegistry

router = APIRouter()


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def _session_payload(session: DraftSession) -> dict:
    return SessionResponse(**session.to_dict()).model_dump()


def _draft_payload(session: DraftSession) -> dict:
    return DraftResponse(**session.to_dict(), draft=session.store.draft).model_dump()


@router.get("/rules", response_model=ApiResponse[List[RuleInfo]])
def list_rules():
    """Integrity rule catalogue"""
    return create_success_response(
        data=[info.model_dump() for info in RULE_CATALOG.values()]
    )


@router.post("/{residence_id}/sessions")
def open_session(residence_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Load the residence schedule into a new draft session"""
    session = registry.open_session(residence_id)
    return create_success_response(data=_draft_payload(session), message="Draft session opened")


@router.get("/sessions/{session_id}")
def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.editing(session_id) as session:
        return create_success_response(data=_draft_payload(session))


@router.delete("/sessions/{session_id}")
def close_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    registry.close_session(session_id)
    return create_success_response(message="Draft session closed")


@router.get("/sessions/{session_id}/matrix")
def get_matrix(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Day x meal-group matrix of the draft"""
    with registry.editing(session_id) as session:
        return create_success_response(data=session.store.get_matrix().model_dump())


@router.post("/sessions/{session_id}/audit")
def run_audit(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Audit the draft"""
    with registry.editing(session_id) as session:
        store = session.store
        alerts = store.run_audit()
        response = AuditResponse(
            alerts=alerts,
            visible_alerts=store.visible_alerts,
            summary=summarize_alerts(alerts),
        )
        return create_success_response(data=response.model_dump())


@router.post("/sessions/{session_id}/alerts/{alert_key}/ignore")
def ignore_alert(session_id: str, alert_key: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.editing(session_id) as session:
        session.store.ignore_alert(alert_key)
        return create_success_response(data=_session_payload(session), message="Alert ignored")


@router.post("/sessions/{session_id}/discard")
def discard_changes(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Drop every draft change"""
    with registry.editing(session_id) as session:
        session.store.discard_changes()
        return create_success_response(data=_draft_payload(session), message="Changes discarded")


@router.post("/sessions/{session_id}/reload")
def reload_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Re-read the stored schedule, e.g. after a version conflict"""
    with registry.editing(session_id) as session:
        registry.reload_session(session_id)
        return create_success_response(data=_draft_payload(session), message="Schedule reloaded")


@router.post(
    "/sessions/{session_id}/save",
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}}
)
def save_session(
    session_id: str,
    payload: Optional[SaveRequest] = None,
    registry: SessionRegistry = Depends(get_registry)
):
    """Audit and store the draft; error alerts block unless forced"""
    payload = payload or SaveRequest()
    block_on_errors = False if payload.force else None
    result = registry.save_session(session_id, actor_id=payload.actor_id, block_on_errors=block_on_errors)
    return create_success_response(
        data=SaveResponse(version=result.version).model_dump(),
        message="Schedule saved"
    )


# ---- entity mutations ----

@router.put("/sessions/{session_id}/meal-groups/{entity_id}")
def upsert_meal_group(
    session_id: str, entity_id: str, payload: MealGroupBase,
    registry: SessionRegistry = Depends(get_registry)
):
    with registry.editing(session_id) as session:
        session.store.upsert_meal_group(MealGroup(id=entity_id, **payload.model_dump()))
        return create_success_response(data=_draft_payload(session))


@router.post("/sessions/{session_id}/meal-groups/{entity_id}/archive")
def archive_meal_group(session_id: str, entity_id: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.editing(session_id) as session:
        session.store.archive_meal_group(entity_id)
        return create_success_response(data=_draft_payload(session))


@router.put("/sessions/{session_id}/request-deadlines/{entity_id}")
def upsert_request_deadline(
    session_id: str, entity_id: str, payload: RequestDeadlineBase,
    registry: SessionRegistry = Depends(get_registry)
):
    with registry.editing(session_id) as session:
        session.store.upsert_request_deadline(RequestDeadline(id=entity_id, **payload.model_dump()))
        return create_success_response(data=_draft_payload(session))


@router.post("/sessions/{session_id}/request-deadlines/{entity_id}/archive")
def archive_request_deadline(session_id: str, entity_id: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.editing(session_id) as session:
        session.store.archive_request_deadline(entity_id)
        return create_success_response(data=_draft_payload(session))


@router.put("/sessions/{session_id}/meal-times/{entity_id}")
def upsert_meal_time(
    session_id: str, entity_id: str, payload: MealTimeBase,
    registry: SessionRegistry = Depends(get_registry)
):
    """Create or update a meal time; omitted alternatives keep their stored value"""
    with registry.editing(session_id) as session:
        meal_time = MealTime(id=entity_id, **payload.model_dump())
        existing = session.store.draft.meal_times.get(entity_id)
        if existing is not None and "alternatives" not in payload.model_fields_set:
            meal_time.alternatives = existing.alternatives.model_copy(deep=True)
        session.store.upsert_meal_time(meal_time)
        return create_success_response(data=_draft_payload(session))


@router.post("/sessions/{session_id}/meal-times/{entity_id}/archive")
def archive_meal_time(session_id: str, entity_id: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.editing(session_id) as session:
        session.store.archive_meal_time(entity_id)
        return create_success_response(data=_draft_payload(session))


@router.put("/sessions/{session_id}/meal-times/{entity_id}/principal")
def set_principal_alternative(
    session_id: str, entity_id: str, payload: PrincipalAlternativeRequest,
    registry: SessionRegistry = Depends(get_registry)
):
    with registry.editing(session_id) as session:
        session.store.set_principal_alternative(entity_id, payload.config_id)
        return create_success_response(data=_draft_payload(session))


@router.put("/sessions/{session_id}/alternative-definitions/{entity_id}")
def upsert_alternative_definition(
    session_id: str, entity_id: str, payload: AlternativeDefinitionBase,
    registry: SessionRegistry = Depends(get_registry)
):
    with registry.editing(session_id) as session:
        session.store.upsert_alternative_definition(AlternativeDefinition(id=entity_id, **payload.model_dump()))
        return create_success_response(data=_draft_payload(session))


@router.post("/sessions/{session_id}/alternative-definitions/{entity_id}/archive")
def archive_alternative_definition(session_id: str, entity_id: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.editing(session_id) as session:
        session.store.archive_alternative_definition(entity_id)
        return create_success_response(data=_draft_payload(session))


@router.put("/sessions/{session_id}/alternative-configs/{entity_id}")
def upsert_alternative_config(
    session_id: str, entity_id: str, payload: AlternativeConfigBase,
    registry: SessionRegistry = Depends(get_registry)
):
    with registry.editing(session_id) as session:
        session.store.upsert_alternative_config(AlternativeConfig(id=entity_id, **payload.model_dump()))
        return create_success_response(data=_draft_payload(session))


@router.post("/sessions/{session_id}/alternative-configs/{entity_id}/archive")
def archive_alternative_config(session_id: str, entity_id: str, registry: SessionRegistry = Depends(get_registry)):
    with registry.editing(session_id) as session:
        session.store.archive_alternative_config(entity_id)
        return create_success_response(data=_draft_payload(session))
