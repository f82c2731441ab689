from fastapi import APIRouter, HTTPException, Request

from sector_pulse.errors import CommentaryError
from sector_pulse.schemas.refresh import AutoRefreshRequest

router = APIRouter()

_COMMENTARY_STATUS = {
    CommentaryError.MISSING_CREDENTIAL: 503,
    CommentaryError.NETWORK_FAILURE: 502,
    CommentaryError.EMPTY_RESPONSE: 502,
    CommentaryError.RATE_LIMITED: 429,
    CommentaryError.NO_MARKET_DATA: 409,
}


def _scheduler(request: Request):
    return request.app.state.refresh_scheduler


@router.get('/dashboard')
def get_dashboard(request: Request):
    return _scheduler(request).snapshot().model_dump()


@router.get('/quotes')
def get_quotes(request: Request):
    return [q.model_dump() for q in _scheduler(request).snapshot().quotes]


@router.get('/sectors')
def get_sectors(request: Request):
    return [s.model_dump() for s in _scheduler(request).snapshot().sectors]


@router.get('/history')
def get_history(request: Request):
    return [h.model_dump() for h in _scheduler(request).history()]


@router.get('/refresh/state')
def get_refresh_state(request: Request):
    return _scheduler(request).state().model_dump()


@router.post('/refresh')
def trigger_refresh(request: Request):
    scheduler = _scheduler(request)
    started = scheduler.trigger()
    return {'started': started, 'state': scheduler.state().model_dump()}


@router.post('/refresh/auto')
def set_auto_refresh(req: AutoRefreshRequest, request: Request):
    return _scheduler(request).set_auto_refresh(req.enabled).model_dump()


@router.post('/commentary')
def generate_commentary(request: Request):
    service = request.app.state.commentary_service
    snapshot = _scheduler(request).snapshot()
    try:
        text = service.generate(snapshot)
    except CommentaryError as exc:
        status = _COMMENTARY_STATUS.get(exc.reason, 502)
        raise HTTPException(status_code=status, detail=exc.reason) from exc
    return {'text': text}


@router.get('/metrics/refresh')
def refresh_metrics(request: Request):
    metrics = _scheduler(request).metrics()
    metrics.update({f'commentary_{k}': v for k, v in request.app.state.commentary_service.metrics().items()})
    return metrics
