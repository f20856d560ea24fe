from fastapi import APIRouter, Depends

from helpdesk.api.auth import require_admin
from helpdesk.store.session_repo import load_session
import helpdesk.observability.metrics as metrics

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/session/{identity}")
def get_session_snapshot(identity: str, _=Depends(require_admin)):
    """Compact session snapshot; fact values are reported as filled/unfilled only."""
    s = load_session(identity)
    return {
        "identity": s.identity,
        "step": s.step,
        "slotsFilled": sorted(s.collectedFacts.keys()),
        "languagePreference": s.languagePreference,
        "languageInferred": bool(s.languageInferred),
        "generatedAt": s.generatedAt,
        "outcomeAsked": bool(s.outcomeAsked),
        "outcome": s.outcome,
        "lastArtifactId": s.lastArtifactId,
        "updatedAtEpoch": s.updatedAtEpoch,
    }


@router.get("/metrics")
def get_metrics(_=Depends(require_admin)):
    return metrics.get_snapshot()
