from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, JSONResponse

from browser_manager.models import ErrorRead, RevisionRead
from browser_manager.provisioner import get_provisioner
from browser_manager.services.revisions import RevisionProvisioner
from browser_manager.settings import Settings, get_settings

router = APIRouter(tags=["revisions"])

FORM_PAGE = """<!DOCTYPE html>
<html lang="en">
<body>
    <p>Send a POST request on / to get a new browser, or click the button:</p>
    <form action="/" method="POST">
        <button type="submit">Get Browser</button>
    </form>
</body>
</html>
"""

_ERROR_RESPONSES = {
    422: {"model": ErrorRead},
    502: {"model": ErrorRead},
    503: {"model": ErrorRead},
    504: {"model": ErrorRead},
}


@router.post("/", response_model=RevisionRead, responses=_ERROR_RESPONSES)
def create_revision(
    suffix: str | None = Query(None, description="Optional 6 character [0-9a-z] revision suffix"),
    settings: Settings = Depends(get_settings),
    provisioner: RevisionProvisioner = Depends(get_provisioner),
):
    outcome = provisioner.provision(suffix=suffix)
    if outcome.error is not None:
        if settings.legacy_null_on_error:
            return JSONResponse(content=None)
        raise outcome.error

    assert outcome.revision is not None
    return RevisionRead(id=outcome.revision.tag, url=outcome.revision.url)


@router.api_route(
    "/",
    methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"],
    response_class=HTMLResponse,
    include_in_schema=False,
)
def form_page() -> HTMLResponse:
    """Every method other than POST gets the form that creates a revision."""
    return HTMLResponse(FORM_PAGE)
