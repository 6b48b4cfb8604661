import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from .. import store
from ..db import get_db
from ..document import render_document, render_error, render_not_found
from ..schemas import ActivityDefinition

router = APIRouter(prefix="/api/embed", tags=["embed"])

logger = logging.getLogger(__name__)


@router.get("/{slug}", response_model=ActivityDefinition)
def get_embed_activity(slug: str, db: Session = Depends(get_db)):
	logger.info("Embed request for slug: %s", slug)
	try:
		row = store.get_public_by_slug(db, slug)
	except Exception:
		logger.exception("Embed lookup failed for %s", slug)
		raise HTTPException(status_code=500, detail="Failed to load activity")
	if not row:
		raise HTTPException(status_code=404, detail={"error": "Activity not found or not public", "slug": slug})
	logger.info("Serving activity: %s", row.title)
	return store.to_definition(row)


@router.get("/{slug}/render", response_class=HTMLResponse)
def render_embed_activity(slug: str, db: Session = Depends(get_db)):
	# Every outcome is a complete page; the iframe host never sees an error body
	try:
		row = store.get_public_by_slug(db, slug)
		if not row:
			return HTMLResponse(render_not_found(slug), status_code=404)
		page = render_document(store.to_definition(row))
	except Exception:
		logger.exception("Render failed for %s", slug)
		return HTMLResponse(render_error(), status_code=500)
	return HTMLResponse(page)
