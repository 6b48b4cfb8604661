import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy.sql import text

from ..db import get_db

router = APIRouter(prefix="/api", tags=["health"])

logger = logging.getLogger(__name__)


@router.get("/health")
def health(db: Session = Depends(get_db)):
	try:
		db.execute(text("SELECT 1"))
	except Exception:
		logger.exception("Health check failed")
		return JSONResponse(status_code=500, content={"status": "error", "database": "disconnected"})
	return {"status": "ok", "database": "connected"}
