import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import store
from ..db import get_db
from ..schemas import ActivityCreate, ActivityOut, ActivityUpdate
from .auth import User, get_current_user, get_optional_user

router = APIRouter(prefix="/api/activities", tags=["activities"])

logger = logging.getLogger(__name__)


@router.get("", response_model=List[ActivityOut])
def list_activities(user: Optional[User] = Depends(get_optional_user), db: Session = Depends(get_db)):
	try:
		rows = store.list_visible(db, user.id if user else None)
	except SQLAlchemyError:
		logger.exception("Failed to list activities")
		raise HTTPException(status_code=500, detail="Failed to fetch activities")
	return [store.to_out(r) for r in rows]


@router.get("/{slug}", response_model=ActivityOut)
def get_activity(slug: str, user: Optional[User] = Depends(get_optional_user), db: Session = Depends(get_db)):
	row = store.get_visible_by_slug(db, slug, user.id if user else None)
	if not row:
		raise HTTPException(status_code=404, detail="Activity not found")
	return store.to_out(row)


@router.post("", status_code=201, response_model=ActivityOut)
def create_activity(req: ActivityCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	try:
		row = store.create_activity(db, user.id, req)
	except store.SlugTaken:
		raise HTTPException(status_code=400, detail="Slug already exists")
	logger.info("Activity %s created by %s", row.slug, user.username)
	return store.to_out(row)


@router.put("/{activity_id}", response_model=ActivityOut)
def update_activity(activity_id: int, req: ActivityUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	row = store.get_owned(db, activity_id, user.id)
	if not row:
		raise HTTPException(status_code=404, detail="Activity not found or access denied")
	try:
		row = store.update_activity(db, row, req)
	except store.SlugTaken:
		raise HTTPException(status_code=400, detail="Slug already exists")
	return store.to_out(row)


@router.delete("/{activity_id}")
def delete_activity(activity_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	row = store.get_owned(db, activity_id, user.id)
	if not row:
		raise HTTPException(status_code=404, detail="Activity not found or access denied")
	store.delete_activity(db, row)
	return {"message": "Activity deleted successfully"}
