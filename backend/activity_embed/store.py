from __future__ import annotations
from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from .models import Activity
from .schemas import ActivityCreate, ActivityDefinition, ActivityOut, ActivityUpdate


class SlugTaken(ValueError):
	pass


def _query(db: Session):
	return db.query(Activity).options(joinedload(Activity.owner))


def get_public_by_slug(db: Session, slug: str) -> Optional[Activity]:
	return _query(db).filter(Activity.slug == slug, Activity.is_public.is_(True)).first()


def get_visible_by_slug(db: Session, slug: str, viewer_id: Optional[int] = None) -> Optional[Activity]:
	q = _query(db).filter(Activity.slug == slug)
	if viewer_id is None:
		q = q.filter(Activity.is_public.is_(True))
	else:
		q = q.filter(or_(Activity.is_public.is_(True), Activity.user_id == viewer_id))
	return q.first()


def list_visible(db: Session, viewer_id: Optional[int] = None) -> List[Activity]:
	q = _query(db)
	if viewer_id is None:
		q = q.filter(Activity.is_public.is_(True))
	else:
		q = q.filter(or_(Activity.is_public.is_(True), Activity.user_id == viewer_id))
	return q.order_by(Activity.updated_at.desc(), Activity.id.desc()).all()


def _slug_in_use(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
	q = db.query(Activity.id).filter(Activity.slug == slug)
	if exclude_id is not None:
		q = q.filter(Activity.id != exclude_id)
	return q.first() is not None


def create_activity(db: Session, owner_id: int, data: ActivityCreate) -> Activity:
	if _slug_in_use(db, data.slug):
		raise SlugTaken(data.slug)
	row = Activity(
		user_id=owner_id,
		title=data.title,
		description=data.description,
		content_type=data.content_type or "html",
		content_data=data.content_data,
		slug=data.slug,
		is_public=data.is_public,
	)
	db.add(row)
	db.commit()
	db.refresh(row)
	return row


def get_owned(db: Session, activity_id: int, owner_id: int) -> Optional[Activity]:
	return _query(db).filter(Activity.id == activity_id, Activity.user_id == owner_id).first()


def update_activity(db: Session, row: Activity, data: ActivityUpdate) -> Activity:
	if data.slug and data.slug != row.slug and _slug_in_use(db, data.slug, exclude_id=row.id):
		raise SlugTaken(data.slug)
	if data.title:
		row.title = data.title
	# An explicit null clears the description; omitting it keeps the old one
	if "description" in data.model_fields_set:
		row.description = data.description
	if data.content_type:
		row.content_type = data.content_type
	if data.content_data is not None:
		row.content_data = data.content_data
	if data.slug:
		row.slug = data.slug
	if data.is_public is not None:
		row.is_public = data.is_public
	db.commit()
	db.refresh(row)
	return row


def delete_activity(db: Session, row: Activity) -> None:
	db.delete(row)
	db.commit()


def to_definition(row: Activity) -> ActivityDefinition:
	return ActivityDefinition(
		id=row.id,
		title=row.title,
		description=row.description,
		slug=row.slug,
		content_type=row.content_type,
		content_data=row.content_data,
		author=row.owner.username if row.owner else None,
		created_at=row.created_at,
		updated_at=row.updated_at,
	)


def to_out(row: Activity) -> ActivityOut:
	return ActivityOut(**to_definition(row).model_dump(), is_public=row.is_public)
