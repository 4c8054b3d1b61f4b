from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from bookwyrm import auth, models, schemas
from bookwyrm.auth import Identity
from bookwyrm.config import Settings, get_settings
from bookwyrm.database import get_db
from bookwyrm.errors import Forbidden, Unauthorized, ValidationError
from bookwyrm.forms import parse_model, read_payload, require_id
from bookwyrm.services import reviews as reviews_service
from bookwyrm.services.pagination import MAX_LIMIT, MAX_PAGE, paginate

router = APIRouter()


@router.get("/all-reviews", response_model=schemas.ReviewList)
def all_reviews(
    my_reviews: bool = Query(default=False, alias="myReviews"),
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(auth.optional_user),
):
    query = reviews_service.review_query(db)
    if my_reviews:
        if identity is None:
            raise Unauthorized()
        query = query.filter(models.Review.user_id == identity.id)
    return {"reviews": query.order_by(models.Review.created_at.desc()).all()}


# Read API
@router.get("/api/reviews", response_model=schemas.ReviewPage)
def list_reviews(
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int = Query(default=10, ge=1, le=MAX_LIMIT),
    sort: str = Query(default="createdAt"),
    order: str = Query(default="desc"),
    db: Session = Depends(get_db),
):
    items, meta = paginate(
        reviews_service.review_query(db),
        sort_columns=reviews_service.SORT_COLUMNS,
        sort=sort,
        order=order,
        page=page,
        limit=limit,
    )
    return {"data": items, "meta": meta}


@router.get("/api/reviews/{review_id}", response_model=schemas.ReviewOut)
def get_review(review_id: str, db: Session = Depends(get_db)):
    return reviews_service.get_review(db, review_id)


@router.post("/api/reviews", response_model=schemas.ReviewOut, status_code=status.HTTP_201_CREATED)
async def create_review(
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(auth.require_user),
    app_settings: Settings = Depends(get_settings),
):
    review = parse_model(schemas.ReviewCreate, await read_payload(request))
    return reviews_service.create_review(
        db,
        identity.id,
        review,
        premier_threshold=app_settings.PREMIER_REVIEW_THRESHOLD,
    )


def _ensure_owner_or_admin(db: Session, review_id: str, identity: Identity) -> None:
    db_review = reviews_service.get_review(db, review_id)
    if db_review.user_id != identity.id and not identity.is_admin:
        raise Forbidden()


@router.put("/api/reviews/{review_id}", response_model=schemas.ReviewOut)
async def update_review(
    review_id: str,
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(auth.require_user),
):
    _ensure_owner_or_admin(db, review_id, identity)
    review = parse_model(schemas.ReviewUpdate, await read_payload(request))
    return reviews_service.update_review(db, review_id, review)


@router.delete("/api/reviews/{review_id}", response_model=schemas.ActionResult)
def delete_review(
    review_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(auth.require_user),
):
    _ensure_owner_or_admin(db, review_id, identity)
    reviews_service.delete_review(db, review_id)
    return {"success": True}


# Admin grid
@router.get("/reviews-grid", response_model=schemas.ReviewList)
def reviews_grid(
    db: Session = Depends(get_db),
    admin: Identity = Depends(auth.require_admin),
):
    reviews = reviews_service.review_query(db).order_by(models.Review.created_at.desc()).all()
    return {"reviews": reviews}


@router.post("/reviews-grid", response_model=schemas.ActionResult)
async def reviews_grid_action(
    request: Request,
    db: Session = Depends(get_db),
    admin: Identity = Depends(auth.require_admin),
    app_settings: Settings = Depends(get_settings),
):
    payload = await read_payload(request)
    action_type = payload.get("actionType")

    if action_type == "create":
        review = parse_model(schemas.ReviewCreate, payload)
        if not review.user_id:
            raise ValidationError("User ID is required")
        reviews_service.create_review(
            db,
            review.user_id,
            review,
            premier_threshold=app_settings.PREMIER_REVIEW_THRESHOLD,
        )
        return JSONResponse(status_code=status.HTTP_201_CREATED, content={"success": True})

    if action_type == "update":
        review_id = require_id(payload)
        reviews_service.update_review(db, review_id, parse_model(schemas.ReviewUpdate, payload))
        return {"success": True}

    if action_type == "delete":
        reviews_service.delete_review(db, require_id(payload))
        return {"success": True}

    raise ValidationError("Invalid action type")
