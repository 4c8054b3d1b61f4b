from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bookwyrm import auth, models, schemas
from bookwyrm.auth import Identity
from bookwyrm.database import get_db
from bookwyrm.services import reviews as reviews_service

router = APIRouter()

FEATURED_BOOKS = 6
RECENT_REVIEWS = 5

NAVIGATION = [
    {"label": "Home", "to": "/"},
    {"label": "All Reviews", "to": "/all-reviews"},
]
ADMIN_NAVIGATION = [
    {"label": "Reviews", "to": "/reviews-grid"},
    {"label": "Books", "to": "/books-grid"},
    {"label": "Users", "to": "/users-grid"},
]


def navigation_for(identity: Identity | None) -> list[dict]:
    links = list(NAVIGATION)
    if identity and identity.is_admin:
        links.extend(ADMIN_NAVIGATION)
    if identity:
        links.append({"label": "Logout", "to": "/logout"})
    else:
        links.append({"label": "Login", "to": "/login"})
    return links


@router.get("/", response_model=schemas.HomePage)
def home(
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(auth.optional_user),
):
    featured_books = (
        db.query(models.Book).order_by(models.Book.created_at.desc()).limit(FEATURED_BOOKS).all()
    )
    recent_reviews = (
        reviews_service.review_query(db)
        .order_by(models.Review.created_at.desc())
        .limit(RECENT_REVIEWS)
        .all()
    )
    return {
        "user": identity,
        "navigation": navigation_for(identity),
        "featured_books": featured_books,
        "recent_reviews": recent_reviews,
    }
