from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from bookwyrm import auth, models, schemas
from bookwyrm.auth import Identity
from bookwyrm.database import get_db
from bookwyrm.errors import ValidationError
from bookwyrm.forms import parse_model, read_payload, require_id
from bookwyrm.services import books as books_service
from bookwyrm.services.pagination import MAX_LIMIT, MAX_PAGE, paginate

router = APIRouter()


# Read API
@router.get("/api/books", response_model=schemas.BookPage)
def list_books(
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int = Query(default=10, ge=1, le=MAX_LIMIT),
    sort: str = Query(default="title"),
    order: str = Query(default="asc"),
    db: Session = Depends(get_db),
):
    items, meta = paginate(
        db.query(models.Book),
        sort_columns=books_service.SORT_COLUMNS,
        sort=sort,
        order=order,
        page=page,
        limit=limit,
    )
    return {"data": items, "meta": meta}


@router.get("/api/books/{book_id}", response_model=schemas.BookDetail)
def get_book(book_id: str, db: Session = Depends(get_db)):
    return {"book": books_service.get_book(db, book_id)}


# Admin grid
@router.get("/books-grid", response_model=schemas.BookList)
def books_grid(
    db: Session = Depends(get_db),
    admin: Identity = Depends(auth.require_admin),
):
    books = db.query(models.Book).order_by(models.Book.title.asc()).all()
    return {"books": books}


@router.post("/books-grid", response_model=schemas.ActionResult)
async def books_grid_action(
    request: Request,
    db: Session = Depends(get_db),
    admin: Identity = Depends(auth.require_admin),
):
    payload = await read_payload(request)
    action_type = payload.get("actionType")

    if action_type == "create":
        books_service.create_book(db, parse_model(schemas.BookForm, payload))
        return JSONResponse(status_code=status.HTTP_201_CREATED, content={"success": True})

    if action_type == "update":
        book_id = require_id(payload)
        books_service.update_book(db, book_id, parse_model(schemas.BookForm, payload))
        return {"success": True}

    if action_type == "delete":
        books_service.delete_book(db, require_id(payload))
        return {"success": True}

    raise ValidationError("Invalid action type")
