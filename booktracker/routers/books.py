import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import CurrentUser, get_current_user
from ..database import get_db
from ..errors import Conflict, InternalError, NotFoundOrForbidden

router = APIRouter(prefix="/books", tags=["Books"])
logger = logging.getLogger(__name__)

DUPLICATE_RECOMMENDATION = "Recommendation value already exists."
NOT_FOUND_MESSAGES = {
    "PUT": "Book not found or unauthorized to update.",
    "DELETE": "Book not found or unauthorized to delete.",
}


def _owned_books(db: Session, book_id: int, user_id: int):
    return db.query(models.Book).filter(models.Book.id == book_id, models.Book.user_id == user_id)


def _is_duplicate_recommendation(exc: IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed: books.recommendation"
    # postgres/mysql name the column or its index in the message
    return "recommendation" in str(exc.orig).lower()


def _integrity_error(exc: IntegrityError, action: str):
    if _is_duplicate_recommendation(exc):
        return Conflict(DUPLICATE_RECOMMENDATION)
    logger.error("Constraint violation %s book: %s", action, exc.orig)
    return InternalError(f"Internal server error {action} book.")


# Get Books
@router.get("", response_model=list[schemas.BookOut])
def get_books(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    try:
        return db.query(models.Book).filter(models.Book.user_id == user.id).all()
    except SQLAlchemyError as exc:
        logger.exception("Error fetching books")
        raise InternalError("Internal server error fetching books.") from exc


# Add Book
@router.post("", response_model=schemas.BookCreated, status_code=status.HTTP_201_CREATED)
def add_book(
    book: schemas.BookIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    new_book = models.Book(
        title=book.title,
        author=book.author,
        recommendation=book.recommendation,
        published_year=book.published_year,
        user_id=user.id,
    )

    try:
        db.add(new_book)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _integrity_error(exc, "adding") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error adding book")
        raise InternalError("Internal server error adding book.") from exc

    return {"message": "Book added successfully!", "bookId": new_book.id}


@router.put("/{book_id}", response_model=schemas.MessageResponse)
def update_book(
    book_id: int,
    book: schemas.BookIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    try:
        updated = _owned_books(db, book_id, user.id).update(
            {
                models.Book.title: book.title,
                models.Book.author: book.author,
                models.Book.recommendation: book.recommendation,
                models.Book.published_year: book.published_year,
            },
            synchronize_session=False,
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _integrity_error(exc, "updating") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error updating book")
        raise InternalError("Internal server error updating book.") from exc

    if updated == 0:
        raise NotFoundOrForbidden(NOT_FOUND_MESSAGES["PUT"])
    return {"message": "Book updated successfully!"}


@router.delete("/{book_id}", response_model=schemas.MessageResponse)
def delete_book(
    book_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    try:
        deleted = _owned_books(db, book_id, user.id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error deleting book")
        raise InternalError("Internal server error deleting book.") from exc

    if deleted == 0:
        raise NotFoundOrForbidden(NOT_FOUND_MESSAGES["DELETE"])
    return {"message": "Book deleted successfully!"}
