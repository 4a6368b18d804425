"""Database module for local SQLite storage."""

from .models import Base, Book, User
from .schemas import BookCreate, BookResponse, UserCreate, UserResponse
from .sqlite import Database

__all__ = [
    "Base",
    "Book",
    "User",
    "BookCreate",
    "BookResponse",
    "UserCreate",
    "UserResponse",
    "Database",
]
