from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from dbkit import Field


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(128))
    name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str | None] = mapped_column(String(16), server_default="active")
    deleted: Mapped[bool] = mapped_column(Boolean, default=False)


class Todo(Base):
    __tablename__ = "todos"
    __id_field__ = "todo_no"
    todo_no: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column("title_text", String(128), nullable=False)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)


class UserFields:
    id = Field[int]("id")
    email = Field[str]("email")
    name = Field[str]("name")
    age = Field[int]("age")
    status = Field[str]("status")
    deleted = Field[bool]("deleted")


class TodoFields:
    todo_no = Field[int]("todo_no")
    title = Field[str]("title_text")
    owner_id = Field[int]("owner_id")


class AuditEntry(Base):
    __tablename__ = "audit_entries"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message: Mapped[str] = mapped_column(String(128))

    def __init__(self, message: str) -> None:
        self.message = message
