from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional, Union


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Identity:
    """Shared identity of a person: an immutable id plus a display name."""

    name: str
    id: str = field(default_factory=new_id)


def same_identity(a: object, b: object) -> bool:
    """True when both sides carry an identity with the same id."""
    ident_a = getattr(a, "identity", None)
    ident_b = getattr(b, "identity", None)
    if ident_a is None or ident_b is None:
        return False
    return ident_a.id == ident_b.id


def name_key(person: Union["Author", "Reader"]) -> str:
    """Case-insensitive ordering key for authors and readers."""
    return person.identity.name.lower()


class _Person:
    """Mixin giving identity-based equality to anything holding an Identity."""

    identity: Identity

    @property
    def id(self) -> str:
        return self.identity.id

    @property
    def name(self) -> str:
        return self.identity.name

    @name.setter
    def name(self, value: str) -> None:
        self.identity.name = value

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return same_identity(self, other)

    def __hash__(self) -> int:
        return hash(self.identity.id)

    def __lt__(self, other: "_Person") -> bool:
        return name_key(self) < name_key(other)


class Author(_Person):
    def __init__(self, name: str, nationality: str, id: Optional[str] = None) -> None:
        self.identity = Identity(name=name.strip(), id=id or new_id())
        self.nationality = nationality.strip()

    def __str__(self) -> str:
        return f"{self.name} ({self.nationality})"

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"Author(name={self.name!r}, nationality={self.nationality!r}, id={self.id!r})"

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "nationality": self.nationality}

    @staticmethod
    def from_dict(data: dict) -> "Author":
        return Author(name=_text(data, "name"), nationality=_text(data, "nationality", ""), id=_stored_id(data))


class Reader(_Person):
    def __init__(self, name: str, phone: str, email: str, id: Optional[str] = None) -> None:
        self.identity = Identity(name=name.strip(), id=id or new_id())
        self.phone = phone.strip()
        self.email = email.strip()

    def __str__(self) -> str:
        return f"{self.name} (Telefone: {self.phone})"

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"Reader(name={self.name!r}, email={self.email!r}, id={self.id!r})"

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "phone": self.phone, "email": self.email}

    @staticmethod
    def from_dict(data: dict) -> "Reader":
        return Reader(
            name=_text(data, "name"),
            phone=_text(data, "phone", ""),
            email=_text(data, "email", ""),
            id=_stored_id(data),
        )


def _text(data: dict, key: str, default: Optional[str] = None) -> str:
    """Read a string field from a stored record; raise KeyError, TypeError or ValueError if malformed."""
    if not isinstance(data, dict):
        raise TypeError(f"Expected a record object, got {type(data).__name__}")
    value = data[key] if default is None else data.get(key, default)
    if value is None and default is not None:
        value = default
    if not isinstance(value, str):
        raise TypeError(f"Field {key!r} must be a string, got {type(value).__name__}")
    return value


def _stored_id(data: dict) -> str:
    value = _text(data, "id")
    if not value.strip():
        raise ValueError("Stored record has an empty id")
    return value


def to_price(value: Union[Decimal, int, float, str]) -> Decimal:
    """Coerce ``value`` to a non-negative Decimal or raise ValueError."""
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid price: {value!r}") from exc
    if not price.is_finite() or price < 0:
        raise ValueError(f"Price must be a non-negative number, got {value!r}")
    return price


class Book:
    """A single catalog entry.

    ``==`` and ``hash`` follow the book id. Duplicate detection at insertion
    time uses :meth:`same_entry` instead, which compares title and author.
    """

    def __init__(self, title: str, author: Author, pages: int, year: int,
                 price: Union[Decimal, int, float, str],
                 borrower: Optional[Reader] = None,
                 id: Optional[str] = None) -> None:
        self._id = id or new_id()
        self.title = title
        self.author = author
        self.pages = int(pages)
        self.year = int(year)
        self.price = to_price(price)
        self.borrower = borrower

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_available(self) -> bool:
        return self.borrower is None

    def same_entry(self, other: "Book") -> bool:
        return self.title == other.title and self.author == other.author

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __lt__(self, other: "Book") -> bool:
        return self.title.lower() < other.title.lower()

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author.name} (ID: {self.id})"

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"Book(title={self.title!r}, author={self.author.name!r}, id={self.id!r})"

    def describe(self, currency: str = "R$") -> str:
        if self.borrower is not None:
            status = f"Emprestado para: {self.borrower}"
        else:
            status = "Status: Disponível"
        return (
            "--- Livro ---\n"
            f"Título: {self.title}\n"
            f"Autor: {self.author}\n"
            f"Número de págs.: {self.pages}\n"
            f"Ano de publicação: {self.year}\n"
            f"Preço: {currency}{self.price:.2f}\n"
            f"{status}"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author.to_dict(),
            "pages": self.pages,
            "year": self.year,
            # Kept as a string so the decimal value survives JSON untouched
            "price": str(self.price),
            "borrower": self.borrower.to_dict() if self.borrower else None,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        if not isinstance(data, dict):
            raise TypeError(f"Expected a book object, got {type(data).__name__}")
        borrower_data = data.get("borrower")
        return Book(
            id=_stored_id(data),
            title=_text(data, "title"),
            author=Author.from_dict(data["author"]),
            pages=data["pages"],
            year=data["year"],
            price=data["price"],
            borrower=Reader.from_dict(borrower_data) if borrower_data else None,
        )
