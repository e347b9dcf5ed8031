# employee_api/models/model.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Date, Float, Index
from sqlalchemy.orm import declarative_base, validates

from employee_api.core.validation import is_email, is_iso_date, is_non_negative, is_number, parse_date

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordValidationError(ValueError):
    """Raised when an attribute assignment violates a model invariant."""


def _required_text(value, message):
    if value is None or not str(value).strip():
        raise RecordValidationError(message)
    return str(value).strip()


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    @validates("username")
    def validate_username(self, key, value):
        return _required_text(value, "Username is required")

    @validates("email")
    def validate_email(self, key, value):
        if not is_email(value):
            raise RecordValidationError("Valid email is required")
        return value.strip().lower()

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"


class Employee(Base):
    __tablename__ = "employees"
    __table_args__ = (
        Index("ix_employees_department_position", "department", "position"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    position = Column(String(100), nullable=False)
    salary = Column(Float, nullable=False)
    date_of_joining = Column(Date, nullable=False)
    department = Column(String(100), nullable=False)
    profile_picture = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    @validates("first_name")
    def validate_first_name(self, key, value):
        return _required_text(value, "First name is required")

    @validates("last_name")
    def validate_last_name(self, key, value):
        return _required_text(value, "Last name is required")

    @validates("position")
    def validate_position(self, key, value):
        return _required_text(value, "Position is required")

    @validates("department")
    def validate_department(self, key, value):
        return _required_text(value, "Department is required")

    @validates("email")
    def validate_email(self, key, value):
        if not is_email(value):
            raise RecordValidationError("Please provide a valid email")
        return value.strip().lower()

    @validates("salary")
    def validate_salary(self, key, value):
        if not is_number(value):
            raise RecordValidationError("Salary must be a number")
        if not is_non_negative(value):
            raise RecordValidationError("Salary cannot be negative")
        return float(value)

    @validates("date_of_joining")
    def validate_date_of_joining(self, key, value):
        if value is None or not is_iso_date(value):
            raise RecordValidationError("Date of joining is required")
        return parse_date(value)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Employee(id={self.id}, name='{self.full_name}')>"
