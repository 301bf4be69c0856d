"""
Base schemas with standardized field types for consistent API responses.
"""

from datetime import time
from decimal import Decimal, InvalidOperation
import re
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic_core import core_schema

from ..domain.intervals import parse_hhmm
from ..domain.pricing import round_money

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class StandardizedModel(BaseModel):
    """Base model with standardized JSON encoding"""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True, from_attributes=True)


class Money(Decimal):
    """Money field that always serializes as a 2-decimal string ("200.00")."""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def validate_money(value: Any) -> Decimal:
            if isinstance(value, Decimal):
                return value
            try:
                return Decimal(str(value))
            except InvalidOperation:
                raise ValueError(f"Cannot convert {value!r} to Money")

        return core_schema.no_info_after_validator_function(
            validate_money,
            core_schema.union_schema(
                [
                    core_schema.int_schema(),
                    core_schema.float_schema(),
                    core_schema.str_schema(),
                    core_schema.is_instance_schema(Decimal),
                ]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda v: str(round_money(v)),
                info_arg=False,
                return_schema=core_schema.str_schema(),
            ),
        )


def ensure_date_only(value: object, field_name: str) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        if not DATE_ONLY_REGEX.fullmatch(candidate):
            raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
        return candidate
    return value


def parse_time_value(value: object) -> object:
    """Convert ``HH:MM`` (or ``HH:MM:00``) strings to ``time``; other values pass through."""
    if isinstance(value, str):
        try:
            return parse_hhmm(value)
        except ValueError:
            raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")
    return value


def serialize_hhmm(value: time) -> str:
    return value.strftime("%H:%M")
