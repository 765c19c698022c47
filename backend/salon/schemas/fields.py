# backend/salon/schemas/fields.py
"""Wire formats shared by request schemas: "YYYY-MM-DD" dates and "HH:MM" times."""

from typing import Annotated

from pydantic import Field

DATE_PATTERN = r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$"
TIME_PATTERN = r"^([01][0-9]|2[0-3]):[0-5][0-9]$"

DateStr = Annotated[str, Field(pattern=DATE_PATTERN, examples=["2025-03-14"])]
TimeStr = Annotated[str, Field(pattern=TIME_PATTERN, examples=["09:20"])]
