from __future__ import annotations

import math
import re
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

_PHONE_RE = re.compile(r"^\d+$")
PHONE_MESSAGE = "should contain only digits (and optional + or spaces)"


class ApiModel(BaseModel):
    """
    Request body base: camelCase on the wire, snake_case field names also
    accepted. Unknown keys are ignored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_fields(self, *, exclude: set[str] | None = None) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude=exclude)


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str):
        s = v.strip()
        return s or None
    return v


def _lenient_int(v: Any) -> int | None:
    v = _blank_to_none(v)
    if v is None or isinstance(v, bool):
        return None
    try:
        return int(str(v).strip())
    except ValueError:
        return None


def _lenient_number(v: Any) -> float | None:
    v = _blank_to_none(v)
    if v is None or isinstance(v, bool):
        return None
    try:
        n = float(v)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(n) or math.isinf(n) else n


def _phone(v: str | None) -> str | None:
    if v is None:
        return None
    digits = v.replace(" ", "").replace("-", "")
    if digits.startswith("+"):
        digits = digits[1:]
    if not _PHONE_RE.match(digits):
        raise ValueError(f"Phone number {PHONE_MESSAGE}")
    return v


def _required_text(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        raise ValueError("must not be blank")
    return v.strip() if isinstance(v, str) else v


OptStr = Annotated[str | None, BeforeValidator(_blank_to_none)]
OptInt = Annotated[int | None, BeforeValidator(_lenient_int)]
OptNumber = Annotated[float | None, BeforeValidator(_lenient_number)]
Phone = Annotated[str | None, BeforeValidator(_blank_to_none), AfterValidator(_phone)]
RequiredText = Annotated[str, BeforeValidator(_required_text)]
