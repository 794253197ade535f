import math
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _lenient_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


class CartridgeState(BaseModel):
    """One cartridge reading. Malformed fields degrade to None instead of failing."""

    model_config = ConfigDict(extra="ignore")

    status: Optional[str] = None
    used: Optional[float] = None
    remaining: Optional[float] = None

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)

    @field_validator("used", "remaining", mode="before")
    @classmethod
    def _coerce_liters(cls, value: Any) -> Optional[float]:
        return _lenient_float(value)

    @property
    def percent_used(self) -> float:
        if self.used is None or self.remaining is None:
            return 0.0
        total = self.used + self.remaining
        if total <= 0:
            return 0.0
        return min(max(self.used / total * 100.0, 0.0), 100.0)


class Snapshot(BaseModel):
    """Payload of GET /data. Top-level metrics are strict; cartridges are not."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    total_volume: float = Field(..., alias="totalVolume")
    current_speed: float = Field(..., alias="currentSpeed")
    highest_speed: float = Field(..., alias="highestSpeed")
    cartridges: List[CartridgeState]

    @field_validator("total_volume", "current_speed", "highest_speed", mode="before")
    @classmethod
    def _require_finite_number(cls, value: Any) -> float:
        # JSON numbers only: no numeric strings, no booleans, no inf/nan.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("must be a JSON number")
        try:
            number = float(value)
        except OverflowError:
            raise ValueError("number out of range")
        if not math.isfinite(number):
            raise ValueError("must be finite")
        return number

    @field_validator("cartridges", mode="before")
    @classmethod
    def _coerce_entries(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [entry if isinstance(entry, dict) else {} for entry in value]
