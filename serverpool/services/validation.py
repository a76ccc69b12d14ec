import math
from typing import Any, Optional

from serverpool.services.exceptions import ValidationError

RESOURCE_FIELDS = ("cpu_cores", "ram_gb", "storage_gb")


def require(value: Any, field_name: str) -> Any:
    """값이 비어 있으면 ValidationError를 발생시킵니다."""
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    return value


def coerce_resource(field_name: str, value: Any, integer: bool = False) -> Optional[float]:
    """
    리소스 수치를 검증하고 정규화합니다. None은 그대로 통과시킵니다.

    Raises:
        ValidationError: 숫자가 아니거나, NaN/Infinity이거나, 음수이거나, 정수여야 하는 필드에 소수가 들어왔을 때.
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(value):
        raise ValidationError(f"{field_name} must be a finite number")
    if value < 0:
        raise ValidationError(f"{field_name} must not be negative")
    if integer:
        if isinstance(value, float) and not value.is_integer():
            raise ValidationError(f"{field_name} must be an integer")
        return int(value)
    return float(value)


def coerce_cpu(field_name: str, value: Any) -> Optional[int]:
    return coerce_resource(field_name, value, integer=True)
