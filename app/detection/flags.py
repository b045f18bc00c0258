from app.detection.constants import DEDUCTIONS
from app.schemas.evidence import Severity, ValidationFlag


def build_flag(code: str, severity: Severity, message: str) -> ValidationFlag:
    """Create a flag carrying the fixed deduction registered for its code."""
    return ValidationFlag(code=code, severity=severity, message=message, deduction=DEDUCTIONS[code])


def total_deduction(flags) -> int:
    return sum(flag.deduction for flag in flags)
