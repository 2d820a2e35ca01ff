"""
금액 유틸리티

경계(HTTP/호출자)에서 들어오는 금액 문자열을 한 번만 파싱/검증한다.
이진 부동소수점은 절대 허용하지 않는다.

저장: minor unit 정수 (SCALE=2 → 1.00 == 100)
"""

from decimal import Decimal, InvalidOperation

from core.constants import Money
from core.errors import InvalidAmount


def parse_amount(value: str | int | Decimal) -> Decimal:
    """금액 파싱 및 검증

    Args:
        value: 10진수 문자열, 정수 또는 Decimal (float 불가)

    Returns:
        Money.SCALE 자리로 정규화된 Decimal

    Raises:
        InvalidAmount: float, 숫자가 아님, NaN/Infinity, 소수 자릿수 초과,
            절대값이 Money.MAX_AMOUNT 초과

    Example:
        >>> parse_amount("3000")
        Decimal('3000.00')
    """
    # bool은 int의 하위 클래스라 별도 거부
    if isinstance(value, (float, bool)):
        raise InvalidAmount(
            "금액은 부동소수점이 아닌 10진수 문자열이어야 합니다",
            value=value,
        )

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidAmount(f"금액 형식이 잘못되었습니다: {value!r}", value=value) from e

    if not amount.is_finite():
        raise InvalidAmount(f"금액은 유한한 값이어야 합니다: {value!r}", value=value)

    exponent = amount.as_tuple().exponent
    if isinstance(exponent, int) and exponent < -Money.SCALE:
        raise InvalidAmount(
            f"소수점 이하 {Money.SCALE}자리까지만 허용됩니다: {value!r}",
            value=value,
        )

    if abs(amount) > Money.MAX_AMOUNT:
        raise InvalidAmount(
            f"금액 범위를 벗어났습니다 (최대 {Money.MAX_AMOUNT}): {value!r}",
            value=value,
        )

    try:
        return amount.quantize(Money.QUANT)
    except InvalidOperation as e:
        raise InvalidAmount(f"금액 형식이 잘못되었습니다: {value!r}", value=value) from e


def parse_positive_amount(value: str | int | Decimal) -> Decimal:
    """양수 금액 파싱 (분개/이체 금액용)

    Raises:
        InvalidAmount: 0 이하
    """
    amount = parse_amount(value)
    if amount <= 0:
        raise InvalidAmount(f"금액은 0보다 커야 합니다: {amount}", amount=amount)
    return amount


def to_minor(amount: Decimal) -> int:
    """Decimal → minor unit 정수

    Raises:
        InvalidAmount: SQLite INTEGER 범위를 벗어남
    """
    try:
        minor = int(amount.quantize(Money.QUANT) * Money.MINOR_PER_UNIT)
    except InvalidOperation as e:
        raise InvalidAmount(f"금액 변환 실패: {amount}", amount=str(amount)) from e
    if abs(minor) > Money.MAX_MINOR:
        raise InvalidAmount(f"금액 범위를 벗어났습니다: {amount}", amount=str(amount))
    return minor


def from_minor(minor: int | None) -> Decimal:
    """minor unit 정수 → Decimal (None은 0)"""
    if minor is None:
        return Money.ZERO
    return (Decimal(minor) / Money.MINOR_PER_UNIT).quantize(Money.QUANT)


def format_amount(amount: Decimal) -> str:
    """경계 직렬화용 고정소수점 문자열

    Example:
        >>> format_amount(Decimal("8000"))
        '8000.00'
    """
    return str(amount.quantize(Money.QUANT))
