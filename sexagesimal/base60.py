"""Exact sexagesimal (base-60) rational numbers with NumPy interoperability."""
from __future__ import annotations

import math
import numbers
import operator
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from fractions import Fraction
from typing import Any, List, Optional, Tuple, Union

import numpy as np

NumberLike = Union["Base60", Fraction, Decimal, numbers.Real]

RADIX = 60
DEFAULT_PRECISION = 10
DECIMAL_PRECISION = 50

_TOKEN = re.compile(r"[0-9]+")


class SexagesimalFormatError(ValueError):
    """Raised when text does not follow the sexagesimal notation."""


def _ensure_int(value: numbers.Real, *, name: str) -> int:
    """Convert *value* to ``int`` when it represents an integer."""
    if isinstance(value, numbers.Integral):
        return int(value)
    raise TypeError(f"{name} must be an integer, got {type(value)!r}")


def _non_finite(value: Any) -> Optional[float]:
    """Return *value* as a float when it is a NaN or an infinity, else ``None``."""
    if isinstance(value, Decimal):
        if value.is_finite():
            return None
        return math.nan if value.is_nan() else float(value)
    if isinstance(value, numbers.Real) and not isinstance(value, numbers.Rational):
        result = float(value)
        return None if math.isfinite(result) else result
    return None


def _join(digits: List[int]) -> str:
    return ":".join(str(digit) for digit in digits)


def _parse_digits(part: str, text: str) -> List[int]:
    """Split a ``:``-separated run of digit groups, range-checking each one."""
    digits = []
    for token in part.split(":"):
        if not _TOKEN.fullmatch(token):
            raise SexagesimalFormatError(f"invalid digit {token!r} in {text!r}")
        digit = int(token)
        if digit >= RADIX:
            raise SexagesimalFormatError(
                f"digit out of range: {digit} in {text!r} (must be 0-59)"
            )
        digits.append(digit)
    return digits


def _fold(digits: List[int]) -> int:
    value = 0
    for digit in digits:
        value = value * RADIX + digit
    return value


def _split_fraction(part: str, text: str) -> Tuple[List[int], List[int]]:
    """Return the ``(prefix, cycle)`` digits of a fractional part.

    The cycle is the parenthesized run, which must close the text and start at
    a digit-group boundary. Without parentheses the cycle is empty.
    """
    opening = part.find("(")
    closing = part.find(")")
    if opening < 0 and closing < 0:
        return _parse_digits(part, text), []
    if (
        part.count("(") != 1
        or part.count(")") != 1
        or opening > closing
        or closing != len(part) - 1
    ):
        raise SexagesimalFormatError(f"misplaced repeating block in {text!r}")
    cycle = part[opening + 1 : closing]
    if not cycle:
        raise SexagesimalFormatError(f"empty repeating block in {text!r}")
    if opening == 0:
        return [], _parse_digits(cycle, text)
    if part[opening - 1] != ":":
        raise SexagesimalFormatError(
            f"repeating block must start a digit group in {text!r}"
        )
    return _parse_digits(part[: opening - 1], text), _parse_digits(cycle, text)


class Base60:
    """Exact rational number rendered in Babylonian sexagesimal notation.

    Values are always kept in lowest terms with a positive denominator, so
    two instances with the same value share one representation.
    """

    __slots__ = ("_numerator", "_denominator")
    __array_priority__ = 1000.0  # Prefer Base60 semantics in NumPy expressions.

    def __init__(
        self,
        numerator: Union[int, numbers.Integral] = 0,
        denominator: Union[int, numbers.Integral] = 1,
    ) -> None:
        num = _ensure_int(numerator, name="numerator")
        den = _ensure_int(denominator, name="denominator")
        if den == 0:
            raise ZeroDivisionError("denominator must be non-zero")

        self._numerator, self._denominator = self._normalize(num, den)

    # ------------------------------------------------------------------
    # Constructors
    @classmethod
    def from_integer(cls, value: Union[int, numbers.Integral]) -> "Base60":
        return cls(_ensure_int(value, name="value"), 1)

    @classmethod
    def from_decimal(cls, value: Union[Decimal, int, str]) -> "Base60":
        """Return the exact value of a finite decimal.

        ``Decimal("1.25")`` becomes ``125 / 10**2`` before normalization; a
        negative exponent such as ``Decimal("4E+3")`` scales the numerator.
        """
        if not isinstance(value, Decimal):
            try:
                value = Decimal(value)
            except InvalidOperation as exc:
                raise ValueError(f"invalid decimal literal {value!r}") from exc
        if not value.is_finite():
            raise ValueError("cannot convert NaN or infinity to Base60")
        sign, digits, exponent = value.as_tuple()
        unscaled = 0
        for digit in digits:
            unscaled = unscaled * 10 + digit
        if sign:
            unscaled = -unscaled
        if exponent >= 0:
            return cls(unscaled * 10**exponent, 1)
        return cls(unscaled, 10**-exponent)

    @classmethod
    def from_fraction(
        cls,
        numerator: Union[int, numbers.Rational],
        denominator: Optional[Union[int, numbers.Integral]] = None,
    ) -> "Base60":
        """Create a :class:`Base60` from a numerator/denominator pair.

        With *denominator* omitted, *numerator* may be any rational such as
        :class:`fractions.Fraction`.
        """
        if denominator is None:
            if isinstance(numerator, numbers.Rational):
                return cls(int(numerator.numerator), int(numerator.denominator))
            raise TypeError(f"Cannot interpret {type(numerator)!r} as a fraction")
        return cls(numerator, denominator)

    @classmethod
    def from_float(cls, value: float) -> "Base60":
        """Return the exact binary value of a finite float."""
        if isinstance(value, bool):  # bool is a subclass of int; treat explicitly.
            return cls(int(value), 1)
        if math.isnan(value) or math.isinf(value):
            raise ValueError("cannot convert NaN or infinity to Base60")
        frac = Fraction.from_float(float(value))
        return cls(frac.numerator, frac.denominator)

    @classmethod
    def parse(cls, text: str, *, periodic: bool = False) -> "Base60":
        """Parse sexagesimal notation such as ``"2:46:58.30:15"``.

        Digit groups are base-10 tokens in ``0..59`` separated by ``:``; an
        optional ``.`` introduces the fractional groups and a leading ``-``
        negates the result. The fractional part may end with a parenthesized
        run, as produced by :meth:`exact_periodic`. By default the parentheses
        are dropped and the digits are read as a finite fraction, so
        ``parse("0.(8:34:17)") == parse("0.8:34:17")``. With ``periodic=True``
        the run repeats forever and ``parse("0.(8:34:17)", periodic=True)`` is
        exactly ``1/7``.
        """
        if not isinstance(text, str):
            raise TypeError(f"expected str, got {type(text)!r}")
        body = text.strip()
        negative = body.startswith("-")
        if negative:
            body = body[1:]

        integer_text, dot, fraction_text = body.partition(".")
        if not integer_text:
            raise SexagesimalFormatError(f"missing integer part in {text!r}")
        if "(" in integer_text or ")" in integer_text:
            raise SexagesimalFormatError(f"misplaced repeating block in {text!r}")
        integer_part = _fold(_parse_digits(integer_text, text))

        frac_numerator, frac_denominator = 0, 1
        if dot:
            if not fraction_text:
                raise SexagesimalFormatError(f"missing fractional part in {text!r}")
            prefix, cycle = _split_fraction(fraction_text, text)
            if periodic and cycle:
                scale = RADIX ** len(prefix)
                period = RADIX ** len(cycle) - 1
                frac_numerator = _fold(prefix) * period + _fold(cycle)
                frac_denominator = scale * period
            else:
                digits = prefix + cycle
                frac_numerator = _fold(digits)
                frac_denominator = RADIX ** len(digits)

        numerator = integer_part * frac_denominator + frac_numerator
        if negative:
            numerator = -numerator
        return cls(numerator, frac_denominator)

    # ------------------------------------------------------------------
    # Properties and helpers
    @property
    def numerator(self) -> int:
        return self._numerator

    @property
    def denominator(self) -> int:
        return self._denominator

    def as_fraction(self) -> Fraction:
        """Return a :class:`Fraction` with the same value."""
        return Fraction(self._numerator, self._denominator)

    def to_decimal(self) -> Decimal:
        """Return the value as a :class:`~decimal.Decimal`.

        Integers are exact; other values are rounded half-up to
        ``DECIMAL_PRECISION`` significant digits.
        """
        if self._denominator == 1:
            return Decimal(self._numerator)
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            ctx.rounding = ROUND_HALF_UP
            return Decimal(self._numerator) / Decimal(self._denominator)

    def to_integer(self) -> int:
        """Return the integer part, truncated toward zero."""
        quotient = abs(self._numerator) // self._denominator
        return -quotient if self._numerator < 0 else quotient

    # ------------------------------------------------------------------
    # Digits
    def integer_digits(self) -> List[int]:
        """Base-60 digits of the integer part, most significant first."""
        quotient = abs(self._numerator) // self._denominator
        if quotient == 0:
            return [0]
        digits = []
        while quotient > 0:
            quotient, digit = divmod(quotient, RADIX)
            digits.append(digit)
        digits.reverse()
        return digits

    def fraction_digits(self, precision: int = DEFAULT_PRECISION) -> List[int]:
        """Up to *precision* base-60 digits of the fractional part.

        Extraction stops early once the expansion terminates.
        """
        if precision < 0:
            raise ValueError("precision must be non-negative")
        remainder = abs(self._numerator) % self._denominator
        digits: List[int] = []
        while remainder and len(digits) < precision:
            digit, remainder = divmod(remainder * RADIX, self._denominator)
            digits.append(digit)
        return digits

    # ------------------------------------------------------------------
    # Formatting
    def display(self, precision: int = DEFAULT_PRECISION) -> str:
        """Truncated sexagesimal rendering such as ``"0.8:34:17:8"``."""
        fraction = self.fraction_digits(precision)
        while fraction and fraction[-1] == 0:
            fraction.pop()

        result = _join(self.integer_digits())
        if fraction:
            result += "." + _join(fraction)
        return "-" + result if self._numerator < 0 else result

    def exact_periodic(self) -> str:
        """Exact sexagesimal expansion with the repeating block parenthesized.

        Long division in base 60: each remainder is remembered with the index
        of the digit it produces, and the first repeated remainder marks the
        start of the period. ``Base60(1, 7).exact_periodic()`` is
        ``"0.(8:34:17)"``; finite expansions carry no parentheses.
        """
        remainder = abs(self._numerator) % self._denominator
        result = _join(self.integer_digits())

        if remainder:
            seen = {}
            digits: List[int] = []
            while remainder:
                if remainder in seen:
                    start = seen[remainder]
                    fraction = "(" + _join(digits[start:]) + ")"
                    if start:
                        fraction = _join(digits[:start]) + ":" + fraction
                    break
                seen[remainder] = len(digits)
                digit, remainder = divmod(remainder * RADIX, self._denominator)
                digits.append(digit)
            else:
                fraction = _join(digits)
            result += "." + fraction

        return "-" + result if self._numerator < 0 else result

    # ------------------------------------------------------------------
    # Numeric protocol
    def __float__(self) -> float:  # pragma: no cover - trivial mapping
        return self._numerator / self._denominator

    def __int__(self) -> int:
        return self.to_integer()

    def __bool__(self) -> bool:  # pragma: no cover - trivial mapping
        return self._numerator != 0

    # ------------------------------------------------------------------
    # Representation
    def __repr__(self) -> str:
        return f"Base60({self._numerator}, {self._denominator})"

    def __str__(self) -> str:
        return self.display()

    def __format__(self, format_spec: str) -> str:
        if format_spec == "":
            return self.display()
        if format_spec in ("p", "P"):
            return self.exact_periodic()
        if format_spec in ("r", "R"):
            if self._denominator == 1:
                return str(self._numerator)
            return f"{self._numerator}/{self._denominator}"
        match = re.fullmatch(r"\.(\d+)", format_spec)
        if match:
            return self.display(int(match.group(1)))
        return format(float(self), format_spec)

    # ------------------------------------------------------------------
    # Internal helpers
    @staticmethod
    def _coerce_scalar(value: Any) -> "Base60":
        if isinstance(value, Base60):
            return value
        if isinstance(value, numbers.Integral):
            return Base60(int(value), 1)
        if isinstance(value, numbers.Rational):
            return Base60.from_fraction(value)
        if isinstance(value, Decimal):
            return Base60.from_decimal(value)
        if isinstance(value, np.generic):  # NumPy scalars
            return Base60._coerce_scalar(value.item())
        if isinstance(value, numbers.Real):
            return Base60.from_float(float(value))
        raise TypeError(f"Cannot interpret {type(value)!r} as Base60")

    def _elementwise(self, other: Any, op, reflected: bool = False) -> Any:
        """Apply *op* to this value and *other*, element by element for sequences.

        Lists, tuples and arrays on the other side give an object array of
        results; with *reflected* this value becomes the right operand.
        """

        def apply(item: Any) -> Any:
            item = self._coerce_scalar(item)
            return op(item, self) if reflected else op(self, item)

        if isinstance(other, np.ndarray):
            return np.vectorize(apply, otypes=[object])(other)
        if isinstance(other, (list, tuple)):
            return as_base60_array([apply(item) for item in other])
        return apply(other)

    @staticmethod
    def _normalize(num: int, den: int) -> Tuple[int, int]:
        gcd = math.gcd(num, den)  # gcd(0, den) == |den|
        num //= gcd
        den //= gcd
        if den < 0:
            num, den = -num, -den
        return num, den

    def _coerce_power(self, value: Any) -> int:
        if isinstance(value, numbers.Integral):
            return int(value)
        if isinstance(value, Base60):
            if value.denominator != 1:
                raise ValueError("Exponent must be an integer")
            return value.numerator
        if isinstance(value, np.generic):
            return self._coerce_power(value.item())
        if isinstance(value, numbers.Real):
            if not float(value).is_integer():
                raise ValueError("Exponent must be an integer")
            return int(value)
        raise TypeError("Unsupported exponent type")

    # ------------------------------------------------------------------
    # Exact arithmetic
    def add(self, other: "Base60") -> "Base60":
        other = self._coerce_scalar(other)
        return Base60(
            self._numerator * other._denominator + other._numerator * self._denominator,
            self._denominator * other._denominator,
        )

    def subtract(self, other: "Base60") -> "Base60":
        other = self._coerce_scalar(other)
        return Base60(
            self._numerator * other._denominator - other._numerator * self._denominator,
            self._denominator * other._denominator,
        )

    def multiply(self, other: "Base60") -> "Base60":
        other = self._coerce_scalar(other)
        return Base60(
            self._numerator * other._numerator,
            self._denominator * other._denominator,
        )

    def divide(self, other: "Base60") -> "Base60":
        other = self._coerce_scalar(other)
        if other._numerator == 0:
            raise ZeroDivisionError("division by zero")
        return Base60(
            self._numerator * other._denominator,
            self._denominator * other._numerator,
        )

    def compare(self, other: "Base60") -> int:
        """Return -1, 0 or 1 as this value is below, equal to or above *other*.

        Infinities order by their sign; NaN has no order and raises
        ``ValueError``.
        """
        special = _non_finite(other)
        if special is not None:
            if math.isnan(special):
                raise ValueError("cannot order Base60 against NaN")
            return -1 if special > 0 else 1
        other = self._coerce_scalar(other)
        difference = (
            self._numerator * other._denominator - other._numerator * self._denominator
        )
        return (difference > 0) - (difference < 0)

    def equals(self, other: "Base60") -> bool:
        return self._compare(other, operator.eq)

    # ------------------------------------------------------------------
    # Arithmetic operators
    def __add__(self, other: Any) -> Any:
        return self._elementwise(other, Base60.add)

    def __radd__(self, other: Any) -> Any:
        return self._elementwise(other, Base60.add, reflected=True)

    def __sub__(self, other: Any) -> Any:
        return self._elementwise(other, Base60.subtract)

    def __rsub__(self, other: Any) -> Any:
        return self._elementwise(other, Base60.subtract, reflected=True)

    def __mul__(self, other: Any) -> Any:
        return self._elementwise(other, Base60.multiply)

    def __rmul__(self, other: Any) -> Any:
        return self._elementwise(other, Base60.multiply, reflected=True)

    def __truediv__(self, other: Any) -> Any:
        return self._elementwise(other, Base60.divide)

    def __rtruediv__(self, other: Any) -> Any:
        return self._elementwise(other, Base60.divide, reflected=True)

    def __pow__(self, exponent: Any) -> Any:
        if isinstance(exponent, np.ndarray):
            return np.vectorize(self.__pow__, otypes=[object])(exponent)
        power = self._coerce_power(exponent)
        if power >= 0:
            return Base60(self._numerator**power, self._denominator**power)
        if self._numerator == 0:
            raise ZeroDivisionError("0 cannot be raised to a negative power")
        positive = -power
        return Base60(self._denominator**positive, self._numerator**positive)

    def __neg__(self) -> "Base60":
        return Base60(-self._numerator, self._denominator)

    def __pos__(self) -> "Base60":  # pragma: no cover - trivial
        return self

    def __abs__(self) -> "Base60":
        return Base60(abs(self._numerator), self._denominator)

    # ------------------------------------------------------------------
    # Comparisons
    def _compare(self, other: Any, op) -> bool:
        special = _non_finite(other)
        if special is not None:
            # Any finite value sits at zero relative to an infinity; NaN fails every op.
            return op(0.0, special)
        return op(self.compare(other), 0)

    def __eq__(self, other: Any) -> bool:
        try:
            return self._compare(other, operator.eq)
        except (TypeError, ValueError):
            return False

    def __lt__(self, other: Any) -> bool:
        return self._compare(other, operator.lt)

    def __le__(self, other: Any) -> bool:
        return self._compare(other, operator.le)

    def __gt__(self, other: Any) -> bool:  # pragma: no cover - mirrors __lt__
        return self._compare(other, operator.gt)

    def __ge__(self, other: Any) -> bool:  # pragma: no cover - mirrors __le__
        return self._compare(other, operator.ge)

    def __hash__(self) -> int:
        return hash(Fraction(self._numerator, self._denominator))

    # ------------------------------------------------------------------
    # NumPy interoperability
    _UFUNC_DISPATCH = {
        np.add: operator.add,
        np.subtract: operator.sub,
        np.multiply: operator.mul,
        np.divide: operator.truediv,
        np.true_divide: operator.truediv,
        np.negative: operator.neg,
        np.positive: operator.pos,
        np.absolute: abs,
        np.power: operator.pow,
        np.equal: operator.eq,
        np.not_equal: operator.ne,
        np.less: operator.lt,
        np.less_equal: operator.le,
        np.greater: operator.gt,
        np.greater_equal: operator.ge,
    }

    def __array_ufunc__(self, ufunc, method, *inputs, **kwargs):
        if method != "__call__":
            return NotImplemented
        if kwargs.get("out") is not None:
            raise NotImplementedError("`out` argument is not supported for Base60 ufuncs")
        op = self._UFUNC_DISPATCH.get(ufunc)
        if op is None:
            return NotImplemented

        coerced = []
        has_array = False
        for value in inputs:
            if isinstance(value, Base60):
                coerced.append(value)
            elif isinstance(value, np.ndarray):
                vectorised = np.vectorize(self._coerce_scalar, otypes=[object])
                coerced.append(vectorised(value))
                has_array = True
            else:
                coerced.append(self._coerce_scalar(value))
        if has_array:
            vectorised = np.vectorize(lambda *args: op(*args), otypes=[object])
            return vectorised(*coerced)
        return op(*coerced)


def as_base60(value: Union[NumberLike, str]) -> Base60:
    """Public helper to convert *value* (or sexagesimal text) into :class:`Base60`."""

    if isinstance(value, str):
        return Base60.parse(value)
    return Base60._coerce_scalar(value)


def as_base60_array(values: Any, *, copy: bool = True) -> "np.ndarray":
    """Return a ``numpy.ndarray`` of :class:`Base60` values.

    ``values`` can be any iterable of numeric-like entries or sexagesimal
    strings, or an existing NumPy array. When ``copy`` is ``False`` and
    ``values`` is already an object array holding only :class:`Base60`
    entries, the original array is returned.
    """

    if isinstance(values, np.ndarray):
        array = values.copy() if copy else values
        if array.dtype == object and all(isinstance(item, Base60) for item in array.flat):
            return array
        if array.size == 0:
            return array.astype(object)
        vectorised = np.vectorize(as_base60, otypes=[object])
        return vectorised(array)

    if isinstance(values, (list, tuple)):
        array = np.empty(len(values), dtype=object)
        for index, item in enumerate(values):
            array[index] = as_base60(item)
        return array

    return as_base60_array(list(values), copy=copy)


def zeros(length: int) -> "np.ndarray":
    """Return a one-dimensional array of length ``length`` filled with zeros."""

    if length < 0:
        raise ValueError("length must be non-negative")
    return as_base60_array([Base60(0) for _ in range(length)])


def zeros_like(values: Any) -> "np.ndarray":
    """Return a zero-filled array that matches the shape of ``values``."""

    array = as_base60_array(values, copy=False)
    result = np.empty(array.shape, dtype=object)
    for index in np.ndindex(array.shape):
        result[index] = Base60(0)
    return result


__all__ = [
    "Base60",
    "SexagesimalFormatError",
    "as_base60",
    "as_base60_array",
    "zeros",
    "zeros_like",
    "DEFAULT_PRECISION",
    "DECIMAL_PRECISION",
    "RADIX",
]
