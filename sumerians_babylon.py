#!/usr/bin/env python3
"""Convert numbers to Babylonian sexagesimal notation and print the results."""

import argparse
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from sexagesimal import DEFAULT_PRECISION, Base60, SexagesimalFormatError

PARFILE_KEYS = (
    "precision",
    "periodic_input",
    "show_periodic",
    "values",
    "fractions",
    "decimals",
)


@dataclass
class Settings:
    precision: int = DEFAULT_PRECISION
    periodic_input: bool = False
    show_periodic: bool = True
    values: List[str] = field(default_factory=list)
    fractions: List[str] = field(default_factory=list)
    decimals: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.values or self.fractions or self.decimals)


def load_parfile(path: str) -> Settings:
    parfile = Path(path).expanduser().resolve()
    if not parfile.exists():
        raise FileNotFoundError(f"Parfile not found: {path}")

    with parfile.open("rb") as pf:
        params = tomllib.load(pf)

    unknown = sorted(set(params) - set(PARFILE_KEYS))
    if unknown:
        raise ValueError(f"Unknown keys in parfile {parfile}: {', '.join(unknown)}")

    return Settings(
        precision=int(params.get("precision", DEFAULT_PRECISION)),
        periodic_input=bool(params.get("periodic_input", False)),
        show_periodic=bool(params.get("show_periodic", True)),
        values=[str(item) for item in params.get("values", [])],
        fractions=[str(item) for item in params.get("fractions", [])],
        decimals=[str(item) for item in params.get("decimals", [])],
    )


def parse_fraction(text: str) -> Base60:
    numerator, slash, denominator = text.partition("/")
    try:
        if not slash:
            return Base60.from_integer(int(numerator))
        return Base60.from_fraction(int(numerator), int(denominator))
    except ValueError as exc:
        raise SexagesimalFormatError(f"invalid fraction {text!r}, expected N/D") from exc


def collect_values(settings: Settings) -> List[Tuple[str, Base60]]:
    collected = []
    for text in settings.values:
        collected.append((text, Base60.parse(text, periodic=settings.periodic_input)))
    for text in settings.fractions:
        collected.append((text, parse_fraction(text)))
    for text in settings.decimals:
        collected.append((text, Base60.from_decimal(text)))
    return collected


def describe(value: Base60, precision: int, show_periodic: bool = True) -> str:
    line = f"{value.display(precision)} → {value.to_decimal()}"
    if show_periodic:
        # The period can be as long as the denominator.
        line += f" → {value.exact_periodic()}"
    return line


def demonstrate(precision: int, periodic_input: bool) -> None:
    a = Base60.parse("2:46:58.30:15")
    print(f"{a.display(precision)} → {a.to_decimal()}")

    b = Base60.from_fraction(1, 7)
    e = Base60.parse("0.8:34:17")
    f = Base60.parse("0.(8:34:17)", periodic=periodic_input)
    print(f"{b.to_decimal()} → {b.display(precision)} → {b.exact_periodic()}")
    print(f"{e.display(precision)} → {e.to_decimal()}")
    print(f"{f.display(precision)} → {f.to_decimal()}")
    print()

    c = Base60.parse("1:30")
    d = Base60.parse("2:15")
    print(f"{c.display(precision)} → {c.to_decimal()}")
    print(f"{d.display(precision)} → {d.to_decimal()}")
    print(f"{c.display(precision)} + {d.display(precision)} = {(c + d).display(precision)}")

    total = c.to_integer() + d.to_integer()
    print(
        f"{c.to_integer()} + {d.to_integer()} = {total} → "
        f"{Base60.from_integer(total).display(precision)}"
    )
    print()

    print(c.compare(d))


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Convert numbers to Babylonian sexagesimal notation.",
    )
    parser.add_argument("values", nargs="*", help="Sexagesimal values such as 1:30 or 0.8:34:17")
    parser.add_argument(
        "--fraction",
        dest="fractions",
        action="append",
        default=[],
        help="Exact fraction N/D to convert (repeatable); see --no-periodic for large D",
    )
    parser.add_argument(
        "--decimal",
        dest="decimals",
        action="append",
        default=[],
        help="Decimal literal to convert (repeatable)",
    )
    parser.add_argument("--precision", type=int, help="Fractional digits shown in truncated form")
    parser.add_argument(
        "--periodic-input",
        action="store_true",
        default=None,
        help="Read a parenthesized block in the input as repeating forever",
    )
    parser.add_argument(
        "--no-periodic",
        dest="show_periodic",
        action="store_false",
        default=None,
        help="Skip the exact periodic form; its period can be as long as the denominator",
    )
    parser.add_argument("--parfile", dest="parfile", help="TOML file with default settings")
    args = parser.parse_args(argv)

    settings = load_parfile(args.parfile) if args.parfile else Settings()
    if args.precision is not None:
        settings.precision = args.precision
    if args.periodic_input is not None:
        settings.periodic_input = args.periodic_input
    if args.show_periodic is not None:
        settings.show_periodic = args.show_periodic
    settings.values.extend(args.values)
    settings.fractions.extend(args.fractions)
    settings.decimals.extend(args.decimals)

    if settings.precision < 0:
        raise ValueError("precision must be non-negative")

    if settings.is_empty():
        demonstrate(settings.precision, settings.periodic_input)
        return

    for text, value in collect_values(settings):
        print(f"{text}: {describe(value, settings.precision, settings.show_periodic)}")


def cli() -> None:
    try:
        main()
    except Exception as exc:  # noqa: BLE001
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    cli()
