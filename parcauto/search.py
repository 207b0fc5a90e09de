from dataclasses import asdict, dataclass
from typing import Optional

from parcauto.forms import parse_optional_number, parse_optional_text

LIKE_ESCAPE = "\\"


@dataclass
class SearchFilters:
    q: Optional[str] = None
    fuel: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    transmission: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_year: Optional[int] = None
    max_year: Optional[int] = None
    max_km: Optional[int] = None

    @classmethod
    def from_args(cls, args):
        return cls(
            q=parse_optional_text(args.get("q")),
            fuel=parse_optional_text(args.get("fuel")),
            brand=parse_optional_text(args.get("brand")),
            model=parse_optional_text(args.get("model")),
            transmission=parse_optional_text(args.get("transmission")),
            min_price=parse_optional_number(args.get("minPrice")),
            max_price=parse_optional_number(args.get("maxPrice")),
            min_year=parse_optional_number(args.get("minYear"), integer=True),
            max_year=parse_optional_number(args.get("maxYear"), integer=True),
            max_km=parse_optional_number(args.get("maxKm"), integer=True),
        )

    def is_empty(self):
        return all(value is None for value in asdict(self).values())

    def form_values(self):
        """Values to echo back into the search form, keyed by query name."""
        def show(value):
            return "" if value is None else value

        return {
            "q": show(self.q),
            "fuel": show(self.fuel),
            "brand": show(self.brand),
            "model": show(self.model),
            "transmission": show(self.transmission),
            "minPrice": show(self.min_price),
            "maxPrice": show(self.max_price),
            "minYear": show(self.min_year),
            "maxYear": show(self.max_year),
            "maxKm": show(self.max_km),
        }


def escape_like(value):
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def build_where(filters):
    """
    Translate ``filters`` into a ``WHERE`` clause and its parameters.

    Returns ``("", [])`` when nothing is specified. SQLite's LIKE is
    case-insensitive for ASCII, which gives the case-insensitive substring
    match for text filters.
    """
    where_clauses = []
    params = []

    def like_param(value):
        return f"%{escape_like(value)}%"

    def add_like(field, value):
        if value is not None:
            where_clauses.append(f"{field} LIKE ? ESCAPE '{LIKE_ESCAPE}'")
            params.append(like_param(value))

    def add_equal(field, value):
        if value is not None:
            where_clauses.append(f"{field} = ?")
            params.append(value)

    def add_range(field, min_val, max_val):
        if min_val is not None:
            where_clauses.append(f"{field} >= ?")
            params.append(min_val)
        if max_val is not None:
            where_clauses.append(f"{field} <= ?")
            params.append(max_val)

    # LIKE folds case for ASCII only: "skoda" finds "Skoda", "škoda" misses "Škoda".
    if filters.q is not None:
        where_clauses.append(
            "("
            + " OR ".join(f"{field} LIKE ? ESCAPE '{LIKE_ESCAPE}'" for field in ("title", "brand", "model"))
            + ")"
        )
        params.extend([like_param(filters.q)] * 3)
    add_equal("fuel_type", filters.fuel)
    add_like("brand", filters.brand)
    add_like("model", filters.model)
    add_equal("transmission", filters.transmission)
    add_range("price", filters.min_price, filters.max_price)
    add_range("year", filters.min_year, filters.max_year)
    add_range("mileage", None, filters.max_km)

    where_sql = ""
    if where_clauses:
        where_sql = "WHERE " + " AND ".join(where_clauses)
    return where_sql, params
