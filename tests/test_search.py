import pytest

from parcauto.search import SearchFilters, build_where


@pytest.fixture
def cars(bare_store):
    ids = {}
    ids["golf"] = bare_store.insert_car(
        {
            "title": "VW Golf TDI",
            "brand": "Volkswagen",
            "model": "Golf",
            "fuel_type": "diesel",
            "transmission": "manual",
            "price": 9000.0,
            "year": 2015,
            "mileage": 120000,
        }
    )
    ids["corolla"] = bare_store.insert_car(
        {
            "title": "Toyota Corolla",
            "brand": "Toyota",
            "model": "Corolla",
            "fuel_type": "petrol",
            "transmission": "automatic",
            "price": 12000.0,
            "year": 2018,
            "mileage": 60000,
        }
    )
    ids["wagon"] = bare_store.insert_car(
        {
            "title": "Family wagon",
            "brand": "Peugeot",
            "model": "308 SW",
            "fuel_type": "diesel",
            "transmission": "automatic",
            "price": 7000.0,
            "year": 2012,
            "mileage": 200000,
        }
    )
    ids["mystery"] = bare_store.insert_car({"title": "Mystery project"})
    return ids


def found(store, **kwargs):
    return {car["id"] for car in store.search_cars(SearchFilters(**kwargs))}


def test_build_where_empty():
    assert build_where(SearchFilters()) == ("", [])


def test_build_where_query_spans_three_columns():
    where_sql, params = build_where(SearchFilters(q="golf"))
    assert "title LIKE ?" in where_sql
    assert "brand LIKE ?" in where_sql
    assert "model LIKE ?" in where_sql
    assert " OR " in where_sql
    assert params == ["%golf%"] * 3


def test_build_where_escapes_wildcards():
    _, params = build_where(SearchFilters(brand="50%_off"))
    assert params == ["%50\\%\\_off%"]


def test_build_where_keeps_zero():
    where_sql, params = build_where(SearchFilters(min_price=0))
    assert where_sql == "WHERE price >= ?"
    assert params == [0]


def test_from_args_uses_query_names():
    filters = SearchFilters.from_args(
        {
            "q": " golf ",
            "fuel": "",
            "minPrice": "1000",
            "maxPrice": "abc",
            "minYear": "2010",
            "maxYear": "",
            "maxKm": "150000",
        }
    )
    assert filters == SearchFilters(q="golf", min_price=1000.0, min_year=2010, max_km=150000)
    assert SearchFilters.from_args({}).is_empty()
    assert filters.form_values()["maxPrice"] == ""


def test_no_filters_equals_listing(bare_store, cars):
    assert bare_store.search_cars(SearchFilters()) == bare_store.list_cars()
    assert bare_store.search_cars(SearchFilters.from_args({"q": "", "maxKm": "x"})) == bare_store.list_cars()


def test_query_matches_title_brand_or_model(bare_store, cars):
    assert found(bare_store, q="golf") == {cars["golf"]}
    assert found(bare_store, q="TOYOTA") == {cars["corolla"]}
    assert found(bare_store, q="volkswagen") == {cars["golf"]}
    assert found(bare_store, q="308") == {cars["wagon"]}
    assert found(bare_store, q="o") == {cars["golf"], cars["corolla"], cars["wagon"], cars["mystery"]}
    assert found(bare_store, q="nothing like it") == set()


def test_query_wildcards_are_literal(bare_store, cars):
    assert found(bare_store, q="%") == set()
    assert found(bare_store, q="_") == set()


def test_fuel_is_exact_match(bare_store, cars):
    assert found(bare_store, fuel="diesel") == {cars["golf"], cars["wagon"]}
    assert found(bare_store, fuel="dies") == set()


def test_advanced_filters(bare_store, cars):
    assert found(bare_store, brand="peug") == {cars["wagon"]}
    assert found(bare_store, model="coro") == {cars["corolla"]}
    assert found(bare_store, transmission="automatic") == {cars["corolla"], cars["wagon"]}
    assert found(bare_store, min_price=8000, max_price=10000) == {cars["golf"]}
    assert found(bare_store, min_year=2013) == {cars["golf"], cars["corolla"]}
    assert found(bare_store, max_year=2015) == {cars["golf"], cars["wagon"]}
    assert found(bare_store, max_km=100000) == {cars["corolla"]}


def test_filters_intersect(bare_store, cars):
    diesel = found(bare_store, fuel="diesel")
    automatic = found(bare_store, transmission="automatic")
    both = found(bare_store, fuel="diesel", transmission="automatic")
    assert both == diesel & automatic == {cars["wagon"]}


def test_zero_minimum_price_is_applied(bare_store, cars):
    # Cars without a price drop out once any price bound is given.
    assert cars["mystery"] not in found(bare_store, min_price=0)
    assert found(bare_store, min_price=0) == {cars["golf"], cars["corolla"], cars["wagon"]}


def test_results_are_newest_first(bare_store, cars):
    results = bare_store.search_cars(SearchFilters(fuel="diesel"))
    assert [car["id"] for car in results] == [cars["wagon"], cars["golf"]]


def test_case_folding_is_ascii_only(bare_store):
    car_id = bare_store.insert_car({"title": "Škoda Octavia", "brand": "Škoda"})

    assert found(bare_store, q="octavia") == {car_id}
    assert found(bare_store, q="ŠKODA") == {car_id}
    assert found(bare_store, q="škoda") == set()
