from pathlib import Path

import pytest

from api_query_agent.errors import EmptyCatalogError
from api_query_agent.matcher.fallback import FallbackStrategy, guess_method, match_fallback, score_endpoint
from api_query_agent.parser.base import ApiCatalog, ApiEndpoint, BodyField, Param, RequestBody
from api_query_agent.parser.swagger import parse_openapi

FIXTURES = Path(__file__).parent / "fixtures"


def _pets_catalog() -> ApiCatalog:
    return ApiCatalog(
        name="Pets",
        endpoints=(
            ApiEndpoint(method="GET", path="/pets", parameters=[Param(name="limit", param_type="integer")]),
            ApiEndpoint(
                method="POST",
                path="/pets",
                request_body=RequestBody(
                    properties={"name": BodyField(field_type="string"), "age": BodyField(field_type="integer")},
                    required_fields=["name"],
                ),
            ),
        ),
    )


def _ep(method, path, description=""):
    return ApiEndpoint(method=method, path=path, description=description)


class TestGuessMethod:
    @pytest.mark.parametrize(
        "query, method",
        [
            ("list all users", "GET"),
            ("create a user", "POST"),
            ("update the user email", "PUT"),
            ("remove user 5", "DELETE"),
            ("patch user 5", "PATCH"),
            ("users please", "GET"),
        ],
    )
    def test_keywords(self, query, method):
        assert guess_method(query) == method

    def test_first_keyword_set_wins(self):
        # "show" (GET) outranks "delete" (DELETE)
        assert guess_method("show me what delete does") == "GET"

    def test_partial_update_is_put(self):
        # "update" belongs to the PUT set, which is checked before PATCH
        assert guess_method("partial update of user") == "PUT"


class TestScoring:
    def test_score_components(self):
        ep = _ep("GET", "/api/users/{id}", "Fetch one single record")
        # 5 for the method, 3 each for "api" and "users", 1 each for "single" and "record"
        assert score_endpoint(ep, "get api users single record", "GET") == 5 + 6 + 2

    def test_short_description_words_ignored(self):
        ep = _ep("POST", "/x", "add the pet")
        assert score_endpoint(ep, "add the pet", "GET") == 0


class TestMatchFallback:
    def test_list_selects_get(self):
        catalog = ApiCatalog(endpoints=(_ep("POST", "/users"), _ep("GET", "/users")))
        raw = match_fallback("list all users", catalog)
        assert (raw.method, raw.endpoint) == ("GET", "/users")
        assert raw.confidence == pytest.approx(0.8)

    def test_tie_keeps_catalog_order(self):
        catalog = ApiCatalog(endpoints=(_ep("GET", "/a"), _ep("GET", "/b")))
        assert match_fallback("hello", catalog).endpoint == "/a"

    def test_no_signal_returns_first_endpoint_with_zero_confidence(self):
        catalog = ApiCatalog(endpoints=(_ep("DELETE", "/a"), _ep("PUT", "/b")))
        raw = match_fallback("hello", catalog)
        assert raw.endpoint == "/a"
        assert raw.confidence == 0

    def test_confidence_may_exceed_one(self):
        catalog = ApiCatalog(endpoints=(_ep("GET", "/api/shop/orders"),))
        assert match_fallback("get api shop orders", catalog).confidence == pytest.approx(1.4)

    def test_empty_catalog(self):
        with pytest.raises(EmptyCatalogError):
            match_fallback("list all users", ApiCatalog())

    def test_deterministic(self):
        catalog = parse_openapi(FIXTURES / "booking.yaml")
        query = "book an oil change for customer_name=Ann at garage_id=7 on Jan 15 2025"
        results = [match_fallback(query, catalog) for _ in range(3)]
        assert results[0] == results[1] == results[2]

    def test_typed_params(self):
        catalog = ApiCatalog(
            endpoints=(
                ApiEndpoint(
                    method="GET",
                    path="/garages",
                    parameters=[Param(name="garage_id", param_type="integer"), Param(name="price", param_type="number")],
                ),
            )
        )
        raw = match_fallback("garage_id=123 price=99.99", catalog)
        assert raw.params == {"garage_id": 123, "price": 99.99}
        assert isinstance(raw.params["garage_id"], int)
        assert isinstance(raw.params["price"], float)


class TestPetScenarios:
    def test_create_with_name_and_age(self):
        raw = match_fallback("create a pet named Max age=3", _pets_catalog())
        assert (raw.endpoint, raw.method) == ("/pets", "POST")
        assert raw.params == {"name": "Max", "age": 3}
        assert raw.missing_info is None

    def test_create_without_name(self):
        raw = match_fallback("create a pet", _pets_catalog())
        assert (raw.endpoint, raw.method) == ("/pets", "POST")
        assert "name" in raw.missing_info.required_params
        assert raw.missing_info.request_body_fields == ["name"]
        assert raw.missing_info.example_query

    def test_get_with_limit(self):
        raw = match_fallback("get pets limit 10", _pets_catalog())
        assert (raw.endpoint, raw.method) == ("/pets", "GET")
        assert raw.params == {"limit": 10}


class TestMissingInfo:
    def _catalog(self):
        return ApiCatalog(
            endpoints=(
                ApiEndpoint(
                    method="POST",
                    path="/items",
                    request_body=RequestBody(
                        properties={"a": BodyField(), "b": BodyField(), "c": BodyField()},
                        required_fields=["a", "b", "c"],
                    ),
                ),
            )
        )

    def test_only_absent_fields_reported(self):
        raw = match_fallback("create item a=1", self._catalog())
        assert set(raw.missing_info.required_params) == {"b", "c"}
        assert set(raw.missing_info.request_body_fields) == {"b", "c"}

    def test_complete_query_has_no_missing_info(self):
        assert match_fallback("create item a=1 b=2 c=3", self._catalog()).missing_info is None

    def test_required_path_parameter(self):
        catalog = parse_openapi(FIXTURES / "booking.yaml")
        raw = match_fallback("delete booking", catalog)
        assert (raw.method, raw.endpoint) == ("DELETE", "/bookings/{booking_id}")
        assert raw.missing_info.required_params == ["booking_id"]
        assert raw.missing_info.request_body_fields is None
        assert raw.missing_info.suggestions == ['Please provide a booking_id (e.g., "with ID 123")']
        assert raw.missing_info.example_query == "Delete bookings with ID 123"

    def test_booking_suggestions(self):
        catalog = parse_openapi(FIXTURES / "booking.yaml")
        raw = match_fallback("create a booking for an oil change", catalog)
        assert raw.endpoint == "/bookings"
        assert raw.missing_info.required_params == ["garage_id", "customer_name", "service_type", "appointment_date"]
        assert raw.missing_info.example_query == (
            "Create bookings with ID 123 for John Doe with service_type value for 2025-01-15"
        )


class TestFallbackStrategy:
    def test_delegates_to_match_fallback(self):
        strategy = FallbackStrategy()
        assert strategy.match("get pets limit 10", _pets_catalog()) == match_fallback("get pets limit 10", _pets_catalog())
