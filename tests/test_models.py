import pytest
from pydantic import ValidationError

from api_query_agent.errors import CatalogError
from api_query_agent.matcher.models import MatchResult, RawMatch
from api_query_agent.parser.base import ApiCatalog, ApiEndpoint, BodyField, Param, RequestBody


class TestParam:
    def test_create_required_param(self):
        p = Param(name="id", location="path", required=True, param_type="integer")
        assert p.name == "id"
        assert p.required is True
        assert p.description == ""
        assert p.default is None

    def test_location_may_be_absent(self):
        assert Param(name="limit").location is None


class TestRequestBody:
    def test_required_fields_must_be_declared(self):
        with pytest.raises(CatalogError):
            RequestBody(properties={"name": BodyField()}, required_fields=["name", "age"])


class TestApiEndpoint:
    def test_method_is_upper_cased(self):
        assert ApiEndpoint(method="post", path="/pets").method == "POST"

    def test_unknown_method_rejected(self):
        with pytest.raises(ValidationError):
            ApiEndpoint(method="TRACE", path="/pets")

    def test_path_keywords_skip_placeholders(self):
        ep = ApiEndpoint(method="GET", path="/api/users/{id}/orders")
        assert ep.path_keywords == ["api", "users", "orders"]
        assert ep.path_placeholders == ["id"]

    def test_infer_location(self):
        get = ApiEndpoint(
            method="GET",
            path="/users/{id}",
            parameters=[Param(name="id"), Param(name="limit"), Param(name="X-Token", location="header")],
        )
        assert get.infer_location("id") == "path"
        assert get.infer_location("limit") == "query"
        assert get.infer_location("X-Token") == "header"

        post = ApiEndpoint(method="POST", path="/users", parameters=[Param(name="name")])
        assert post.infer_location("name") == "body"

    def test_body_ignored_for_get(self):
        ep = ApiEndpoint(
            method="GET",
            path="/pets",
            request_body=RequestBody(properties={"name": BodyField()}, required_fields=["name"]),
        )
        assert ep.body_properties() == {}
        assert ep.body_required_fields() == []

    def test_declared_type_covers_params_and_body(self):
        ep = ApiEndpoint(
            method="POST",
            path="/pets",
            parameters=[Param(name="dry_run", param_type="boolean")],
            request_body=RequestBody(properties={"age": BodyField(field_type="integer")}),
        )
        assert ep.declared_type("dry_run") == "boolean"
        assert ep.declared_type("age") == "integer"
        assert ep.declared_type("other") is None


class TestApiCatalog:
    def test_find(self):
        catalog = ApiCatalog(
            endpoints=(ApiEndpoint(method="GET", path="/pets"), ApiEndpoint(method="POST", path="/pets"))
        )
        assert catalog.find("/pets", "post").method == "POST"
        assert catalog.find("/pet", "GET") is None
        assert len(catalog) == 2

    def test_duplicate_operation_rejected(self):
        with pytest.raises(CatalogError):
            ApiCatalog(endpoints=(ApiEndpoint(method="GET", path="/pets"), ApiEndpoint(method="get", path="/pets")))

    def test_catalog_is_immutable(self):
        catalog = ApiCatalog(name="Pets")
        with pytest.raises(ValidationError):
            catalog.name = "Other"


class TestMatchModels:
    def test_raw_match_accepts_camel_case(self):
        raw = RawMatch.model_validate(
            {
                "endpoint": "/pets",
                "method": "post",
                "params": None,
                "expectedResponse": "The new pet",
                "missingInfo": {"requiredParams": ["name"], "exampleQuery": "Create pets for John Doe"},
            }
        )
        assert raw.method == "POST"
        assert raw.params == {}
        assert raw.expected_response == "The new pet"
        assert raw.missing_info.required_params == ["name"]

    def test_missing_info_without_required_params(self):
        raw = RawMatch.model_validate(
            {"endpoint": "/pets", "method": "POST", "missingInfo": {"suggestions": ["Name the pet"]}}
        )
        assert raw.missing_info.required_params == []
        assert raw.missing_info.suggestions == ["Name the pet"]

    def test_match_result_serializes_camel_case(self):
        result = MatchResult(
            endpoint="/pets",
            method="GET",
            confidence=0.8,
            summary="Retrieving pets from the API",
            expected_response="JSON response from the API",
            api_name="Petstore",
        )
        data = result.model_dump(by_alias=True)
        assert data["expectedResponse"] == "JSON response from the API"
        assert data["apiName"] == "Petstore"
        assert '"missingInfo"' not in result.to_json()
