from spec_enforcer.parser.base import ParameterDeclaration, Schema
from spec_enforcer.validation.multimap import MultiMap
from spec_enforcer.validation.strict import (
    audit_body,
    audit_request,
    audit_response_headers,
    is_governance_finding,
)

PARAMS = [
    ParameterDeclaration(name="limit", location="query"),
    ParameterDeclaration(name="X-Request-ID", location="header"),
]


class TestAuditRequest:
    def test_undeclared_query_parameter(self):
        findings = audit_request(PARAMS, MultiMap({"limit": "1", "debug": "1"}), None)
        assert findings == ["Undeclared query parameter: 'debug'"]

    def test_declared_names_ignore_case(self):
        assert audit_request(PARAMS, MultiMap({"LIMIT": "1"}), MultiMap({"x-request-id": "a"})) == []

    def test_standard_and_security_headers_are_allowed(self):
        headers = MultiMap({
            "Host": "api", "User-Agent": "curl", "Content-Type": "application/json",
            "Authorization": "Bearer t", "X-API-Key": "k",
        })
        assert audit_request(PARAMS, None, headers) == []

    def test_undeclared_header(self):
        findings = audit_request(PARAMS, None, MultiMap({"X-Custom-Header": "value"}))
        assert findings == ["Undeclared request header: 'X-Custom-Header'"]

    def test_absent_collections_are_skipped(self):
        assert audit_request(PARAMS, None, None) == []


class TestAuditResponseHeaders:
    def test_undeclared_response_header(self):
        headers = MultiMap({"Date": "today", "X-Total-Count": "1", "X-Debug": "on"})
        assert audit_response_headers({"X-Total-Count": None}, headers) == ["Undeclared response header: 'X-Debug'"]

    def test_no_headers_supplied(self):
        assert audit_response_headers({}, None) == []


class TestAuditBody:
    SCHEMA = Schema(
        type="object",
        properties={
            "name": Schema(type="string"),
            "dimensions": Schema(type="object", properties={"width": Schema(type="number")}),
            "tags": Schema(type="array", items=Schema(type="object", properties={"k": Schema()})),
        },
    )

    def test_top_level_extra_property(self):
        findings = audit_body({"name": "x", "extra": 1}, self.SCHEMA, "request body")
        assert findings == ["Undeclared property in request body: 'extra'"]

    def test_nested_extra_properties(self):
        value = {"dimensions": {"width": 1, "depth": 2}, "tags": [{"k": 1}, {"v": 2}]}
        findings = audit_body(value, self.SCHEMA, "request body")
        assert findings == [
            "Undeclared property in request body.dimensions: 'depth'",
            "Undeclared property in request body.tags[1]: 'v'",
        ]

    def test_declared_lookup_ignores_case(self):
        assert audit_body({"NAME": "x"}, self.SCHEMA, "request body") == []

    def test_untyped_schema_reports_everything(self):
        findings = audit_body({"anything": 1, "more": {"x": 2}}, Schema(), "request body")
        assert findings == [
            "Undeclared property in request body: 'anything'",
            "Undeclared property in request body: 'more'",
        ]

    def test_untyped_nested_value_reports_everything(self):
        schema = Schema(type="object", properties={"meta": Schema()})
        findings = audit_body({"meta": {"k": 1}}, schema, "response body")
        assert findings == ["Undeclared property in response body.meta: 'k'"]

    def test_object_without_properties_reports_everything(self):
        findings = audit_body({"a": 1}, Schema(type="object"), "response body")
        assert findings == ["Undeclared property in response body: 'a'"]

    def test_ref_is_followed(self):
        components = {"#/components/schemas/Thing": Schema(type="object", properties={"id": Schema()})}
        findings = audit_body({"id": 1, "x": 2}, Schema(ref="#/components/schemas/Thing"), "body", components)
        assert findings == ["Undeclared property in body: 'x'"]


class TestGovernanceFinding:
    def test_recognises_undeclared(self):
        assert is_governance_finding("Undeclared query parameter: 'debug'")
        assert is_governance_finding("something undeclared happened")

    def test_functional_finding(self):
        assert not is_governance_finding("Required query parameter 'q' is missing")
