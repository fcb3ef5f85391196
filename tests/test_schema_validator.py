from spec_enforcer.parser.base import Schema
from spec_enforcer.validation.schema import deref, json_kind, matches_type, validate_schema

NEW_USER = Schema(
    type="object",
    required=["name", "email"],
    properties={
        "name": Schema(type="string", min_length=1),
        "email": Schema(type="string"),
    },
)


class TestTypes:
    def test_json_kinds(self):
        assert json_kind(None) == "null"
        assert json_kind(True) == "boolean"
        assert json_kind(1) == "number"
        assert json_kind(1.5) == "number"
        assert json_kind("x") == "string"
        assert json_kind([]) == "array"
        assert json_kind({}) == "object"

    def test_integer_accepts_whole_floats(self):
        assert matches_type(10, "integer")
        assert matches_type(10.0, "integer")
        assert not matches_type(10.5, "integer")

    def test_boolean_is_not_a_number(self):
        assert not matches_type(True, "number")
        assert not matches_type(False, "integer")

    def test_type_mismatch_stops_descent(self):
        schema = Schema(type="object", required=["id"])
        findings = validate_schema("oops", schema, "request body")
        assert findings == ["request body: Expected type 'object', got 'string'"]


class TestObjects:
    def test_valid_body(self):
        assert validate_schema({"name": "John", "email": "john@example.com"}, NEW_USER, "request body") == []

    def test_empty_name_too_short(self):
        findings = validate_schema({"name": "", "email": "x"}, NEW_USER, "request body")
        assert findings == ["request body.name: String length 0 is less than minimum 1"]

    def test_missing_required_properties(self):
        findings = validate_schema({}, NEW_USER, "request body")
        assert findings == [
            "request body: Required property 'name' is missing",
            "request body: Required property 'email' is missing",
        ]

    def test_undeclared_properties_are_ignored(self):
        findings = validate_schema({"name": "a", "email": "b", "extra": 1}, NEW_USER, "request body")
        assert findings == []

    def test_sibling_validation_continues_after_type_error(self):
        schema = Schema(
            type="object",
            properties={
                "price": Schema(type="number"),
                "name": Schema(type="string", min_length=3),
            },
        )
        findings = validate_schema({"price": "ten", "name": "ab"}, schema, "request body")
        assert findings == [
            "request body.price: Expected type 'number', got 'string'",
            "request body.name: String length 2 is less than minimum 3",
        ]


class TestArrays:
    def test_items_are_labelled_by_index(self):
        schema = Schema(type="array", items=Schema(type="integer", minimum=0))
        findings = validate_schema([1, -2, "x"], schema, "response body")
        assert findings == [
            "response body[1]: Value -2 is less than minimum 0",
            "response body[2]: Expected type 'integer', got 'string'",
        ]

    def test_nested_arrays_of_objects(self):
        schema = Schema(type="array", items=NEW_USER)
        findings = validate_schema([{"name": "a", "email": "b"}, {"name": "a"}], schema, "response body")
        assert findings == ["response body[1]: Required property 'email' is missing"]


class TestStrings:
    def test_max_length(self):
        findings = validate_schema("abcdef", Schema(type="string", max_length=3), "v")
        assert findings == ["v: String length 6 is greater than maximum 3"]

    def test_enum(self):
        findings = validate_schema("red", Schema(type="string", enum=["green", "blue"]), "v")
        assert findings == ["v: Value 'red' is not one of the allowed values: [green, blue]"]

    def test_pattern(self):
        findings = validate_schema("abc", Schema(type="string", pattern="^[0-9]+$"), "v")
        assert findings == ["v: Value does not match pattern '^[0-9]+$'"]

    def test_enum_pattern_and_length_are_independent(self):
        schema = Schema(type="string", enum=["AA", "BB"], pattern="^[A-Z]+$", max_length=2)
        findings = validate_schema("ab", schema, "v")
        assert len(findings) == 2
        assert "one of" in findings[0]
        assert "pattern" in findings[1]


class TestNumbers:
    def test_bounds_are_inclusive(self):
        schema = Schema(type="number", minimum=0, maximum=10)
        assert validate_schema(0, schema, "v") == []
        assert validate_schema(10, schema, "v") == []

    def test_bounds_violations(self):
        schema = Schema(type="number", minimum=0, maximum=10)
        assert validate_schema(-1, schema, "v") == ["v: Value -1 is less than minimum 0"]
        assert validate_schema(10.5, schema, "v") == ["v: Value 10.5 is greater than maximum 10"]


class TestReferences:
    COMPONENTS = {
        "#/components/schemas/Node": Schema(
            type="object",
            required=["value"],
            properties={
                "value": Schema(type="integer"),
                "children": Schema(type="array", items=Schema(ref="#/components/schemas/Node")),
            },
        )
    }

    def test_recursive_schema(self):
        value = {"value": 1, "children": [{"value": 2, "children": [{"children": []}]}]}
        findings = validate_schema(value, Schema(ref="#/components/schemas/Node"), "body", self.COMPONENTS)
        assert findings == ["body.children[0].children[0]: Required property 'value' is missing"]

    def test_unresolved_ref_skips_subtree(self):
        schema = Schema(
            type="object",
            properties={"thing": Schema(ref="#/components/schemas/Missing"), "n": Schema(type="integer")},
        )
        findings = validate_schema({"thing": 5, "n": "x"}, schema, "body", self.COMPONENTS)
        assert findings == ["body.n: Expected type 'integer', got 'string'"]

    def test_deref_cycle_gives_up(self):
        components = {"#/a": Schema(ref="#/b"), "#/b": Schema(ref="#/a")}
        assert deref(Schema(ref="#/a"), components) is None


class TestIdempotence:
    def test_same_findings_twice(self):
        value = {"name": "", "email": 5}
        first = validate_schema(value, NEW_USER, "request body")
        second = validate_schema(value, NEW_USER, "request body")
        assert first == second
        assert len(first) == 2
