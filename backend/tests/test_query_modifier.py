"""
Modifier — Query Transformer Tests
====================================

What we test:
    ✅ New keys are appended, existing keys replaced (repeats collapse)
    ✅ Missing values are stripped, even mid-string
    ✅ Empty results never add a parameter
    ✅ Output is encoded and sorted by key
    ✅ Broken templates are logged and skipped
"""

from urllib.parse import parse_qsl

from modifier.services.query import QueryModifier


def query_of(request):
    return request.scope["query_string"].decode("latin-1")


class TestModifyQuery:

    def test_derived_parameter_is_added(self, make_request, template_context):
        modifier = QueryModifier({"question_id": "[[ request.query.ask_id ]]_[[ context.unixtime ]]"})
        request = make_request(query_string="ask_id=123")

        modifier.modify_query(request, template_context)

        assert query_of(request) == f"ask_id=123&question_id=123_{template_context['unixtime']}"

    def test_existing_parameter_is_overwritten(self, make_request, template_context):
        modifier = QueryModifier({"page": "2"})
        request = make_request(query_string="page=1&size=10")

        modifier.modify_query(request, template_context)

        assert query_of(request) == "page=2&size=10"

    def test_repeated_key_collapses_to_one(self, make_request, template_context):
        modifier = QueryModifier({"tag": "only"})
        request = make_request(query_string="tag=a&tag=b&x=1")

        modifier.modify_query(request, template_context)

        assert parse_qsl(query_of(request)) == [("tag", "only"), ("x", "1")]

    def test_repeated_key_is_a_list_in_templates(self, make_request, template_context):
        modifier = QueryModifier({"tags": '[[ request.query.tag | join(",") ]]'})
        request = make_request(query_string="tag=a&tag=b")

        modifier.modify_query(request, template_context)

        assert ("tags", "a,b") in parse_qsl(query_of(request))

    def test_missing_value_stripped_mid_string(self, make_request, template_context):
        modifier = QueryModifier({"q": "pre-[[ request.query.nope ]]-post"})
        request = make_request()

        modifier.modify_query(request, template_context)

        assert query_of(request) == "q=pre--post"

    def test_empty_result_is_not_added(self, make_request, template_context):
        modifier = QueryModifier({"derived": "[[ request.query.nope ]]"})
        request = make_request(query_string="a=1")

        modifier.modify_query(request, template_context)

        assert query_of(request) == "a=1"

    def test_empty_result_keeps_existing_value(self, make_request, template_context):
        modifier = QueryModifier({"a": "[[ request.query.nope ]]"})
        request = make_request(query_string="a=1")

        modifier.modify_query(request, template_context)

        assert query_of(request) == "a=1"

    def test_output_is_sorted_by_key(self, make_request, template_context):
        modifier = QueryModifier({"b": "2"})
        request = make_request(query_string="c=3&a=1")

        modifier.modify_query(request, template_context)

        assert query_of(request) == "a=1&b=2&c=3"

    def test_values_are_encoded(self, make_request, template_context):
        modifier = QueryModifier({"path": "[[ request.path ]]", "text": "a b&c"})
        request = make_request(path="/v1/chat")

        modifier.modify_query(request, template_context)

        assert query_of(request) == "path=%2Fv1%2Fchat&text=a+b%26c"

    def test_templates_see_method_and_headers(self, make_request, template_context):
        modifier = QueryModifier({"m": "[[ request.method ]]-[[ request.headers['x-client'] ]]"})
        request = make_request(method="POST", headers={"X-Client": "cli"})

        modifier.modify_query(request, template_context)

        assert query_of(request) == "m=POST-cli"

    def test_render_failure_is_skipped(self, make_request, template_context, mock_logger):
        modifier = QueryModifier({"bad": "[[ toMap(request.path) ]]", "good": "1"}, logger=mock_logger)
        request = make_request()

        modifier.modify_query(request, template_context)

        assert query_of(request) == "good=1"
        mock_logger.warning.assert_called_once()

    def test_compile_failure_skipped_at_construction(self, mock_logger):
        modifier = QueryModifier({"bad": "[% if %]", "good": "1"}, logger=mock_logger)

        assert list(modifier.templates) == ["good"]
        mock_logger.warning.assert_called_once()

    def test_no_templates_leaves_query_untouched(self, make_request, template_context):
        """Without templates the raw query string is not even re-encoded."""
        request = make_request(query_string="z=1&a=%7E")

        QueryModifier().modify_query(request, template_context)

        assert query_of(request) == "z=1&a=%7E"
