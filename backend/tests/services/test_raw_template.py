"""Тесты сырых шаблонов ZPL/TSPL."""

import pytest

from labelkit.services.errors import MissingVariableError, ValidationError
from labelkit.services.raw_template import (
    DEFAULT_TSPL_TEMPLATE,
    DEFAULT_ZPL_TEMPLATE,
    RawTemplate,
    add_size_guards,
    detect_engine,
    detect_tokens,
    interpolate,
    render_raw_template,
)


class TestDetectTokens:
    def test_first_appearance_order_without_duplicates(self):
        assert detect_tokens("{{b}} {{a}} {{ b }}") == ["b", "a"]

    def test_inner_whitespace_allowed(self):
        assert detect_tokens("^FD{{   sku   }}^FS") == ["sku"]

    def test_non_word_names_ignored(self):
        assert detect_tokens("{{ not-a-token }} {{}} {{ ok_1 }}") == ["ok_1"]

    def test_default_templates(self):
        assert detect_tokens(DEFAULT_ZPL_TEMPLATE) == ["sku", "module_width", "barcode"]
        assert detect_tokens(DEFAULT_TSPL_TEMPLATE) == ["sku", "module_width", "barcode"]


class TestInterpolate:
    def test_missing_value(self):
        with pytest.raises(MissingVariableError) as exc_info:
            interpolate("^FD{{sku}}^FS", {})

        assert exc_info.value.token == "sku"
        assert str(exc_info.value) == "Missing required variable: sku"

    def test_blank_value_is_missing(self):
        with pytest.raises(MissingVariableError):
            interpolate("{{sku}}", {"sku": "   "})

    def test_first_missing_token_reported(self):
        with pytest.raises(MissingVariableError) as exc_info:
            interpolate("{{a}}{{b}}", {"a": "", "b": ""})
        assert exc_info.value.token == "a"

    def test_is_validation_error(self):
        with pytest.raises(ValidationError):
            interpolate("{{x}}", {})

    def test_all_occurrences_replaced(self):
        assert interpolate("{{sku}}-{{ sku }}", {"sku": "A1"}) == "A1-A1"

    def test_values_inserted_literally(self):
        assert interpolate("{{v}}", {"v": r"\1 \g<0>"}) == r"\1 \g<0>"

    def test_extra_values_ignored(self):
        assert interpolate("{{a}}", {"a": 1, "b": 2}) == "1"


class TestSizeGuards:
    def test_zpl_wrapped(self):
        assert add_size_guards("^XA^FO10,10^FDx^FS^XZ", "ZPL") == (
            "^XA\n^PW406\n^LL203\n^FO10,10^FDx^FS\n^XZ"
        )

    def test_zpl_without_markers(self):
        assert add_size_guards("^FDx^FS", "ZPL") == "^XA\n^PW406\n^LL203\n^FDx^FS\n^XZ"

    def test_zpl_with_size_untouched(self):
        body = "^XA^PW406^LL203^FDx^FS^XZ"
        assert add_size_guards(body, "ZPL") == body

    def test_tspl_prepends_size(self):
        assert add_size_guards("  CLS\nPRINT 1\n", "TSPL") == "SIZE 2,1\nCLS\nPRINT 1"

    def test_tspl_size_case_insensitive(self):
        body = "cls\n  size 2 , 1\nPRINT 1"
        assert add_size_guards(body, "TSPL") == body

    @pytest.mark.parametrize(
        "body,engine",
        [("^FDx^FS", "ZPL"), ("^XA^FDx^XZ", "ZPL"), ("CLS\nPRINT 1", "TSPL"), ("", "TSPL")],
    )
    def test_idempotent(self, body, engine):
        once = add_size_guards(body, engine)
        assert add_size_guards(once, engine) == once


class TestDetectEngine:
    @pytest.mark.parametrize(
        "body,expected",
        [
            ("^XA^FDx^XZ", "ZPL"),
            ("^FO10,10", "ZPL"),
            ("SIZE 2,1\nCLS\nPRINT 1", "TSPL"),
            ('TEXT 10,10,"0",0,1,1,"x"', "TSPL"),
            ("hello", "ZPL"),
        ],
    )
    def test_detect(self, body, expected):
        assert detect_engine(body) == expected


class TestRawTemplate:
    def test_required_fields_follow_body(self):
        template = RawTemplate(id="t", body="{{a}}")
        assert template.required_fields == ["a"]

        template.body = "{{b}} {{c}}"
        assert template.required_fields == ["b", "c"]

    def test_render_interpolates_then_guards(self):
        template = RawTemplate(id="price", body="CLS\nTEXT 10,10,\"0\",0,1,1,\"{{price}}\"\nPRINT 1")

        program = render_raw_template(template, {"price": "$5"})

        assert program.startswith("SIZE 2,1\nCLS")
        assert '"$5"' in program

    def test_render_does_not_mutate_template(self):
        body = "^FD{{sku}}^FS"
        template = RawTemplate(id="z", body=body)

        render_raw_template(template, {"sku": "A"})

        assert template.body == body

    def test_engine_override(self):
        template = RawTemplate(id="x", body="{{data}}")
        assert render_raw_template(template, {"data": "CLS"}, engine="TSPL") == "SIZE 2,1\nCLS"

    def test_default_zpl_template_already_sized(self):
        template = RawTemplate(id="default", body=DEFAULT_ZPL_TEMPLATE)
        program = render_raw_template(
            template, {"sku": "A1", "module_width": "2", "barcode": "A1"}
        )
        assert program.count("^PW406") == 1
        assert "^FDA1^FS" in program
