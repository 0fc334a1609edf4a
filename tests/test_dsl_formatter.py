"""
Tests for the canonical formatter.
"""

import textwrap

import pytest

from ascad.dsl import format_source, format_program, parse, ParserError


def fmt(source: str) -> str:
    return format_source(textwrap.dedent(source))


class TestFormatterOutput:
    """Test the canonical text of each node kind."""

    def test_shape_with_params(self):
        assert fmt("cube( 10,20 ,30 ) ;") == "cube(10, 20, 30);\n"

    def test_shape_without_params_or_body(self):
        """An empty invocation keeps its parentheses."""
        assert fmt("union;") == "union();\n"

    def test_shape_with_body(self):
        """Bodies are indented by two spaces."""
        assert fmt("union{cube(1);sphere(2);}") == (
            "union {\n"
            "  cube(1);\n"
            "  sphere(2);\n"
            "}\n"
        )

    def test_shape_with_params_and_body(self):
        assert fmt("translate(1,0,0){cube(1);}") == (
            "translate(1, 0, 0) {\n"
            "  cube(1);\n"
            "}\n"
        )

    def test_nested_indentation(self):
        assert fmt("union{translate(1,0,0){rotate(0,0,1){cube(1);}}}") == (
            "union {\n"
            "  translate(1, 0, 0) {\n"
            "    rotate(0, 0, 1) {\n"
            "      cube(1);\n"
            "    }\n"
            "  }\n"
            "}\n"
        )

    def test_module(self):
        assert fmt("as  post ( h ) { cylinder(1,h); }") == (
            "as post(h) {\n"
            "  cylinder(1, h);\n"
            "}\n"
        )

    def test_module_without_params(self):
        """Module definitions always print a parameter list."""
        assert fmt("as thing { cube(1); }") == "as thing() {\n  cube(1);\n}\n"

    def test_empty_module(self):
        assert fmt("as nothing();") == "as nothing() {\n}\n"

    def test_const(self):
        assert fmt("const   size=10 ;") == "const size = 10;\n"

    def test_for(self):
        assert fmt("for(i,0,10,1){cube(i);}") == (
            "for(i, 0, 10, 1) {\n"
            "  cube(i);\n"
            "}\n"
        )

    def test_empty_for(self):
        assert fmt("for(i,0,10,1);") == "for(i, 0, 10, 1);\n"

    def test_link(self):
        assert fmt('link   "HTTPS://Example.com/lib.ascad"  ;') == (
            'link "https://example.com/lib.ascad";\n'
        )

    def test_line_comment(self):
        assert fmt("//tight\ncube(1);") == "// tight\ncube(1);\n"

    def test_empty_line_comment(self):
        assert fmt("//\n") == "//\n"

    def test_block_comment(self):
        """Block comments are re-indented relative to their first line."""
        source = "/* Title\n      detail\n        more */"
        assert format_source(source) == "/*\nTitle\ndetail\n  more\n*/\n"

    def test_single_line_block_comment(self):
        """A one-line block comment becomes a line comment."""
        assert fmt("/* note */") == "// note\n"

    def test_format_program(self):
        """Formatting a parsed program gives the same text."""
        source = "cube(1);"
        assert format_program(parse(source)) == format_source(source)

    def test_does_not_evaluate(self):
        """Undefined names still format."""
        assert fmt("mystery(x, y);") == "mystery(x, y);\n"

    def test_parse_error(self):
        with pytest.raises(ParserError):
            format_source("cube(1")


class TestFormatterIdempotence:
    """Formatting formatted text changes nothing."""

    SAMPLES = [
        "cube(10);",
        "union{cube(1);sphere(2);}",
        "as post(h){cylinder(1,h);}\nfor(i,0,4,1){translate(i,0,0){post(10);}}",
        'link "https://example.com/lib.ascad";\nconst a=1;const b=a;',
        "/* Title\n      detail\n        more */\ncube(1);",
        "union{/*\n  inner\n    deeper\n*/\n// note\ncube(1);}",
        "extrude(5){circle(2);rect(1,2);}",
    ]

    @pytest.mark.parametrize("source", SAMPLES)
    def test_idempotent(self, source):
        once = format_source(source)
        assert format_source(once) == once

    @pytest.mark.parametrize("source", SAMPLES)
    def test_same_program(self, source):
        """Formatting preserves the program structure."""
        once = format_source(source)
        assert len(parse(once)) == len(parse(source))


class TestFormatterLimits:
    """Test formatting of extreme input."""

    def test_deep_nesting(self):
        depth = 2000
        with pytest.raises(ParserError) as exc_info:
            format_source("union {" * depth + "cube(1);" + "}" * depth)
        assert exc_info.value.code == "E106"
