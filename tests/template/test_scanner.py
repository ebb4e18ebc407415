"""
Тесты для сканера шаблонов и классификации.
"""

import pytest

from uel import MalformedTemplateError, TemplateKind
from uel.template.segments import (
    DeferredSegment,
    ImmediateSegment,
    LiteralSegment,
    escape_literal,
)


class TestScannerSegments:

    def test_plain_text_is_constant(self, engine):
        tpl = engine.parse("Hello World!")

        assert tpl.segments == (LiteralSegment("Hello World!"),)
        assert tpl.kind is TemplateKind.CONSTANT
        assert tpl.is_constant()
        assert tpl.is_immediate()
        assert not tpl.is_deferred()

    def test_empty_text_is_constant(self, engine):
        tpl = engine.parse("")
        assert tpl.segments == ()
        assert tpl.is_constant()

    def test_composite(self, engine):
        tpl = engine.parse("Dear ${p} ${name};")

        assert tpl.segments == (
            LiteralSegment("Dear "),
            ImmediateSegment("p"),
            LiteralSegment(" "),
            ImmediateSegment("name"),
            LiteralSegment(";"),
        )
        assert tpl.is_immediate()
        assert not tpl.is_constant()

    def test_deferred(self, engine):
        tpl = engine.parse("Dear #{p} ${name};")

        assert tpl.segments[1] == DeferredSegment("p")
        assert tpl.is_deferred()
        assert not tpl.is_immediate()

    def test_nested_braces(self, engine):
        tpl = engine.parse("${ {1: 2} }")
        assert tpl.segments == (ImmediateSegment(" {1: 2} "),)

    def test_braces_in_strings_and_comments_ignored(self, engine):
        tpl = engine.parse("${'}' + \"{\" /* } */}tail")

        assert tpl.segments == (
            ImmediateSegment("'}' + \"{\" /* } */"),
            LiteralSegment("tail"),
        )

    def test_escaped_quote_inside_string(self, engine):
        tpl = engine.parse("${'it\\'s }'}")
        assert tpl.segments == (ImmediateSegment("'it\\'s }'"),)

    def test_dollar_without_brace_is_text(self, engine):
        tpl = engine.parse("costs $5 or #3")
        assert tpl.segments == (LiteralSegment("costs $5 or #3"),)

    def test_nested_immediate_in_deferred(self, engine):
        tpl = engine.parse("#{${hi}+'.world'}")

        (segment,) = tpl.segments
        assert isinstance(segment, DeferredSegment)
        assert segment.source == "${hi}+'.world'"
        assert segment.is_nested
        assert segment.nested.segments == (
            ImmediateSegment("hi"),
            LiteralSegment("+'.world'"),
        )
        assert tpl.is_deferred()

    def test_deferred_not_recognized_inside_immediate(self, engine):
        tpl = engine.parse("${'#{x}'}")
        assert tpl.segments == (ImmediateSegment("'#{x}'"),)
        assert tpl.is_immediate()

    def test_deferred_without_nested_immediate(self, engine):
        (segment,) = engine.parse("#{'world'}").segments
        assert segment == DeferredSegment("'world'")
        assert not segment.is_nested


class TestScannerEscapes:

    def test_escaped_markers(self, engine):
        assert engine.parse("\\#{'world'}").segments == (LiteralSegment("#{'world'}"),)
        assert engine.parse("\\${'world'}").segments == (LiteralSegment("${'world'}"),)

    def test_escaped_quotes_and_backslash(self, engine):
        assert engine.parse('\\"x\\\'').segments == (LiteralSegment("\"x'"),)
        assert engine.parse("a\\\\b").segments == (LiteralSegment("a\\b"),)

    def test_windows_path_unchanged(self, engine):
        tpl = engine.parse("c:\\some\\windows\\path")
        assert tpl.segments == (LiteralSegment("c:\\some\\windows\\path"),)
        assert tpl.is_constant()

    def test_trailing_backslash(self, engine):
        assert engine.parse("end\\").segments == (LiteralSegment("end\\"),)


class TestScannerErrors:

    def test_unterminated_immediate(self, engine):
        with pytest.raises(MalformedTemplateError) as exc:
            engine.parse("${'world'")

        assert exc.value.position == 0
        assert exc.value.line == 1
        assert exc.value.column == 1
        assert exc.value.snippet == "${'world'"

    def test_unterminated_deferred_reports_position(self, engine):
        with pytest.raises(MalformedTemplateError) as exc:
            engine.parse("line one\nvalue #{a + {b}")

        assert exc.value.position == 15
        assert exc.value.line == 2
        assert exc.value.column == 7

    def test_unterminated_nested_immediate(self, engine):
        with pytest.raises(MalformedTemplateError):
            engine.parse("#{${hi + 'x'}")

    def test_unterminated_string_swallows_close(self, engine):
        with pytest.raises(MalformedTemplateError):
            engine.parse("${'abc}")

    def test_failures_are_not_cached(self, engine):
        for _ in range(2):
            with pytest.raises(MalformedTemplateError):
                engine.parse("${")


class TestEscapeLiteral:

    def test_round_trip_through_render_source(self, engine):
        for text in ["\\${'world'}", "c:\\some\\path", "a\\\\b", "\\#{x} and $ and #", "end\\"]:
            tpl = engine.parse(text)
            assert engine.parse(tpl.render_source()).segments == tpl.segments

    def test_escape_rules(self):
        assert escape_literal("${x}") == "\\${x}"
        assert escape_literal("$x #y") == "$x #y"
        assert escape_literal("a\\b") == "a\\b"
        assert escape_literal("a\\$") == "a\\\\$"
        assert escape_literal("end\\") == "end\\\\"
