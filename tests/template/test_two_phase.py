"""
Тесты двухфазного вычисления: prepare и evaluate.
"""

import logging
import threading

import pytest

from uel import TemplateEvaluationError
from uel.template.segments import DeferredSegment, LiteralSegment
from uel.template.template import source_literal


class TestEvaluate:

    def test_constant_ignores_context(self, engine):
        assert engine.parse("Hello World!").evaluate(None) == "Hello World!"
        assert engine.parse("").evaluate() == ""

    def test_single_expression_keeps_native_type(self, engine):
        assert engine.parse("${1+2}").evaluate({}) == 3
        assert engine.parse("${x}").evaluate({"x": [1, 2]}) == [1, 2]

    def test_composite_is_stringified(self, engine):
        assert engine.parse("x${1+2}").evaluate({}) == "x3"
        assert engine.parse("${a}${b}").evaluate({"a": 1, "b": True}) == "1true"

    def test_composite_reevaluates_with_new_values(self, engine, vars):
        tpl = engine.parse("Dear ${p} ${name};")

        vars.update(p="Mr", name="Doe")
        assert tpl.evaluate(vars) == "Dear Mr Doe;"

        vars.update(p="Ms", name="Jones")
        assert tpl.evaluate(vars) == "Dear Ms Jones;"

    def test_deferred_force_evaluated(self, engine):
        assert engine.parse("#{'world'}").evaluate(None) == "world"
        assert engine.parse("Dear #{p} ${name};").evaluate({"p": "Mr", "name": "Doe"}) == "Dear Mr Doe;"

    def test_missing_context(self, engine):
        with pytest.raises(TemplateEvaluationError) as exc:
            engine.parse("Hi ${name}").evaluate(None)

        assert exc.value.source == "name"
        assert exc.value.operation == "evaluate"
        assert exc.value.__cause__ is not None

    def test_syntax_error_is_wrapped(self, engine):
        with pytest.raises(TemplateEvaluationError) as exc:
            engine.parse("${1 +}").evaluate({})
        assert exc.value.source == "1 +"

    def test_unicode_variable_names(self, engine):
        assert engine.parse("Привет, ${имя}!").evaluate({"имя": "мир"}) == "Привет, мир!"

    def test_null_contributes_nothing(self, engine):
        assert engine.parse("[${x}]").evaluate({"x": None}) == "[]"


class TestPrepare:

    def test_constant_and_immediate_are_identity(self, engine):
        for text in ["Hello World!", "${'Hello ' + 'World!'}", "Dear ${p} ${name};"]:
            tpl = engine.parse(text)
            assert tpl.prepare(None) is tpl
            assert tpl.prepare({"p": 1}) is tpl

    def test_plain_deferred_is_identity(self, engine):
        tpl = engine.parse("#{'world'}")
        assert tpl.prepare(None) is tpl

    def test_prepare_then_evaluate_with_other_context(self, engine):
        tpl = engine.parse("Dear #{p} ${name};")

        prepared = tpl.prepare({"name": "Doe"})

        assert prepared is not tpl
        assert prepared.render_source() == "Dear #{p} Doe;"
        assert prepared.segments == (
            LiteralSegment("Dear "),
            DeferredSegment("p"),
            LiteralSegment(" Doe;"),
        )
        assert prepared.is_deferred()
        assert prepared.evaluate({"p": "Mr", "name": "Should not be used in 2nd phase"}) == "Dear Mr Doe;"

    def test_prepared_template_is_reusable(self, engine):
        prepared = engine.parse("#{greeting}, ${name}!").prepare({"name": "Ann"})

        assert prepared.evaluate({"greeting": "Hi"}) == "Hi, Ann!"
        assert prepared.evaluate({"greeting": "Bye"}) == "Bye, Ann!"

    def test_prepare_escapes_frozen_text(self, engine):
        prepared = engine.parse("${v} #{x}").prepare({"v": "${danger}"})

        assert prepared.render_source() == "\\${danger} #{x}"
        assert prepared.evaluate({"x": 1}) == "${danger} 1"

    def test_prepare_failure(self, engine):
        with pytest.raises(TemplateEvaluationError) as exc:
            engine.parse("#{a} ${b}").prepare({})
        assert exc.value.operation == "prepare"
        assert exc.value.source == "b"

    def test_prepared_source_equals_render_source(self, engine):
        prepared = engine.parse("#{a} ${b}").prepare({"b": 2})
        assert prepared.source == prepared.render_source() == "#{a} 2"
        assert prepared == engine.parse("#{a} 2")


class TestNestedSubstitution:

    def test_nested_round_trip(self, engine, vars):
        vars.update({"hi": "hello", "hello.world": "Hello World!"})
        tpl = engine.parse("#{${hi}+'.world'}")

        assert tpl.evaluate(vars) == "Hello World!"
        assert tpl.is_deferred()

        prepared = tpl.prepare(vars)
        assert prepared is not tpl
        assert prepared.render_source() == "#{hello.world}"
        assert prepared.evaluate(vars) == "Hello World!"

    def test_nested_without_context(self, engine):
        with pytest.raises(TemplateEvaluationError):
            engine.parse("#{${hi}+'.world'}").evaluate(None)

    def test_malformed_nested(self, engine):
        with pytest.raises(TemplateEvaluationError) as exc:
            engine.parse("#{${hi} world}").evaluate({"hi": "hello"})
        assert exc.value.source == "'hello' world"

    def test_nested_numbers_splice_as_numbers(self, engine):
        tpl = engine.parse("#{'item' + (${n} + 1)}")
        prepared = tpl.prepare({"n": 1})

        assert prepared.render_source() == "#{item2}"
        assert prepared.evaluate({"item2": "second"}) == "second"

    def test_deferred_lookup_happens_at_evaluate_time(self, engine):
        prepared = engine.parse("#{${key}}").prepare({"key": "target"})

        assert prepared.render_source() == "#{target}"
        assert prepared.evaluate({"target": 1}) == 1
        assert prepared.evaluate({"target": 2}) == 2


    def test_prepared_source_reparses_to_same_segments(self, engine):
        prepared = engine.parse("#{${k}}").prepare({"k": "a ${b}"})
        reparsed = engine.parse(prepared.render_source())

        assert prepared.render_source() == "#{a ${b}}"
        assert prepared.segments == reparsed.segments
        assert prepared.segments[0].is_nested

    def test_spliced_immediate_resolves_in_next_prepare(self, engine):
        prepared = engine.parse("#{${k}}").prepare({"k": "'x' + ${b}"})
        assert prepared.is_deferred()

        again = prepared.prepare({"b": "y"})

        assert again.render_source() == "#{xy}"
        assert again.evaluate({"xy": 5}) == 5

    def test_reduced_text_closing_marker_fails_prepare(self, engine):
        with pytest.raises(TemplateEvaluationError) as exc:
            engine.parse("#{${k}}").prepare({"k": "a}b"})
        assert exc.value.operation == "prepare"
        assert exc.value.source == "a}b"


class TestSilentMode:

    def test_silent_nested_method_failure(self, engine, vars, caplog):
        vars.update(foo="abcdef", bar="foo")
        assert engine.parse("${foo.substring(2,4)/*comment*/}").evaluate(vars) == "cd"

        engine.set_silent(True)
        tpl = engine.parse("#{${bar}+'.charAt(-2)'}").prepare(vars)
        assert tpl.render_source() == "#{foo.charAt(-2)}"

        with caplog.at_level(logging.WARNING):
            assert tpl.evaluate(vars) is None
        assert "charAt" in caplog.text

    def test_silent_segment_contributes_nothing(self, engine):
        engine.set_silent(True)
        assert engine.parse("a${'x'.charAt(5)}b").evaluate({}) == "ab"

    def test_failing_property_is_silenced(self, engine, caplog):
        class Lazy:
            @property
            def boom(self):
                raise ValueError("nope")

        with pytest.raises(TemplateEvaluationError, match="nope"):
            engine.parse("${o.boom}").evaluate({"o": Lazy()})

        engine.set_silent(True)
        with caplog.at_level(logging.WARNING):
            assert engine.parse("[${o.boom}]").evaluate({"o": Lazy()}) == "[]"
        assert "nope" in caplog.text

    def test_silent_does_not_hide_syntax_errors(self, engine):
        engine.set_silent(True)
        with pytest.raises(TemplateEvaluationError):
            engine.parse("${1 +}").evaluate({})


class TestConcurrentUse:

    def test_shared_template_across_threads(self, engine):
        tpl = engine.parse("#{greeting}, ${name}!")
        workers = 8
        barrier = threading.Barrier(workers)
        failures = []

        def worker(n):
            barrier.wait()
            for i in range(200):
                name, greeting = f"n{n}-{i}", f"g{n}-{i}"
                try:
                    assert tpl.evaluate({"greeting": greeting, "name": name}) == f"{greeting}, {name}!"
                    prepared = tpl.prepare({"name": name})
                    assert prepared.render_source() == "#{greeting}, " + name + "!"
                    assert prepared.evaluate({"greeting": greeting}) == f"{greeting}, {name}!"
                except Exception as e:
                    failures.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert failures == []

    def test_deeply_nested_expression_is_wrapped(self, engine):
        text = "${" + "(" * 3000 + "1" + ")" * 3000 + "}"
        with pytest.raises(TemplateEvaluationError, match="nested too deeply"):
            engine.parse(text).evaluate({})


class TestSourceLiteral:

    def test_values(self):
        assert source_literal("hello") == "'hello'"
        assert source_literal("it's") == "'it\\'s'"
        assert source_literal(3) == "3"
        assert source_literal(True) == "true"
        assert source_literal(None) == "null"
