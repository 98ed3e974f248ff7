from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from whisker import (
    EngineConfig,
    InvalidPragmaNameError,
    Lexer,
    Renderer,
    TemplateNotFoundError,
    TemplateRecursionError,
    Whisker,
    WhiskerError,
)
from whisker.context import ContextStack
from whisker.pragma import PragmaStack
from whisker.renderer import RenderContext
from whisker.reporting.warnings_bridge import PragmaWarning

from tests.utils import FixedPragma, OncePragma, write_templates


def render(text: str, view: Any = None, **partials: str) -> str:
    lexer = Lexer()
    compiled = {name: lexer.compile(body) for name, body in partials.items()}
    return Renderer().render(lexer.compile(text), view, compiled)


class Item:
    def __init__(self, label: str):
        self.label = label

    def shout(self) -> str:
        return self.label.upper()


# ---- built-in handling -----------------------------------------------------------


def test_escaping() -> None:
    view = {"x": "<b>&\"'"}
    assert render("{{x}}", view) == "&lt;b&gt;&amp;&quot;&#x27;"
    assert render("{{{x}}}|{{&x}}", view) == "<b>&\"'|<b>&\"'"


def test_escaping_can_be_disabled() -> None:
    tokens = Lexer().compile("{{x}}")
    assert Renderer(EngineConfig(escape_html=False)).render(tokens, {"x": "<b>"}) == "<b>"


def test_custom_escape() -> None:
    tokens = Lexer().compile("{{x}}")
    assert Renderer(escape=str.upper).render(tokens, {"x": "ab"}) == "AB"


@pytest.mark.parametrize(
    "value,expected",
    [(None, ""), (0, "0"), (False, "False"), (1.5, "1.5")],
)
def test_stringify(value: Any, expected: str) -> None:
    assert render("{{v}}", {"v": value}) == expected


def test_missing_names_render_empty() -> None:
    assert render("[{{nope}}][{{a.b}}]", {"a": {}}) == "[][]"


def test_section_over_list() -> None:
    view = {"items": [{"n": 1}, {"n": 2}]}
    assert render("{{#items}}<{{n}}>{{/items}}", view) == "<1><2>"


def test_section_over_mapping_and_object() -> None:
    assert render("{{#m}}{{k}}{{/m}}", {"m": {"k": "v"}}) == "v"
    assert render("{{#it}}{{label}}/{{shout}}{{/it}}", {"it": Item("a")}) == "a/A"


@pytest.mark.parametrize("value", [None, False, [], (), "", {}, 0])
def test_falsy_sections(value: Any) -> None:
    assert render("{{#v}}yes{{/v}}{{^v}}no{{/v}}", {"v": value}) == "no"


@pytest.mark.parametrize("value", [True, 1, "s", [0], {"a": 1}])
def test_truthy_sections(value: Any) -> None:
    assert render("{{^v}}no{{/v}}", {"v": value}) == ""


def test_section_true_keeps_context() -> None:
    assert render("{{#flag}}{{name}}{{/flag}}", {"flag": True, "name": "n"}) == "n"


def test_section_scalar_item_as_implicit_iterator() -> None:
    assert render("{{#xs}}{{.}};{{/xs}}", {"xs": ["a", "b"]}) == "a;b;"


def test_callables_stand_for_their_result() -> None:
    assert render("{{f}}", {"f": lambda: "called"}) == "called"


def test_generator_sections() -> None:
    view = {"gen": (i for i in range(3))}
    assert render("{{#gen}}{{.}}{{/gen}}", view) == "012"


def test_partial_shares_context() -> None:
    assert render("{{#p}}{{>row}}{{/p}}", {"p": {"x": 1}, "y": 2}, row="{{x}}{{y}}") == "12"


def test_unbound_renderer_cannot_load_partials() -> None:
    with pytest.raises(TemplateNotFoundError, match='Partial by name "x" not found'):
        render("{{>x}}")


def test_unbound_renderer_cannot_render_templates() -> None:
    renderer = Renderer()
    ctx = RenderContext(renderer, ContextStack(), {}, PragmaStack(), [])
    with pytest.raises(WhiskerError, match="not bound"):
        ctx.render("page")


# ---- pragma negotiation ------------------------------------------------------------


def pragma_renderer(*pragmas: FixedPragma) -> Renderer:
    return Renderer(pragmas=pragmas)


def run(renderer: Renderer, text: str, view: Any = None) -> str:
    return renderer.render(Lexer().compile(text), view)


def test_most_recent_activation_wins() -> None:
    r = pragma_renderer(FixedPragma("A", "a"), FixedPragma("B", "b"))
    assert run(r, "{{%A}}{{%B}}{{x}}") == "b"
    assert run(r, "{{%B}}{{%A}}{{x}}") == "a"


def test_reactivation_moves_pragma_to_top() -> None:
    r = pragma_renderer(FixedPragma("A", "a"), FixedPragma("B", "b"))
    assert run(r, "{{%A}}{{%B}}{{%A}}{{x}}") == "a"


def test_activation_applies_to_following_tokens_only() -> None:
    r = pragma_renderer(FixedPragma("A", "a"))
    assert run(r, "{{x}}{{%A}}{{x}}", {"x": "v"}) == "va"


def test_deactivation_falls_back_to_previous_then_builtin() -> None:
    a, b = OncePragma("A", "a"), OncePragma("B", "b")
    r = pragma_renderer(a, b)
    assert run(r, "{{%A}}{{%B}}{{x}}{{x}}{{x}}", {"x": "v"}) == "bav"
    assert (a.calls, b.calls) == (1, 1)


def test_declining_pragma_passes_to_next_claimant() -> None:
    a, b = FixedPragma("A", "a"), FixedPragma("B", None)
    r = pragma_renderer(a, b)
    assert run(r, "{{%A}}{{%B}}{{x}}") == "a"
    assert b.calls == 1


def test_all_declining_falls_back_to_builtin() -> None:
    r = pragma_renderer(FixedPragma("A", None))
    assert run(r, "{{%A}}{{x}}", {"x": "<v>"}) == "&lt;v&gt;"


def test_pragma_only_sees_claimed_kinds() -> None:
    a = FixedPragma("A", "a")
    r = pragma_renderer(a)
    assert run(r, "{{%A}}text{{{raw}}}", {"raw": "r"}) == "textr"
    assert a.calls == 0


def test_activation_attaches_renderer() -> None:
    a = FixedPragma("A", "a")
    r = pragma_renderer(a)
    assert a.current_renderer() is None
    run(r, "{{%A}}")
    assert a.current_renderer() is r


def test_section_shares_pragma_scope() -> None:
    r = pragma_renderer(FixedPragma("A", "a"))
    assert run(r, "{{%A}}{{#s}}{{x}}{{/s}}", {"s": True}) == "a"


def test_partial_starts_fresh_pragma_scope(template_dir: Path) -> None:
    write_templates(template_dir, row="{{x}}")
    engine = Whisker(pragmas=[FixedPragma("A", "a")]).add_template_path(template_dir)
    assert engine.render("{{%A}}{{>row}}{{x}}", {"x": "v"}) == "va"
    assert engine.render("{{>row}}{{%A}}{{x}}", {"x": "v"}) == "va"


def test_pragma_inside_partial_does_not_leak(template_dir: Path) -> None:
    write_templates(template_dir, row="{{%A}}{{x}}")
    engine = Whisker(pragmas=[FixedPragma("A", "a")]).add_template_path(template_dir)
    assert engine.render("{{>row}}{{x}}", {"x": "v"}) == "av"


def test_unknown_pragma_warns_and_is_ignored() -> None:
    with pytest.warns(PragmaWarning, match=r"Unknown pragma 'NOPE' at offset 0"):
        out = render("{{%NOPE}}{{x}}", {"x": 1})
    assert out == "1"


def test_pragma_options_reach_context() -> None:
    seen: dict[str, str] = {}

    class Recorder(FixedPragma):
        def handle(self, token, context):  # type: ignore[no-untyped-def]
            seen.update(context.options(self.name))
            return None

    r = pragma_renderer(Recorder("REC", None))
    run(r, "{{%REC mode=loud}}{{x}}")
    assert seen == {"mode": "loud"}


def test_add_pragma_validates_name() -> None:
    with pytest.raises(InvalidPragmaNameError):
        Renderer().add_pragma(FixedPragma("bad name", "x"))
    with pytest.raises(InvalidPragmaNameError):
        Renderer().add_pragma(FixedPragma("", "x"))


def test_pragma_registry() -> None:
    a = FixedPragma("A", "a")
    r = Renderer().add_pragma(a)
    assert r.get_pragma("A") is a
    assert r.get_pragma("B") is None
    assert r.has_pragma("A")
    assert list(r.pragmas) == ["A"]


# ---- recursion ---------------------------------------------------------------------


def test_self_including_partial_is_rejected(engine: Whisker, template_dir: Path) -> None:
    write_templates(template_dir, loop="x{{>loop}}")
    with pytest.raises(TemplateRecursionError, match="loop -> loop"):
        engine.render("loop", {})


def test_mutual_recursion_is_rejected(engine: Whisker, template_dir: Path) -> None:
    write_templates(template_dir, a="{{>b}}", b="{{>a}}")
    with pytest.raises(TemplateRecursionError, match="a -> b -> a"):
        engine.render("a", {})


def test_data_driven_recursion_is_allowed(engine: Whisker, template_dir: Path) -> None:
    write_templates(template_dir, node="{{name}}({{#children}}{{>node}}{{/children}})")
    tree = {
        "name": "root",
        "children": [
            {"name": "a", "children": []},
            {"name": "b", "children": [{"name": "c", "children": []}]},
        ],
    }
    assert engine.render("node", tree) == "root(a()b(c()))"


def test_recursion_through_boolean_sections_is_allowed(engine: Whisker, template_dir: Path) -> None:
    write_templates(template_dir, x="{{#items}}{{name}}{{#flag}}{{>x}}{{/flag}}{{/items}}")
    c = {"name": "c", "flag": False}
    b = {"name": "b", "flag": True, "items": [c]}
    a = {"name": "a", "flag": True, "items": [b]}
    assert engine.render("x", {"items": [a]}) == "abc"


def test_repeated_partial_is_not_recursion(engine: Whisker, template_dir: Path) -> None:
    write_templates(template_dir, item="i")
    assert engine.render("{{>item}}{{>item}}", {}) == "ii"


def test_max_depth(template_dir: Path) -> None:
    write_templates(template_dir, a="a{{>b}}", b="b{{>c}}", c="c{{>d}}", d="d")
    engine = Whisker(EngineConfig(template_paths=(template_dir,), max_depth=3))
    with pytest.raises(TemplateRecursionError, match="max_depth=3"):
        engine.render("a", {})
    assert engine.render("b", {}) == "bcd"
