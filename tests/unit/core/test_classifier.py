from __future__ import annotations

import logging

import pytest

from quire.core.classifier import Classifier, Delims, DirectiveSyntax, remove_comments, trim_dir
from quire.core.exceptions import PreprocessError

SYNTAX = DirectiveSyntax(Delims("{{", "}}"), Delims("{%", "%}"))


def make_classifier(**kwargs) -> Classifier:
    kwargs.setdefault("extension", ".html")
    kwargs.setdefault("syntax", SYNTAX)
    return Classifier(**kwargs)


def test_remove_comments_spans_lines() -> None:
    text = "a<!-- one -->b<!--\n{{ yield }}\n-->c"
    assert remove_comments(text) == "abc"


def test_trim_dir() -> None:
    assert trim_dir("layouts/main", "layouts") == "main"
    assert trim_dir("layouts/main", "/layouts/") == "main"
    assert trim_dir("layoutsmain", "layouts") == "layoutsmain"
    assert trim_dir("main", "") == "main"


@pytest.mark.parametrize(
    "text",
    [
        "<main>{{ yield }}</main>",
        "<main>{{yield}}</main>",
        "<main>{{- yield . -}}</main>",
        "<main>{{ self.content() }}</main>",
        "<main>{{- self.content() }}</main>",
    ],
)
def test_layout_detection(text: str) -> None:
    assert SYNTAX.is_layout(text) is True


@pytest.mark.parametrize(
    "text",
    [
        "<p>{{ yielded }}</p>",
        "<p>{{ self.contents() }}</p>",
        "{% block content %}x{% endblock %}",
        "",
    ],
)
def test_content_detection(text: str) -> None:
    assert SYNTAX.is_layout(text) is False


def test_replace_yields_keeps_whitespace_control() -> None:
    assert SYNTAX.replace_yields("a{{ yield }}b") == "a{{ self.content() }}b"
    assert SYNTAX.replace_yields("a{{- yield . -}}b") == "a{{- self.content() -}}b"
    assert SYNTAX.replace_yields("{{ yield }}{{ yield }}") == "{{ self.content() }}{{ self.content() }}"


def test_block_definition_variants() -> None:
    assert SYNTAX.has_block_definition("{% block title %}{% endblock %}")
    assert SYNTAX.has_block_definition("{%block title%}{%endblock%}")
    assert SYNTAX.has_block_definition("{%- block title %}{% endblock %}")
    assert not SYNTAX.has_block_definition("{% if blocked %}{% endif %}")


def test_custom_delimiters() -> None:
    syntax = DirectiveSyntax(Delims("[[", "]]"), Delims("[%", "%]"))

    assert syntax.is_layout("<main>[[ yield ]]</main>")
    assert not syntax.is_layout("<main>{{ yield }}</main>")
    assert syntax.replace_yields("[[ yield ]]") == "[[ self.content() ]]"
    assert syntax.wrap_content("hi") == "[% block content %]hi[% endblock %]"


def test_classify_splits_layouts_and_contents() -> None:
    result = make_classifier().classify(
        {
            "layouts/main.html": b"<main>{{ yield }}</main>",
            "index.html": b"<h1>{{ Name }}</h1>",
            "pages/about.html": b"{% block content %}About{% endblock %}",
            "style.css": b"body {}",
        }
    )

    assert sorted(result.layouts) == ["main"]
    assert sorted(result.contents) == ["index", "pages/about"]
    assert result.layouts["main"].text == "<main>{{ self.content() }}</main>"
    assert result.contents["index"].text == "{% block content %}<h1>{{ Name }}</h1>{% endblock %}"
    assert result.contents["pages/about"].text == "{% block content %}About{% endblock %}"


def test_classify_strips_root_dir_from_names() -> None:
    result = make_classifier(root_dir="views").classify(
        {"views/layouts/main.html": b"{{ yield }}", "views/index.html": b"x"}
    )

    assert list(result.layouts) == ["main"]
    assert list(result.contents) == ["index"]


def test_layout_outside_layout_dir_keeps_its_path() -> None:
    result = make_classifier().classify({"shells/admin.html": b"<div>{{ yield }}</div>"})

    assert list(result.layouts) == ["shells/admin"]


def test_yield_and_blocks_make_a_layout() -> None:
    result = make_classifier().classify(
        {"layouts/main.html": b"<title>{% block title %}T{% endblock %}</title>{{ yield }}"}
    )

    assert list(result.layouts) == ["main"]
    assert result.contents == {}


def test_zero_byte_file_is_empty_content() -> None:
    result = make_classifier().classify({"blank.html": b""})

    assert result.contents["blank"].text == "{% block content %}{% endblock %}"


def test_directives_inside_comments_are_ignored() -> None:
    result = make_classifier().classify({"index.html": b"<!-- {{ yield }} -->Hello"})

    assert result.layouts == {}
    assert result.contents["index"].text == "{% block content %}Hello{% endblock %}"


def test_classification_is_idempotent() -> None:
    classifier = make_classifier()
    first = classifier.classify({"layouts/main.html": b"<b>{{ yield }}</b>", "index.html": b"hi"})

    again = classifier.classify(
        {
            "layouts/main.html": first.layouts["main"].text.encode(),
            "index.html": first.contents["index"].text.encode(),
        }
    )

    assert again.layouts["main"].text == first.layouts["main"].text
    assert again.contents["index"].text == first.contents["index"].text


def test_extension_handler_output_is_classified() -> None:
    classifier = make_classifier(handlers={".txt": str.upper, ".ignored": None})
    result = classifier.classify({"notes.txt": b"hello", "skip.ignored": b"x"})

    assert result.contents["notes"].text == "{% block content %}HELLO{% endblock %}"
    assert "skip" not in result.contents
    assert "skip.ignored" not in result.contents


def test_extension_handler_failure_carries_path() -> None:
    def broken(text: str) -> str:
        raise RuntimeError("cannot compile")

    with pytest.raises(PreprocessError) as exc_info:
        make_classifier(handlers={".less": broken}).classify({"css/site.less": b"a {}"})

    assert exc_info.value.path == "css/site.less"
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_invalid_utf8_is_a_preprocess_error() -> None:
    with pytest.raises(PreprocessError):
        make_classifier().classify({"bad.html": b"\xff\xfe"})


def test_duplicate_logical_names_later_path_wins(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="quire")
    classifier = make_classifier(handlers={".md": str.upper})

    result = classifier.classify({"about.md": b"from markdown", "about.html": b"from html"})

    assert result.contents["about"].text == "{% block content %}FROM MARKDOWN{% endblock %}"
    assert "about.html" in caplog.text
    assert "about.md" in caplog.text
