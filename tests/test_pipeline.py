"""End-to-end tests for processing markdown files."""

import hashlib
from pathlib import Path
from unittest.mock import patch

import pytest

from mdrender.config.models import MdRenderConfig, RenderConfig
from mdrender.document.models import DocumentError, RenderMode
from mdrender.pipeline import check_file, process_file, process_files
from mdrender.renderers.models import UnsupportedLanguageError

DOT_SOURCE = "digraph{a->b}"
DOT_HASH = hashlib.md5(DOT_SOURCE.encode()).hexdigest()


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def _read(path: Path) -> str:
    return path.read_bytes().decode("utf-8")


def _image_lines(text: str) -> list[str]:
    return [line for line in text.split("\n") if line.startswith("![")]


class TestProcessFile:
    def test_first_render_of_dot_block(self, tmp_path, sample_config, fake_backend, svg_bytes):
        doc = _write(tmp_path / "doc.md", f"# Title\n\n```dot render\n{DOT_SOURCE}\n```\n")

        result = process_file(doc, sample_config)

        filename = f"render-{DOT_HASH}.svg"
        assert result.rendered == [filename]
        assert result.changed is True
        assert _read(doc) == (
            f"# Title\n\n```dot render\n{DOT_SOURCE}\n```\n![{filename}]({filename})\n"
        )
        image = tmp_path / "images" / filename
        assert image.read_bytes() == svg_bytes(DOT_SOURCE.encode())
        assert fake_backend.call_count == 1

    def test_second_run_is_a_no_op(self, tmp_path, sample_config, fake_backend):
        doc = _write(tmp_path / "doc.md", f"```dot render\n{DOT_SOURCE}\n```\n")
        process_file(doc, sample_config)
        after_first = _read(doc)
        fake_backend.reset_mock()

        with patch("mdrender.document.rewriter.write_document") as mock_write:
            result = process_file(doc, sample_config)

        assert result.rendered == []
        assert result.changed is False
        assert _read(doc) == after_first
        fake_backend.assert_not_called()
        mock_write.assert_not_called()

    @pytest.mark.parametrize("mode", [m.value for m in RenderMode])
    def test_every_mode_converges(self, tmp_path, sample_config, fake_backend, mode):
        text = (
            "Intro\n"
            "\n"
            f'```dot render {{"mode": "{mode}"}}\n'
            f"{DOT_SOURCE}\n"
            "```\n"
            "\n"
            "Outro\n"
        )
        doc = _write(tmp_path / "doc.md", text)

        process_file(doc, sample_config)
        first = _read(doc)
        second_result = process_file(doc, sample_config)

        assert fake_backend.call_count == 1
        assert second_result.changed is False
        assert _read(doc) == first
        assert first.startswith("Intro\n\n")
        assert first.endswith("\n\nOutro\n")
        assert len(_image_lines(first)) == 1

    def test_code_hidden_keeps_source_commented_out(self, tmp_path, sample_config, fake_backend):
        doc = _write(tmp_path / "doc.md", f'```dot render {{"mode":"code-hidden"}}\n{DOT_SOURCE}\n```\n')
        process_file(doc, sample_config)
        lines = _read(doc).split("\n")
        assert lines[0] == "<!--"
        assert lines[4] == "-->"
        assert lines[5] == f"![render-{DOT_HASH}.svg](render-{DOT_HASH}.svg)"

    def test_explicit_filename_gets_hash_comment(self, tmp_path, sample_config, fake_backend):
        doc = _write(tmp_path / "doc.md", f'```dot render {{"filename":"diagram.svg"}}\n{DOT_SOURCE}\n```\n')

        process_file(doc, sample_config)

        assert _image_lines(_read(doc)) == [
            f"![diagram.svg](diagram.svg) <!-- hash:{DOT_HASH[:8]} -->"
        ]
        assert (tmp_path / "images" / "diagram.svg").is_file()

        fake_backend.reset_mock()
        assert process_file(doc, sample_config).changed is False
        fake_backend.assert_not_called()

    def test_link_prefix(self, tmp_path, sample_config, fake_backend):
        cfg = sample_config.model_copy(
            update={"render": sample_config.render.model_copy(update={"link_prefix": "images/"})}
        )
        doc = _write(tmp_path / "doc.md", f"```dot render\n{DOT_SOURCE}\n```")
        process_file(doc, cfg)
        assert _image_lines(_read(doc)) == [
            f"![render-{DOT_HASH}.svg](images/render-{DOT_HASH}.svg)"
        ]

    def test_filename_with_space_converges(self, tmp_path, sample_config, fake_backend):
        doc = _write(tmp_path / "doc.md", f'```dot render {{"filename":"my diagram.svg"}}\n{DOT_SOURCE}\n```\n')

        process_file(doc, sample_config)
        first = _read(doc)
        second = process_file(doc, sample_config)

        assert second.changed is False
        assert _read(doc) == first
        assert _image_lines(first) == [
            f"![my diagram.svg](my diagram.svg) <!-- hash:{DOT_HASH[:8]} -->"
        ]
        assert fake_backend.call_count == 1

    def test_link_prefix_with_space_converges(self, tmp_path, sample_config, fake_backend):
        cfg = sample_config.model_copy(
            update={"render": sample_config.render.model_copy(update={"link_prefix": "my images/"})}
        )
        doc = _write(tmp_path / "doc.md", f"```dot render\n{DOT_SOURCE}\n```\n")

        process_file(doc, cfg)
        first = _read(doc)
        second = process_file(doc, cfg)

        assert second.changed is False
        assert _read(doc) == first
        assert _image_lines(first) == [
            f"![render-{DOT_HASH}.svg](my images/render-{DOT_HASH}.svg)"
        ]
        assert fake_backend.call_count == 1

    def test_image_named_after_its_target_is_claimed(self, tmp_path, sample_config, fake_backend):
        # An image directly below a block whose target ends with its alt text
        # has the shape of a generated one, so it is taken over.
        doc = _write(tmp_path / "doc.md", f"```dot render\n{DOT_SOURCE}\n```\n![team.png](team.png)\n")

        process_file(doc, sample_config)

        assert _image_lines(_read(doc)) == [f"![render-{DOT_HASH}.svg](render-{DOT_HASH}.svg)"]

    def test_other_hand_written_image_is_kept(self, tmp_path, sample_config, fake_backend):
        doc = _write(tmp_path / "doc.md", f"```dot render\n{DOT_SOURCE}\n```\n![The team](team.png)\n")

        process_file(doc, sample_config)

        assert _image_lines(_read(doc)) == [
            f"![render-{DOT_HASH}.svg](render-{DOT_HASH}.svg)",
            "![The team](team.png)",
        ]

    def test_edited_source_is_rerendered_in_place(self, tmp_path, sample_config, fake_backend):
        doc = _write(tmp_path / "doc.md", f"```dot render\n{DOT_SOURCE}\n```\n")
        process_file(doc, sample_config)
        _write(doc, _read(doc).replace("a->b", "a->c"))

        result = process_file(doc, sample_config)

        new_hash = hashlib.md5(b"digraph{a->c}").hexdigest()
        assert result.rendered == [f"render-{new_hash}.svg"]
        assert _image_lines(_read(doc)) == [f"![render-{new_hash}.svg](render-{new_hash}.svg)"]
        assert fake_backend.call_count == 2

    def test_mode_change_replaces_previous_layout(self, tmp_path, sample_config, fake_backend):
        doc = _write(tmp_path / "doc.md", f'A\n```dot render {{"mode":"code-collapsed"}}\n{DOT_SOURCE}\n```\nB\n')
        process_file(doc, sample_config)
        _write(doc, _read(doc).replace("code-collapsed", "code-hidden"))

        process_file(doc, sample_config)

        text = _read(doc)
        assert "<details>" not in text
        assert text == (
            "A\n"
            "<!--\n"
            '```dot render {"mode":"code-hidden"}\n'
            f"{DOT_SOURCE}\n"
            "```\n"
            "-->\n"
            f"![render-{DOT_HASH}.svg](render-{DOT_HASH}.svg)\n"
            "B\n"
        )

    def test_unrelated_text_is_preserved(self, tmp_path, sample_config, fake_backend, sample_markdown):
        doc = _write(tmp_path / "doc.md", sample_markdown)
        process_file(doc, sample_config)
        text = _read(doc)

        assert text.startswith("# Architecture\n\nSome intro text.\n\n```dot render\n")
        assert "```python\nprint('not a diagram')\n```\n" in text
        assert text.endswith("\n\nThe end.\n")
        assert fake_backend.call_count == 2

    def test_crlf_line_endings_are_preserved(self, tmp_path, sample_config, fake_backend):
        doc = tmp_path / "doc.md"
        doc.write_bytes(b"Intro\r\n```dot render\r\ndigraph{a->b}\r\n```\r\nOutro\r\n")

        process_file(doc, sample_config)
        first = doc.read_bytes()

        assert first.startswith(b"Intro\r\n```dot render\r\n")
        assert first.endswith(b"\nOutro\r\n")
        fake_backend.reset_mock()
        assert process_file(doc, sample_config).changed is False
        fake_backend.assert_not_called()

    def test_output_dir_defaults_to_document_directory(self, tmp_path, fake_backend):
        cfg = MdRenderConfig(render=RenderConfig(languages=["dot"]))
        (tmp_path / "docs").mkdir()
        doc = _write(tmp_path / "docs" / "doc.md", f"```dot render\n{DOT_SOURCE}\n```\n")
        process_file(doc, cfg)
        assert (tmp_path / "docs" / f"render-{DOT_HASH}.svg").is_file()

    def test_document_without_blocks_is_untouched(self, tmp_path, sample_config, fake_backend):
        doc = _write(tmp_path / "doc.md", "# Nothing to render\n")
        with patch("mdrender.document.rewriter.write_document") as mock_write:
            result = process_file(doc, sample_config)
        assert result.changed is False
        mock_write.assert_not_called()
        fake_backend.assert_not_called()


class TestProcessFileErrors:
    def test_unsupported_mode_aborts_before_rendering(self, tmp_path, sample_config, fake_backend):
        original = f'```dot render {{"mode":"exploded"}}\n{DOT_SOURCE}\n```\n```dot render\nx\n```\n'
        doc = _write(tmp_path / "doc.md", original)

        with pytest.raises(DocumentError, match="line 1") as exc_info:
            process_file(doc, sample_config)

        assert exc_info.value.path == str(doc)
        assert "exploded" in str(exc_info.value)
        assert _read(doc) == original
        fake_backend.assert_not_called()

    def test_missing_file(self, tmp_path, sample_config):
        with pytest.raises(DocumentError, match="no such file"):
            process_file(tmp_path / "missing.md", sample_config)

    def test_backend_failure_leaves_file_unchanged(self, tmp_path, sample_config, failing_backend):
        original = f"```dot render\n{DOT_SOURCE}\n```\n"
        doc = _write(tmp_path / "doc.md", original)

        with pytest.raises(DocumentError, match="render chunk") as exc_info:
            process_file(doc, sample_config)

        assert "syntax error in line 1" in str(exc_info.value)
        assert exc_info.value.operation == "line 1: render chunk"
        assert _read(doc) == original

    def test_one_bad_block_fails_the_whole_file(self, tmp_path, sample_config, fake_backend):
        original = f"```dot render\n{DOT_SOURCE}\n```\n\n```pikchr render\nbox\n"
        doc = _write(tmp_path / "doc.md", original)
        with pytest.raises(DocumentError, match="never closed"):
            process_file(doc, sample_config)
        assert _read(doc) == original
        fake_backend.assert_not_called()


class TestProcessFiles:
    def test_processes_in_order(self, tmp_path, sample_config, fake_backend):
        a = _write(tmp_path / "a.md", f"```dot render\n{DOT_SOURCE}\n```\n")
        b = _write(tmp_path / "b.md", "```pikchr render\nbox\n```\n")
        results = process_files([a, b], sample_config)
        assert [r.path for r in results] == [str(a), str(b)]
        assert all(r.changed for r in results)

    def test_stops_at_first_failure(self, tmp_path, sample_config, fake_backend):
        first = _write(tmp_path / "first.md", f"```dot render\n{DOT_SOURCE}\n```\n")
        last_text = f"```dot render\n{DOT_SOURCE}\n```\n"
        last = _write(tmp_path / "last.md", last_text)

        with pytest.raises(DocumentError):
            process_files([first, tmp_path / "missing.md", last], sample_config)

        assert _image_lines(_read(first))
        assert _read(last) == last_text

    def test_rejects_empty_language_list(self, tmp_path, fake_backend):
        doc = _write(tmp_path / "doc.md", f"```dot render\n{DOT_SOURCE}\n```\n")
        with pytest.raises(ValueError, match="no languages to render") as exc_info:
            process_files([doc], MdRenderConfig())
        assert not isinstance(exc_info.value, UnsupportedLanguageError)
        fake_backend.assert_not_called()

    def test_rejects_unknown_languages_up_front(self, tmp_path, fake_backend):
        cfg = MdRenderConfig(render=RenderConfig(languages=["dot", "mermaid"]))
        doc = _write(tmp_path / "doc.md", f"```dot render\n{DOT_SOURCE}\n```\n")
        with pytest.raises(ValueError, match="mermaid"):
            process_files([doc], cfg)
        fake_backend.assert_not_called()


class TestCheckFile:
    def test_reports_missing_and_stale_blocks(self, tmp_path, sample_config, fake_backend):
        doc = _write(tmp_path / "doc.md", f"```dot render\n{DOT_SOURCE}\n```\n")
        (block,) = check_file(doc, ["dot"])
        assert block.line == 1
        assert block.language == "dot"
        assert block.filename == f"render-{DOT_HASH}.svg"
        assert block.current_hash == DOT_HASH
        assert block.recorded_hash == ""

        process_file(doc, sample_config)
        assert check_file(doc, ["dot"]) == []

        _write(doc, _read(doc).replace("a->b", "b->a"))
        (block,) = check_file(doc, ["dot"])
        assert block.recorded_hash == DOT_HASH

    def test_never_renders_or_writes(self, tmp_path, fake_backend):
        original = f"```dot render\n{DOT_SOURCE}\n```\n"
        doc = _write(tmp_path / "doc.md", original)
        check_file(doc, ["dot"])
        fake_backend.assert_not_called()
        assert _read(doc) == original
