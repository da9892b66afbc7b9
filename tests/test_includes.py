"""Tests for recursive @file include expansion."""
import pytest

from mdcmd import (
    DepthExceededError,
    IncludeNotFoundError,
    PathTraversalError,
    resolve_includes,
)


@pytest.mark.anyio
async def test_include_after_space(write_files):
    base = write_files({"notes.txt": "done"})
    assert await resolve_includes("see @notes.txt", base) == "see done"


@pytest.mark.anyio
async def test_include_at_line_start(write_files):
    base = write_files({"notes.txt": "done"})
    assert await resolve_includes("@notes.txt", base) == "done"
    assert await resolve_includes("Intro\n@notes.txt\nOutro", base) == "Intro\ndone\nOutro"


@pytest.mark.anyio
async def test_leading_whitespace_character_is_kept(write_files):
    base = write_files({"notes.txt": "done"})
    assert await resolve_includes("see\t@notes.txt", base) == "see\tdone"
    assert await resolve_includes("see\n@notes.txt", base) == "see\ndone"


@pytest.mark.anyio
async def test_include_in_subdirectory(write_files):
    base = write_files({"docs/style.md": "Use tabs."})
    assert await resolve_includes("Rules: @docs/style.md", base) == "Rules: Use tabs."


@pytest.mark.anyio
async def test_multiple_includes_in_order(write_files):
    base = write_files({"a.txt": "A", "b.txt": "B"})
    assert await resolve_includes("@a.txt, @b.txt and @a.txt", base) == "A, B and A"


@pytest.mark.anyio
async def test_at_sign_inside_word_is_not_a_marker(write_files):
    base = write_files({})
    body = "mail user@example.com"
    assert await resolve_includes(body, base) == body


@pytest.mark.anyio
async def test_body_without_markers_unchanged(tmp_path):
    assert await resolve_includes("plain text", tmp_path) == "plain text"
    assert await resolve_includes("", tmp_path) == ""


@pytest.mark.anyio
async def test_earlier_lookalike_text_is_not_replaced(write_files):
    base = write_files({"a.md": "A"})
    # "x@a.md" contains the marker text but is not a marker itself
    assert await resolve_includes("see x@a.md\n@a.md", base) == "see x@a.md\nA"


@pytest.mark.anyio
async def test_included_text_is_not_rescanned_by_parent(write_files):
    base = write_files({"a.md": "literal x@b.md", "b.md": "B"})
    assert await resolve_includes("@a.md then @b.md", base) == "literal x@b.md then B"


@pytest.mark.anyio
async def test_nested_includes(write_files):
    base = write_files({"outer.md": "outer(@inner.md)", "inner.md": "inner"})
    # "(@inner.md)" is not preceded by whitespace, so only the outer marker expands
    assert await resolve_includes("@outer.md", base) == "outer(@inner.md)"

    write_files({"outer.md": "outer @inner.md"})
    assert await resolve_includes("@outer.md", base) == "outer inner"


@pytest.mark.anyio
async def test_nested_paths_resolve_against_base(write_files):
    base = write_files({"sub/one.md": "@sub/two.md", "sub/two.md": "two"})
    assert await resolve_includes("@sub/one.md", base) == "two"


@pytest.mark.anyio
async def test_chain_of_depth_three_succeeds(write_files):
    base = write_files({"b.md": "@c.md", "c.md": "@d.md", "d.md": "end"})
    assert await resolve_includes("@b.md", base) == "end"


@pytest.mark.anyio
async def test_chain_of_depth_four_fails(write_files):
    base = write_files({"b.md": "@c.md", "c.md": "@d.md", "d.md": "@e.md", "e.md": "end"})
    with pytest.raises(DepthExceededError) as exc_info:
        await resolve_includes("@b.md", base)
    assert exc_info.value.token == "e.md"
    assert exc_info.value.max_depth == 3


@pytest.mark.anyio
async def test_self_include_is_bounded(write_files):
    base = write_files({"loop.md": "again @loop.md"})
    with pytest.raises(DepthExceededError):
        await resolve_includes("@loop.md", base)


@pytest.mark.anyio
async def test_custom_max_depth(write_files):
    base = write_files({"a.md": "@b.md", "b.md": "B"})
    with pytest.raises(DepthExceededError, match=r"Maximum include depth \(1\)"):
        await resolve_includes("@a.md", base, max_depth=1)


@pytest.mark.anyio
async def test_starting_depth_counts(write_files):
    base = write_files({"a.md": "A"})
    with pytest.raises(DepthExceededError):
        await resolve_includes("@a.md", base, depth=3)


@pytest.mark.anyio
async def test_traversal_rejected(tmp_path):
    base = tmp_path / "base"
    base.mkdir()
    (tmp_path / "secret.txt").write_text("secret")
    with pytest.raises(PathTraversalError) as exc_info:
        await resolve_includes("leak @../secret.txt", base)
    assert exc_info.value.path == "../secret.txt"
    assert "../secret.txt" in str(exc_info.value)


@pytest.mark.anyio
async def test_absolute_path_rejected(tmp_path):
    with pytest.raises(PathTraversalError):
        await resolve_includes("@/etc/passwd", tmp_path)


@pytest.mark.anyio
async def test_base_directory_itself_rejected(tmp_path):
    with pytest.raises(PathTraversalError):
        await resolve_includes("@.", tmp_path)


@pytest.mark.anyio
async def test_missing_file(tmp_path):
    with pytest.raises(IncludeNotFoundError, match="File not found: missing.md") as exc_info:
        await resolve_includes("@missing.md", tmp_path)
    assert isinstance(exc_info.value, FileNotFoundError)


@pytest.mark.anyio
async def test_directory_read_error_propagates(tmp_path):
    (tmp_path / "folder").mkdir()
    with pytest.raises(IsADirectoryError):
        await resolve_includes("@folder", tmp_path)


@pytest.mark.anyio
async def test_failure_in_later_marker_aborts(write_files):
    base = write_files({"a.md": "A"})
    with pytest.raises(IncludeNotFoundError):
        await resolve_includes("@a.md then @missing.md", base)
