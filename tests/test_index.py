"""Tests for the tag index building module.

This module contains unit tests for tag file parsing, document grouping and
the atomic, idempotent index build.
"""

from pathlib import Path

import pytest

from tagrec.recommender.exceptions import (
    BuildAborted,
    BuildError,
    IndexIOError,
    ParseError,
)
from tagrec.recommender.index import (
    ItemDocument,
    TagRow,
    build_index,
    build_or_reuse_index,
    compute_term_frequencies,
    group_documents,
    load_tag_rows,
    normalize_tag,
)
from tagrec.recommender.utils import (
    DOCUMENTS_FILENAME,
    MANIFEST_FILENAME,
    TERM_FREQUENCIES_FILENAME,
    VOCABULARY_FILENAME,
    check_index_exists,
    load_index_artifacts,
)

SCENARIO_TAGS = "1,action\n1,Thriller\n2,action\n2,comedy\n3,romance\n"


@pytest.fixture
def tag_file(tmp_path: Path) -> Path:
    """Write the small action/thriller/comedy/romance tag file."""
    path = tmp_path / "tags.csv"
    path.write_text(SCENARIO_TAGS)
    return path


def test_normalize_tag_lowercases_and_joins_words():
    assert normalize_tag("Action") == "action"
    assert normalize_tag("Dark Comedy") == "dark_comedy"
    assert normalize_tag("  based on  a\tbook ") == "based_on_a_book"


def test_load_tag_rows_reads_rows_in_order(tag_file: Path):
    rows = load_tag_rows(tag_file)

    assert rows == [
        TagRow(1, "action"),
        TagRow(1, "Thriller"),
        TagRow(2, "action"),
        TagRow(2, "comedy"),
        TagRow(3, "romance"),
    ]


def test_load_tag_rows_skips_blank_lines(tmp_path: Path):
    path = tmp_path / "tags.csv"
    path.write_text("\n1,action\n\n  \n2,comedy\n")

    assert load_tag_rows(path) == [TagRow(1, "action"), TagRow(2, "comedy")]


def test_load_tag_rows_empty_file_returns_no_rows(tmp_path: Path):
    path = tmp_path / "tags.csv"
    path.write_text("")

    assert load_tag_rows(path) == []


def test_load_tag_rows_extra_field_raises_parse_error(tmp_path: Path):
    path = tmp_path / "tags.csv"
    path.write_text("1,action\n\n2,sci,fi\n")

    with pytest.raises(ParseError) as excinfo:
        load_tag_rows(path)

    assert excinfo.value.line_number == 3
    assert excinfo.value.line == "2,sci,fi"
    assert "line 3" in str(excinfo.value)


def test_load_tag_rows_missing_tag_field_raises_parse_error(tmp_path: Path):
    path = tmp_path / "tags.csv"
    path.write_text("1,action\n2\n")

    with pytest.raises(ParseError) as excinfo:
        load_tag_rows(path)

    assert excinfo.value.line_number == 2


def test_load_tag_rows_non_integer_item_raises_parse_error(tmp_path: Path):
    path = tmp_path / "tags.csv"
    path.write_text("1,action\nabc,comedy\n")

    with pytest.raises(ParseError, match="not an integer"):
        load_tag_rows(path)


def test_load_tag_rows_blank_tag_raises_parse_error(tmp_path: Path):
    path = tmp_path / "tags.csv"
    path.write_text("1,action\n2,   \n")

    with pytest.raises(ParseError, match="blank"):
        load_tag_rows(path)


def test_load_tag_rows_missing_file_raises_index_io_error(tmp_path: Path):
    with pytest.raises(IndexIOError):
        load_tag_rows(tmp_path / "missing.csv")

    # Also usable as a plain OSError
    with pytest.raises(OSError):
        load_tag_rows(tmp_path / "missing.csv")


def test_load_tag_rows_ignores_byte_order_mark(tmp_path: Path):
    path = tmp_path / "tags.csv"
    path.write_text("\ufeff1,action\n2,comedy\n", encoding="utf-8")

    assert load_tag_rows(path) == [TagRow(1, "action"), TagRow(2, "comedy")]


def test_load_tag_rows_item_id_beyond_int64_raises_parse_error(tmp_path: Path):
    path = tmp_path / "tags.csv"
    path.write_text("9223372036854775807,action\n9223372036854775808,comedy\n")

    with pytest.raises(ParseError, match="64-bit") as excinfo:
        load_tag_rows(path)

    assert excinfo.value.line_number == 2
    assert excinfo.value.line == "9223372036854775808,comedy"


def test_group_documents_groups_contiguous_runs():
    rows = [(1, "Action"), (1, "Sci Fi"), (2, "comedy"), (3, "romance"), (3, "action")]

    documents = group_documents(rows)

    assert documents == [
        ItemDocument(1, ("action", "sci_fi")),
        ItemDocument(2, ("comedy",)),
        ItemDocument(3, ("romance", "action")),
    ]
    assert documents[0].text == "action sci_fi"


def test_group_documents_non_contiguous_runs_make_separate_documents():
    rows = [(1, "action"), (2, "comedy"), (1, "thriller")]

    documents = group_documents(rows)

    assert [doc.item_id for doc in documents] == [1, 2, 1]
    assert documents[2].tokens == ("thriller",)


def test_group_documents_accepts_numeric_string_item_ids():
    documents = group_documents([("7", "drama"), (" 7 ", "war")])

    assert documents == [ItemDocument(7, ("drama", "war"))]


@pytest.mark.parametrize(
    "bad_row",
    [(1,), (1, "action", "extra"), "1,action", None, ("x", "action"), (1, ""), (1, 5)],
)
def test_group_documents_malformed_row_raises_parse_error(bad_row):
    with pytest.raises(ParseError):
        group_documents([(1, "action"), bad_row])


def test_compute_term_frequencies_counts_repeated_terms():
    documents = [ItemDocument(1, ("action", "action", "heist")), ItemDocument(2, ("heist",))]

    term_frequencies, vocabulary = compute_term_frequencies(documents)

    assert vocabulary == ["action", "heist"]
    assert term_frequencies.toarray().tolist() == [[2, 1], [0, 1]]


def test_compute_term_frequencies_empty_corpus():
    term_frequencies, vocabulary = compute_term_frequencies([])

    assert term_frequencies.shape == (0, 0)
    assert vocabulary == []


def test_build_index_creates_artifacts(tag_file: Path, tmp_path: Path):
    index_dir = tmp_path / "index"

    built = build_index(load_tag_rows(tag_file), index_dir)

    assert built is True
    for filename in (
        DOCUMENTS_FILENAME,
        TERM_FREQUENCIES_FILENAME,
        VOCABULARY_FILENAME,
        MANIFEST_FILENAME,
    ):
        assert (index_dir / filename).exists()
    assert check_index_exists(index_dir)

    item_ids, texts, term_frequencies, vocabulary, manifest = load_index_artifacts(index_dir)
    assert item_ids.tolist() == [1, 2, 3]
    assert texts == ["action thriller", "action comedy", "romance"]
    assert vocabulary == ["action", "comedy", "romance", "thriller"]
    assert term_frequencies.shape == (3, 4)
    assert manifest["num_documents"] == 3


def test_build_index_leaves_no_staging_directory(tag_file: Path, tmp_path: Path):
    build_index(load_tag_rows(tag_file), tmp_path / "index")

    assert sorted(p.name for p in tmp_path.iterdir()) == ["index", "tags.csv"]


def test_build_index_reuses_existing_index(tag_file: Path, tmp_path: Path):
    index_dir = tmp_path / "index"
    build_index(load_tag_rows(tag_file), index_dir)
    manifest_mtime = (index_dir / MANIFEST_FILENAME).stat().st_mtime_ns

    built_again = build_index([(99, "different")], index_dir)

    assert built_again is False
    assert (index_dir / MANIFEST_FILENAME).stat().st_mtime_ns == manifest_mtime
    item_ids, _, _, _, _ = load_index_artifacts(index_dir)
    assert item_ids.tolist() == [1, 2, 3]


def test_build_index_parse_error_writes_nothing(tmp_path: Path):
    index_dir = tmp_path / "index"

    with pytest.raises(ParseError):
        build_index([(1, "action"), (2,)], index_dir)

    assert not index_dir.exists()
    assert list(tmp_path.iterdir()) == []


@pytest.mark.parametrize(
    "item_id", ["99999999999999999999", 2**63, -(2**63) - 1, "-99999999999999999999"]
)
def test_build_index_item_id_beyond_int64_raises_parse_error(tmp_path: Path, item_id):
    index_dir = tmp_path / "index"

    with pytest.raises(ParseError, match="64-bit") as excinfo:
        build_index([(1, "action"), (item_id, "comedy")], index_dir)

    assert excinfo.value.line_number == 2
    assert isinstance(excinfo.value, BuildError)
    assert not index_dir.exists()
    assert list(tmp_path.iterdir()) == []


def test_build_index_accepts_int64_extremes(tmp_path: Path):
    index_dir = tmp_path / "index"

    build_index([(-(2**63), "action"), (2**63 - 1, "action")], index_dir)

    item_ids, _, _, _, _ = load_index_artifacts(index_dir)
    assert item_ids.tolist() == [-(2**63), 2**63 - 1]


def test_build_index_incomplete_directory_is_not_reused(tmp_path: Path):
    index_dir = tmp_path / "index"
    index_dir.mkdir()
    (index_dir / "stray.txt").write_text("leftover")

    with pytest.raises(IndexIOError, match="not a complete index"):
        build_index([(1, "action")], index_dir)

    assert (index_dir / "stray.txt").exists()


def test_build_index_failed_publish_raises_build_aborted(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    def failing_rename(self, target):
        raise OSError("simulated rename failure")

    monkeypatch.setattr(Path, "rename", failing_rename)
    index_dir = tmp_path / "index"

    with pytest.raises(BuildAborted):
        build_index([(1, "action"), (2, "action")], index_dir)

    assert not index_dir.exists()
    assert list(tmp_path.iterdir()) == []


def test_build_index_failed_write_raises_index_io_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    def failing_save(**kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("tagrec.recommender.index.save_index_artifacts", failing_save)

    with pytest.raises(IndexIOError, match="disk full"):
        build_index([(1, "action")], tmp_path / "index")

    assert list(tmp_path.iterdir()) == []


def test_build_index_empty_corpus_builds_empty_index(tmp_path: Path):
    index_dir = tmp_path / "index"

    assert build_index([], index_dir) is True

    item_ids, texts, term_frequencies, vocabulary, _ = load_index_artifacts(index_dir)
    assert item_ids.tolist() == []
    assert texts == []
    assert vocabulary == []


def test_build_or_reuse_index_builds_then_reuses(tag_file: Path, tmp_path: Path):
    index_dir = tmp_path / "index"

    assert build_or_reuse_index(tag_file, index_dir) is True
    assert build_or_reuse_index(tag_file, index_dir) is False


def test_build_or_reuse_index_does_not_read_tags_when_built(tag_file: Path, tmp_path: Path):
    index_dir = tmp_path / "index"
    build_or_reuse_index(tag_file, index_dir)

    assert build_or_reuse_index(tmp_path / "gone.csv", index_dir) is False


def test_build_or_reuse_index_bad_file_raises_build_error(tmp_path: Path):
    bad = tmp_path / "tags.csv"
    bad.write_text("1,action,extra\n")

    with pytest.raises(BuildError):
        build_or_reuse_index(bad, tmp_path / "index")

    assert not (tmp_path / "index").exists()
