"""Unit tests for zk.sync."""

import copy
import logging
from pathlib import Path

import pytest

from zk.index import ZettelIndex
from zk.note import new_note
from zk.sync import iter_note_files, sync

from zk_support import T0, T1, T2, FakeClock


def _write_note(root: Path, rel_path: str, content: str) -> Path:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _add(index: ZettelIndex, title: str, zid: str, **kwargs) -> Path:
    return index.add(new_note(title, T1, id_factory=lambda: zid, **kwargs))


@pytest.fixture()
def populated(index: ZettelIndex) -> ZettelIndex:
    """Index with two registered notes, alpha at the root and beta in 2022/."""
    _add(index, "Alpha", "alpha")
    _add(index, "Beta", "beta", subdir="2022")
    index.clock = FakeClock(T2)
    return index


# ---------------------------------------------------------------------------
# Relocation
# ---------------------------------------------------------------------------


class TestRelocation:
    def test_moved_file_is_relinked(self, index: ZettelIndex, tmp_path: Path):
        _write_note(tmp_path, "a.md", "---\nid: X\ntitle: Moved\n---\n\nBody.\n")
        note = new_note("Moved", T1, id_factory=lambda: "X")
        note.meta.path = "a.md"
        index.contents.zettels["X"] = note.meta

        content = (tmp_path / "a.md").read_text(encoding="utf-8")
        (tmp_path / "a.md").unlink()
        _write_note(tmp_path, "b/c.md", content)

        report = sync(index)

        assert index.get("X").path == "b/c.md"
        assert index.get("X").created == T1
        assert [str(r) for r in report.relinked] == ["a.md -> b/c.md"]

    def test_rename_in_place(self, populated: ZettelIndex, tmp_path: Path):
        old = populated.path_to("alpha")
        old.rename(tmp_path / "renamed.md")
        sync(populated)
        assert populated.get("alpha").path == "renamed.md"
        assert populated.get("beta").path == "2022/2022-01-02-Beta.md"

    def test_title_refreshed_from_header(self, populated: ZettelIndex):
        path = populated.path_to("alpha")
        path.write_text(
            path.read_text(encoding="utf-8").replace("title: Alpha", "title: Alpha Prime"),
            encoding="utf-8",
        )
        report = sync(populated)
        assert populated.get("alpha").title == "Alpha Prime"
        assert [(r.old_title, r.new_title) for r in report.retitled] == [("Alpha", "Alpha Prime")]

    def test_non_string_title_ignored(self, populated: ZettelIndex):
        populated.path_to("alpha").write_text("---\nid: alpha\ntitle: 42\n---\n", encoding="utf-8")
        sync(populated)
        assert populated.get("alpha").title == "Alpha"

    def test_timestamps_and_id_untouched(self, populated: ZettelIndex):
        before = copy.deepcopy(populated.get("beta"))
        populated.path_to("beta").write_text("---\nid: beta\ntitle: B2\n---\n", encoding="utf-8")
        sync(populated)
        after = populated.get("beta")
        assert (after.id, after.created, after.modified) == (before.id, before.created, before.modified)


# ---------------------------------------------------------------------------
# Idempotency / index timestamps
# ---------------------------------------------------------------------------


class TestIdempotency:
    def test_second_sync_changes_nothing(self, populated: ZettelIndex, tmp_path: Path):
        populated.path_to("alpha").rename(tmp_path / "moved.md")
        _write_note(tmp_path, "junk.md", "no header\n")

        sync(populated)
        first = populated.contents.to_dict()
        report = sync(populated)

        assert populated.contents.to_dict() == first
        assert not report.changed

    def test_modified_bumped_only_on_change(self, populated: ZettelIndex, tmp_path: Path):
        sync(populated)
        assert populated.meta.modified == T1

        populated.path_to("alpha").rename(tmp_path / "moved.md")
        sync(populated)
        assert populated.meta.modified == T2
        assert populated.meta.created == T0


# ---------------------------------------------------------------------------
# Skipped files
# ---------------------------------------------------------------------------


class TestSkips:
    def test_malformed_file_does_not_stop_the_pass(self, populated: ZettelIndex, tmp_path: Path):
        before_alpha = copy.deepcopy(populated.get("alpha"))
        # "0-..." sorts before everything else, so it is visited first
        _write_note(tmp_path, "0-broken.md", "id: alpha\n---\n")
        populated.path_to("beta").rename(tmp_path / "2022" / "beta-moved.md")

        report = sync(populated)

        assert populated.get("alpha") == before_alpha
        assert populated.get("beta").path == "2022/beta-moved.md"
        assert [d.path for d in report.diagnostics] == ["0-broken.md"]

    @pytest.mark.parametrize(
        "content",
        [
            "---\ntitle: No id\n---\n",
            "---\n---\n",
        ],
    )
    def test_missing_id_is_skipped(self, populated: ZettelIndex, tmp_path: Path, content: str):
        _write_note(tmp_path, "noid.md", content)
        report = sync(populated)
        assert [d.reason for d in report.diagnostics] == ["missing key 'id' in frontmatter"]

    def test_non_string_id(self, populated: ZettelIndex, tmp_path: Path):
        _write_note(tmp_path, "numeric.md", "---\nid: 12345\n---\n")
        report = sync(populated)
        assert report.diagnostics[0].reason == "'id' in frontmatter is not a string"

    def test_unregistered_id_not_added(self, populated: ZettelIndex, tmp_path: Path):
        _write_note(tmp_path, "stranger.md", "---\nid: stranger\ntitle: S\n---\n")
        report = sync(populated)
        assert "stranger" not in populated
        assert report.diagnostics[0].reason == "unregistered id stranger"

    def test_unclosed_header(self, populated: ZettelIndex, tmp_path: Path):
        _write_note(tmp_path, "open.md", "---\nid: alpha\n")
        report = sync(populated)
        assert populated.get("alpha").path == "2022-01-02-Alpha.md"
        assert report.diagnostics[0].path == "open.md"

    def test_binary_file(self, populated: ZettelIndex, tmp_path: Path):
        (tmp_path / "image.png").write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe\x00")
        report = sync(populated)
        assert [d.path for d in report.diagnostics] == ["image.png"]

    def test_diagnostics_are_logged(self, populated: ZettelIndex, tmp_path: Path, caplog):
        _write_note(tmp_path, "plain.md", "plain\n")
        with caplog.at_level(logging.WARNING, logger="zk.sync"):
            sync(populated)
        assert "skipping plain.md" in caplog.text


class TestDuplicates:
    def test_copy_sorting_after_is_reported(self, populated: ZettelIndex, tmp_path: Path):
        content = populated.path_to("alpha").read_text(encoding="utf-8")
        _write_note(tmp_path, "zz-copy.md", content)
        report = sync(populated)
        assert populated.get("alpha").path == "2022-01-02-Alpha.md"
        assert [d.path for d in report.diagnostics] == ["zz-copy.md"]

    def test_indexed_file_wins_over_earlier_copy(self, populated: ZettelIndex, tmp_path: Path):
        content = populated.path_to("alpha").read_text(encoding="utf-8")
        _write_note(tmp_path, "0-copy.md", content)

        report = sync(populated)

        assert populated.get("alpha").path == "2022-01-02-Alpha.md"
        assert report.relinked == []
        assert [(d.path, d.reason) for d in report.diagnostics] == [
            ("0-copy.md", "duplicate id alpha (already at 2022-01-02-Alpha.md)")
        ]

    def test_moved_with_two_copies_takes_first_in_walk(self, populated: ZettelIndex, tmp_path: Path):
        old = populated.path_to("alpha")
        content = old.read_text(encoding="utf-8")
        old.unlink()
        _write_note(tmp_path, "b.md", content)
        _write_note(tmp_path, "a.md", content)

        report = sync(populated)

        assert populated.get("alpha").path == "a.md"
        assert [d.path for d in report.diagnostics] == ["b.md"]
        assert sync(populated).relinked == []


# ---------------------------------------------------------------------------
# Walk
# ---------------------------------------------------------------------------


class TestWalk:
    def test_index_and_hidden_files_ignored(self, populated: ZettelIndex, tmp_path: Path):
        populated.commit()
        _write_note(tmp_path, "_zettel.toml", "[zk]\n")
        _write_note(tmp_path, ".git/HEAD", "ref: refs/heads/main\n")
        _write_note(tmp_path, ".hidden.md", "x\n")

        names = [p.relative_to(tmp_path).as_posix() for p in iter_note_files(tmp_path)]

        assert names == ["2022/2022-01-02-Beta.md", "2022-01-02-Alpha.md"]

    def test_committed_index_not_reported(self, populated: ZettelIndex):
        populated.commit()
        report = sync(populated)
        assert report.diagnostics == []
        assert report.scanned == 2

    def test_symlinked_directory_not_followed(self, populated: ZettelIndex, tmp_path: Path):
        (tmp_path / "2022" / "loop").symlink_to(tmp_path, target_is_directory=True)

        names = [p.relative_to(tmp_path).as_posix() for p in iter_note_files(tmp_path)]
        report = sync(populated)

        assert names == ["2022/2022-01-02-Beta.md", "2022-01-02-Alpha.md"]
        assert report.diagnostics == []
