"""Tests for the bounded directory scanner."""

from git_hook_installer.scan import scan_tree


def _has_marker(directory):
    return (directory / "MARKER").exists()


def test_finds_matches_within_depth(tmp_path):
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "a" / "b" / "MARKER").touch()

    shallow = scan_tree(tmp_path, _has_marker, max_depth=1, max_entries=1000)
    deep = scan_tree(tmp_path, _has_marker, max_depth=2, max_entries=1000)

    assert shallow.found == []
    assert deep.found == [tmp_path / "a" / "b"]
    assert not deep.truncated


def test_matched_directory_is_terminal_by_default(tmp_path):
    (tmp_path / "outer" / "inner").mkdir(parents=True)
    (tmp_path / "outer" / "MARKER").touch()
    (tmp_path / "outer" / "inner" / "MARKER").touch()

    result = scan_tree(tmp_path, _has_marker, max_depth=5, max_entries=1000)
    assert result.found == [tmp_path / "outer"]

    result = scan_tree(tmp_path, _has_marker, max_depth=5, max_entries=1000,
                       descend_into_matches=True)
    assert result.found == [tmp_path / "outer", tmp_path / "outer" / "inner"]


def test_skip_dirs_are_not_descended(tmp_path):
    for name in ("node_modules", "target", ".venv"):
        (tmp_path / name).mkdir()
        (tmp_path / name / "MARKER").touch()
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "MARKER").touch()

    result = scan_tree(tmp_path, _has_marker, max_depth=3, max_entries=1000)
    assert result.found == [tmp_path / "src"]


def test_entry_budget_truncates(tmp_path):
    for i in range(20):
        (tmp_path / f"d{i:02d}").mkdir()

    result = scan_tree(tmp_path, _has_marker, max_depth=3, max_entries=5)
    assert result.truncated
    assert result.visited == 5


def test_files_count_toward_budget(tmp_path):
    for i in range(10):
        (tmp_path / f"f{i}.txt").touch()

    result = scan_tree(tmp_path, _has_marker, max_depth=3, max_entries=100)
    # root plus ten files
    assert result.visited == 11
    assert not result.truncated


def test_root_itself_can_match(tmp_path):
    (tmp_path / "MARKER").touch()
    result = scan_tree(tmp_path, _has_marker, max_depth=0, max_entries=10)
    assert result.found == [tmp_path]


def test_symlinked_directories_are_not_followed(tmp_path):
    real = tmp_path / "real"
    real.mkdir()
    (real / "MARKER").touch()
    scan_root = tmp_path / "scan"
    scan_root.mkdir()
    (scan_root / "link").symlink_to(real, target_is_directory=True)

    result = scan_tree(scan_root, _has_marker, max_depth=3, max_entries=100)
    assert result.found == []
