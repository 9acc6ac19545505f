"""
Tests for package naming and folder collision resolution.
"""

from datetime import date
from pathlib import Path, PureWindowsPath

import pytest

from adr_rotator.core.exceptions import ConfigurationError, ContentFolderError
from adr_rotator.core.naming import (
    build_source_path,
    date_stamp,
    package_base_name,
    plan_names,
    resolve_folder_name,
    sanitize_folder_name,
)


def test_date_stamp_default_format():
    assert date_stamp(today=date(2026, 10, 17)) == "2026-10-17"


def test_date_stamp_custom_format():
    assert date_stamp("%Y%m", today=date(2026, 3, 9)) == "202603"


def test_date_stamp_empty_result_rejected():
    with pytest.raises(ConfigurationError):
        date_stamp("   ", today=date(2026, 1, 1))


def test_base_name_appends_date():
    assert package_base_name("Windows Monthly", date_suffix="2026-10-17") == "Windows Monthly_2026-10-17"


def test_base_name_remove_date():
    assert package_base_name("Windows Monthly", date_suffix="2026-10-17", remove_date=True) == "Windows Monthly"


def test_base_name_override_keeps_date():
    name = package_base_name("Windows Monthly", package_name="Updates", date_suffix="2026-10-17")
    assert name == "Updates_2026-10-17"


def test_base_name_requires_date_unless_removed():
    with pytest.raises(ConfigurationError):
        package_base_name("Windows Monthly")


def test_single_package_uses_first_rule():
    groups = plan_names(
        ["Windows Monthly", "Office Monthly"],
        single_package=True,
        date_suffix="2026-10-17",
    )
    assert groups == [("Windows Monthly_2026-10-17", ["Windows Monthly", "Office Monthly"])]


def test_single_package_override_without_date():
    groups = plan_names(
        ["Windows Monthly", "Office Monthly"],
        single_package=True,
        package_name="All Updates",
        remove_date=True,
    )
    assert groups == [("All Updates", ["Windows Monthly", "Office Monthly"])]


def test_per_rule_packages_ignore_override():
    groups = plan_names(
        ["Windows Monthly", "Office Monthly"],
        single_package=False,
        package_name="Ignored",
        date_suffix="2026-10",
    )
    assert groups == [
        ("Windows Monthly_2026-10", ["Windows Monthly"]),
        ("Office Monthly_2026-10", ["Office Monthly"]),
    ]


def test_plan_names_requires_rules():
    with pytest.raises(ConfigurationError):
        plan_names([], single_package=True, remove_date=True)


def test_sanitize_folder_name():
    assert sanitize_folder_name('Win: "x"/y?. ') == "Win_ _x__y_"


def test_resolve_folder_name_free(tmp_path: Path):
    assert resolve_folder_name(tmp_path, "Pkg_2026-10-17") == ("Pkg_2026-10-17", "Pkg_2026-10-17")


def test_resolve_folder_name_increments(tmp_path: Path):
    (tmp_path / "Pkg").mkdir()
    (tmp_path / "Pkg_1").mkdir()
    name, folder = resolve_folder_name(tmp_path, "Pkg")
    assert name == "Pkg_2"
    assert not (tmp_path / folder).exists()


def test_resolve_folder_name_uses_sanitized_folder(tmp_path: Path):
    (tmp_path / "A_B").mkdir()
    name, folder = resolve_folder_name(tmp_path, "A:B")
    assert name == "A:B_1"
    assert folder == "A_B_1"


def test_resolve_folder_name_gives_up(tmp_path: Path):
    with pytest.raises(ContentFolderError):
        resolve_folder_name(tmp_path, "Pkg", exists=lambda p: True)


def test_build_source_path_local(tmp_path: Path):
    assert build_source_path(tmp_path / "Pkg", "Pkg") == str(tmp_path / "Pkg")


def test_build_source_path_unc_root():
    path = build_source_path(Path("/mnt/updates/Pkg"), "Pkg", r"\\cm01\Sources\Updates")
    assert path == str(PureWindowsPath(r"\\cm01\Sources\Updates\Pkg"))
