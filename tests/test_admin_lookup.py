import pytest

from geoseed.admin import code_of, load_admin_files, load_reference_table
from geoseed.errors import StartupConfigError
from geoseed.schemas import AdminCodeRow


def _write(path, rows):
    path.write_text("".join("\t".join(row) + "\n" for row in rows), encoding="utf-8")
    return path


def test_load_admin_files_maps_codes_to_names(tmp_path):
    admin1 = _write(
        tmp_path / "admin1CodesASCII.txt",
        [["US.CA", "California", "California", "5332921"], ["FR.11", "Île-de-France", "Ile-de-France", "3012874"]],
    )
    admin2 = _write(
        tmp_path / "admin2Codes.txt",
        [["US.CA.037", "Los Angeles County", "Los Angeles County", "5368381"]],
    )

    admin1_lookup, admin2_lookup = load_admin_files(admin1, admin2)

    assert admin1_lookup == {"US.CA": "California", "FR.11": "Île-de-France"}
    assert admin2_lookup == {"US.CA.037": "Los Angeles County"}


def test_lookups_are_read_only(tmp_path):
    admin1 = _write(tmp_path / "a1.txt", [["US.CA", "California", "California", "5332921"]])

    lookup = load_reference_table(admin1, AdminCodeRow, key=code_of, value=lambda row: row.ascii_name)

    with pytest.raises(TypeError):
        lookup["US.NY"] = "New York"  # type: ignore[index]


def test_extractors_choose_key_and_value(tmp_path):
    admin1 = _write(tmp_path / "a1.txt", [["FR.11", "Île-de-France", "Ile-de-France", "3012874"]])

    lookup = load_reference_table(
        admin1,
        AdminCodeRow,
        key=lambda row: str(row.geonameid),
        value=lambda row: row.ascii_name,
    )

    assert dict(lookup) == {"3012874": "Ile-de-France"}


def test_missing_file_is_startup_error(tmp_path):
    admin2 = _write(tmp_path / "a2.txt", [])

    with pytest.raises(StartupConfigError) as excinfo:
        load_admin_files(tmp_path / "missing.txt", admin2)

    assert excinfo.value.stage == "load_admin"


def test_short_row_fails_whole_load(tmp_path):
    admin1 = _write(
        tmp_path / "a1.txt",
        [["US.CA", "California", "California", "5332921"], ["US.NY", "New York"]],
    )

    with pytest.raises(StartupConfigError) as excinfo:
        load_reference_table(admin1, AdminCodeRow, key=code_of, value=lambda row: row.name)

    assert excinfo.value.detail["line"] == 2


def test_non_numeric_geonameid_fails_load(tmp_path):
    admin1 = _write(tmp_path / "a1.txt", [["US.CA", "California", "California", "not-a-number"]])

    with pytest.raises(StartupConfigError):
        load_reference_table(admin1, AdminCodeRow, key=code_of, value=lambda row: row.name)


def test_quotes_in_names_are_literal(tmp_path):
    admin2 = _write(tmp_path / "a2.txt", [["NZ.E7.001", '"Far North" District', "Far North District", "6215186"]])

    lookup = load_reference_table(admin2, AdminCodeRow, key=code_of, value=lambda row: row.name)

    assert lookup["NZ.E7.001"] == '"Far North" District'


@pytest.mark.parametrize("geonameid", ["5332921.0", " 5332921", "5_332_921"])
def test_geonameid_must_be_plain_integer(tmp_path, geonameid):
    admin1 = _write(tmp_path / "a1.txt", [["US.CA", "California", "California", geonameid]])

    with pytest.raises(StartupConfigError):
        load_reference_table(admin1, AdminCodeRow, key=code_of, value=lambda row: row.name)
