import pytest

import main
from conftest import read_csv, write_csv


@pytest.mark.parametrize("argv", [[], ["only-one.csv"], ["a.csv", "b.csv", "c.csv"]])
def test_wrong_argument_count_prints_usage(argv, capsys):
    assert main.main(argv) == 0
    assert capsys.readouterr().out.strip() == main.USAGE


def test_success(tmp_path, capsys):
    src = write_csv(tmp_path / "zips.csv", [("A", "0.0", "0.0"), ("B", "0.0", "1.0"), ("C", "1.0", "1.0")])
    out = tmp_path / "out.csv"

    assert main.main([src, str(out), "--workers", "2", "--batch-size", "4"]) == 0
    assert len(read_csv(out)) == 6
    assert "Rows written           : 6" in capsys.readouterr().out


def test_malformed_input_exits_non_zero(tmp_path):
    src = write_csv(tmp_path / "zips.csv", [("A", "1.0")], header=("zip", "lat"))
    assert main.main([src, str(tmp_path / "out.csv")]) == 1


def test_invalid_tuning_value_is_a_usage_error(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main.main(["in.csv", "out.csv", "--workers", "0"])
    assert exc.value.code == 2


def test_options_between_paths(tmp_path):
    src = write_csv(tmp_path / "zips.csv", [("A", "0.0", "0.0"), ("B", "0.0", "1.0")])
    out = tmp_path / "out.csv"

    assert main.main([src, "--workers", "2", str(out)]) == 0
    assert sorted(read_csv(out)) == [("A", "B", "69.093"), ("B", "A", "69.093")]
