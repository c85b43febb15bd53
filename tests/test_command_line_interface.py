import json
import pathlib

from click.testing import CliRunner

from cdn_asset_analyser._command_line_interface import (
    _analyse_cdn_asset_access_in_folders_cli,
    _analyse_cdn_asset_access_in_s3_cli,
)


def test_analyse_cdn_asset_access_in_folders_cli(tmp_path: pathlib.Path):
    example_folder_path = pathlib.Path(__file__).parent / "examples" / "analysis_example_0"
    analysis_folder_path = tmp_path / "analysis"

    runner = CliRunner()
    result = runner.invoke(
        _analyse_cdn_asset_access_in_folders_cli,
        [
            "--assets_folder_path",
            str(example_folder_path / "assets"),
            "--raw_access_logs_folder_path",
            str(example_folder_path / "raw_logs"),
            "--analysis_folder_path",
            str(analysis_folder_path),
            "--access_log_filter_in_path",
            "cidev",
            # Keep the example requests regardless of when the test is run
            "--data_retention_period_in_days",
            "10000",
            "--log_level",
            "debug",
        ],
    )

    assert result.exit_code == 0, result.output

    expected_output_folder_path = example_folder_path / "expected_output"
    for expected_file_path in expected_output_folder_path.iterdir():
        test_file_path = analysis_folder_path / expected_file_path.name
        assert json.loads(test_file_path.read_text()) == json.loads(expected_file_path.read_text())


def test_analyse_cdn_asset_access_in_folders_cli_with_config_file(tmp_path: pathlib.Path):
    example_folder_path = pathlib.Path(__file__).parent / "examples" / "analysis_example_0"
    analysis_folder_path = tmp_path / "analysis"
    config_file_path = tmp_path / "config.yaml"
    config_file_path.write_text("access_log_filter_in_path: prod\ndata_retention_period_in_days: 10000\n")

    runner = CliRunner()
    result = runner.invoke(
        _analyse_cdn_asset_access_in_folders_cli,
        [
            "--assets_folder_path",
            str(example_folder_path / "assets"),
            "--raw_access_logs_folder_path",
            str(example_folder_path / "raw_logs"),
            "--analysis_folder_path",
            str(analysis_folder_path),
            "--config_file_path",
            str(config_file_path),
        ],
    )

    assert result.exit_code == 0, result.output

    raw_records = json.loads((analysis_folder_path / "raw-asset-access-data.json").read_text())
    assert [raw_record["asset"] for raw_record in raw_records] == ["prod/javascripts/app/generate-document.js"]


def test_analyse_cdn_asset_access_in_s3_cli_requires_s3_section(tmp_path: pathlib.Path):
    config_file_path = tmp_path / "config.yaml"
    config_file_path.write_text("access_log_filter_in_path: cidev\n")

    runner = CliRunner()
    result = runner.invoke(_analyse_cdn_asset_access_in_s3_cli, ["--config_file_path", str(config_file_path)])

    assert result.exit_code == 2
    assert "s3" in result.output
