"""Call the CDN asset analyser from the command line."""

import logging
import pathlib

import click

from ._config import load_analyser_config
from ._local_analysis_store import LocalFolderAnalysisReader, LocalFolderAnalysisWriter
from ._pipeline import AssetAccessAnalysisPipeline
from ._s3_analysis_store import S3AnalysisReader, S3AnalysisWriter, create_s3_client

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _configure_logging(log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.command(name="analyse_cdn_asset_access_in_s3")
@click.option(
    "--config_file_path",
    help="The path to the YAML configuration file; it must contain an `s3` section naming the buckets.",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
)
@click.option(
    "--maximum_number_of_workers",
    help="The maximum number of access log files to fetch and parse concurrently. Overrides the configuration file.",
    required=False,
    type=click.IntRange(min=1),
    default=None,
)
@click.option(
    "--log_level",
    help="The minimum level of log messages to report.",
    required=False,
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="INFO",
)
def _analyse_cdn_asset_access_in_s3_cli(
    config_file_path: str,
    maximum_number_of_workers: int | None,
    log_level: str,
) -> None:
    _configure_logging(log_level=log_level.upper())

    config = load_analyser_config(
        config_file_path=config_file_path, maximum_number_of_workers=maximum_number_of_workers
    )
    if config.s3 is None:
        raise click.UsageError(f"The configuration file '{config_file_path}' has no `s3` section.")

    s3_client = create_s3_client(s3_store_config=config.s3)
    pipeline = AssetAccessAnalysisPipeline(
        config=config,
        analysis_input=S3AnalysisReader(s3_client=s3_client, config=config),
        analysis_output=S3AnalysisWriter(s3_client=s3_client, bucket=config.s3.cdn_analysis_bucket),
    )
    pipeline.run()

    return None


@click.command(name="analyse_cdn_asset_access_in_folders")
@click.option(
    "--assets_folder_path",
    help="The path to the folder containing all CDN assets. Asset keys are the paths relative to this folder.",
    required=True,
    type=click.Path(exists=True, file_okay=False),
)
@click.option(
    "--raw_access_logs_folder_path",
    help="The path to the folder containing all raw access log files.",
    required=True,
    type=click.Path(exists=True, file_okay=False),
)
@click.option(
    "--analysis_folder_path",
    help="The path to the folder to read the previous analysis from and to write the new analysis to.",
    required=True,
    type=click.Path(file_okay=False, writable=True),
)
@click.option(
    "--config_file_path",
    help="The path to an optional YAML configuration file.",
    required=False,
    type=click.Path(exists=True, dir_okay=False),
    default=None,
)
@click.option(
    "--access_log_filter_in_path",
    help="Only requests for asset paths containing this string are analysed. Overrides the configuration file.",
    required=False,
    type=str,
    default=None,
)
@click.option(
    "--data_retention_period_in_days",
    help="Requests older than this many days are dropped. Overrides the configuration file.",
    required=False,
    type=click.IntRange(min=1),
    default=None,
)
@click.option(
    "--log_level",
    help="The minimum level of log messages to report.",
    required=False,
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="INFO",
)
def _analyse_cdn_asset_access_in_folders_cli(
    assets_folder_path: str,
    raw_access_logs_folder_path: str,
    analysis_folder_path: str,
    config_file_path: str | None,
    access_log_filter_in_path: str | None,
    data_retention_period_in_days: int | None,
    log_level: str,
) -> None:
    _configure_logging(log_level=log_level.upper())

    config = load_analyser_config(
        config_file_path=config_file_path,
        access_log_filter_in_path=access_log_filter_in_path,
        data_retention_period_in_days=data_retention_period_in_days,
    )

    pipeline = AssetAccessAnalysisPipeline(
        config=config,
        analysis_input=LocalFolderAnalysisReader(
            assets_folder_path=pathlib.Path(assets_folder_path),
            raw_access_logs_folder_path=pathlib.Path(raw_access_logs_folder_path),
            analysis_folder_path=pathlib.Path(analysis_folder_path),
            config=config,
        ),
        analysis_output=LocalFolderAnalysisWriter(analysis_folder_path=pathlib.Path(analysis_folder_path)),
    )
    pipeline.run()

    return None
