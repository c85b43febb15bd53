"""Entry point for running the analysis as a scheduled function invocation."""

import logging
import os

from ._config import load_analyser_config
from ._pipeline import AssetAccessAnalysisPipeline
from ._s3_analysis_store import S3AnalysisReader, S3AnalysisWriter, create_s3_client

logger = logging.getLogger(__name__)

CONFIG_FILE_PATH_ENVIRONMENT_VARIABLE = "CDN_ASSET_ANALYSER_CONFIG"


def lambda_handler(event: dict, context=None, s3_client=None) -> str:
    """
    Run one analysis of the S3 buckets.

    The configuration is read from the YAML file named by the `CDN_ASSET_ANALYSER_CONFIG` environment variable,
    if set, with any settings under `event["properties"]` taking precedence.
    """
    properties = (event or dict()).get("properties", dict())
    config = load_analyser_config(config_file_path=os.environ.get(CONFIG_FILE_PATH_ENVIRONMENT_VARIABLE), **properties)
    if config.s3 is None:
        raise ValueError("The configuration has no `s3` section naming the buckets to analyse.")

    s3_client = s3_client or create_s3_client(s3_store_config=config.s3)
    pipeline = AssetAccessAnalysisPipeline(
        config=config,
        analysis_input=S3AnalysisReader(s3_client=s3_client, config=config),
        analysis_output=S3AnalysisWriter(s3_client=s3_client, bucket=config.s3.cdn_analysis_bucket),
    )
    analysed = pipeline.run()

    if not analysed:
        return "The CDN analysis has been triggered; no assets or asset requests were found."
    return "The CDN analysis has been triggered."
