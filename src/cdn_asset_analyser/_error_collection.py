import datetime
import importlib.metadata
import pathlib


def _collect_error(
    message: str, error_type: str, errors_folder_path: pathlib.Path, task_id: str | None = None
) -> None:
    """
    Helper function to collect errors in a text file for sharing and reviewing.

    Parameters
    ----------
    message : str
        The error message to be collected.
        This message is automatically padded in the file with some empty lines for readability.
    error_type : str
        The type of error message being collected.
        Added as an identifying tag on the error collection file name.
        Examples include "line" and "fetch".
    errors_folder_path : pathlib.Path
        The folder to write the error collection files to; created if it does not exist.
    task_id : str or None, optional
        A unique identifier for the task that generated the error.
        Added as an identifying tag on the error collection file name.
    """
    errors_folder_path = pathlib.Path(errors_folder_path)
    errors_folder_path.mkdir(parents=True, exist_ok=True)

    try:
        cdn_asset_analyser_version = importlib.metadata.version(distribution_name="cdn_asset_analyser")
    except importlib.metadata.PackageNotFoundError:
        cdn_asset_analyser_version = "unknown"
    date = datetime.datetime.now().strftime("%y%m%d")

    error_collection_file_name = f"v{cdn_asset_analyser_version}_{date}_{error_type}_errors"
    if task_id is not None:
        error_collection_file_name += f"_{task_id}"
    error_collection_file_name += ".txt"
    error_collection_file_path = errors_folder_path / error_collection_file_name

    padded_message = f"{message}\n\n"
    with open(file=error_collection_file_path, mode="a") as io:
        io.write(padded_message)

    return None
