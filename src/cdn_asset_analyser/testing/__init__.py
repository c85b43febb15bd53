from ._helpers import make_example_access_log_line

__all__ = ["make_example_access_log_line"]
