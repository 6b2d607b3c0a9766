from pathlib import Path


def get_resource_path(relative_path: str) -> Path:
    """
    Get absolute path to a resource shipped inside the worklog package.

    Args:
        relative_path: Path relative to the package (e.g., "resources/templates")

    Returns:
        Absolute Path object
    """
    return Path(__file__).parent.absolute() / relative_path
