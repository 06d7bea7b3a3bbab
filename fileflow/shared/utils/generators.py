"""ID and logical storage path generators."""

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def file_path_for(sanitized_name: str) -> str:
    """Logical path of a file record: ``/<name>``."""
    return f"/{sanitized_name}"


def version_storage_path(file_id: str, version_number: int) -> str:
    """Logical blob path of one version: ``/<file_id>/<version_number>``."""
    return f"/{file_id}/{version_number}"
