"""File use cases."""

from fileflow.application.use_cases.files.file_details import FileDetailsService

__all__ = ["FileDetailsService"]
