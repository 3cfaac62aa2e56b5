from .media_dump import DumpResult, MediaDumpError, MediaDumpOrchestrator, prepare_output_directory

__all__ = [
    "DumpResult",
    "MediaDumpError",
    "MediaDumpOrchestrator",
    "prepare_output_directory",
]
