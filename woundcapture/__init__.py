"""Real-time capture guidance for clinical wound photography."""

__all__ = [
    "analysis",
    "camera",
    "config",
    "detectors",
    "errors",
    "evaluation",
    "io_utils",
    "pipeline",
    "session",
    "types",
    "viz",
]
