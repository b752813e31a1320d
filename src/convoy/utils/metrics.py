"""Prometheus metrics for deployment runs."""

from pathlib import Path

from prometheus_client import REGISTRY, Counter, Histogram, write_to_textfile

CONVENTION_DURATION = Histogram(
    "convoy_convention_duration_seconds",
    "Time spent installing a convention",
    ["convention"],
)

STACK_OPERATIONS = Counter(
    "convoy_stack_operations_total",
    "CloudFormation stack operations issued",
    ["operation"],
)

OBJECT_UPLOADS = Counter(
    "convoy_object_uploads_total",
    "Objects processed by the S3 uploader",
    ["outcome"],
)


def write_metrics(path: str) -> None:
    """Write the default registry to a node-exporter style text file."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    write_to_textfile(path, REGISTRY)
