# Copyright The OpenTelemetry Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
OpenTelemetry Google Cloud Trace Exporter
-----------------------------------------

This package converts finished OpenTelemetry spans into Cloud Trace v2 span
records and hands them to a :class:`~.client.TraceClient`, which owns the
transport to the Cloud Trace API.

Span attributes, link and event attributes are converted to the values
Cloud Trace supports (strings, integers and booleans), well-known HTTP
attributes are renamed to their ``/http/*`` labels, and the span resource
is recorded as ``g.co/r/<monitored resource type>/<label>`` attributes.

Usage
-----

.. code:: python

    from opentelemetry import trace
    from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    exporter = CloudTraceSpanExporter(
        project_id="my-project",
        client=my_trace_client,
        resource_regex=r"^service\\.",
    )
    provider = TracerProvider()
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

The project and the resource pattern can also be set with the
:envvar:`OTEL_EXPORTER_GCP_TRACE_PROJECT_ID` and
:envvar:`OTEL_EXPORTER_GCP_TRACE_RESOURCE_REGEX` environment variables.
"""

import logging
import re
from os import environ
from typing import Optional, Sequence

from opentelemetry.exporter.cloud_trace.client import TraceClient
from opentelemetry.exporter.cloud_trace.environment_variables import (
    GOOGLE_CLOUD_PROJECT,
    OTEL_EXPORTER_GCP_TRACE_PROJECT_ID,
    OTEL_EXPORTER_GCP_TRACE_RESOURCE_REGEX,
)
from opentelemetry.exporter.cloud_trace.resource_mapping import (
    ResourceMapper,
    get_monitored_resource,
)
from opentelemetry.exporter.cloud_trace.transform import (
    CloudTraceTransformer,
    get_readable_span_transformer,
)
from opentelemetry.exporter.cloud_trace.version import __version__
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

logger = logging.getLogger(__name__)

__all__ = [
    "CloudTraceSpanExporter",
    "CloudTraceTransformer",
    "TraceClient",
    "get_readable_span_transformer",
    "__version__",
]


class CloudTraceSpanExporter(SpanExporter):
    """Cloud Trace span exporter for OpenTelemetry.

    Args:
        project_id: project to write spans to, defaults to
            ``OTEL_EXPORTER_GCP_TRACE_PROJECT_ID`` then
            ``GOOGLE_CLOUD_PROJECT`` (Required)
        client: sends the converted spans to Cloud Trace (Required)
        resource_regex: resource attributes whose key matches are added to
            every span, defaults to ``OTEL_EXPORTER_GCP_TRACE_RESOURCE_REGEX``
            (Optional)
        resource_mapper: derives the monitored resource from the span
            resource (Optional)
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        client: Optional[TraceClient] = None,
        resource_regex: Optional[str] = None,
        resource_mapper: Optional[ResourceMapper] = None,
    ):
        if project_id is None:
            project_id = environ.get(
                OTEL_EXPORTER_GCP_TRACE_PROJECT_ID
            ) or environ.get(GOOGLE_CLOUD_PROJECT)
        if not project_id:
            raise ValueError("project_id required")
        if client is None:
            raise ValueError("client required")
        if resource_regex is None:
            resource_regex = environ.get(
                OTEL_EXPORTER_GCP_TRACE_RESOURCE_REGEX
            )

        resource_filter = None
        if resource_regex:
            try:
                resource_filter = re.compile(resource_regex)
            except re.error as err:
                raise ValueError(
                    f"invalid resource_regex {resource_regex!r}: {err}"
                ) from err

        self.project_id = project_id
        self.client = client
        self._transformer = CloudTraceTransformer(
            project_id,
            resource_filter,
            resource_mapper or get_monitored_resource,
        )
        self._shutdown = False

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        if self._shutdown:
            logger.warning("Exporter already shutdown, ignoring batch")
            return SpanExportResult.FAILURE
        if not spans:
            return SpanExportResult.SUCCESS

        try:
            cloud_trace_spans = [self._transformer(span) for span in spans]
            self.client.batch_write_spans(
                name=f"projects/{self.project_id}", spans=cloud_trace_spans
            )
        # pylint: disable=broad-except
        except Exception as err:
            logger.error(
                "Error while writing %d spans to Cloud Trace: %s",
                len(spans),
                err,
            )
            return SpanExportResult.FAILURE
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        if self._shutdown:
            logger.warning("Exporter already shutdown, ignoring call")
            return
        self._shutdown = True

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True
