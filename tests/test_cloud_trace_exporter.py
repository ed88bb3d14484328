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

import unittest
from os import environ
from unittest import mock

from opentelemetry.exporter.cloud_trace import (
    CloudTraceSpanExporter,
    TraceClient,
)
from opentelemetry.exporter.cloud_trace.environment_variables import (
    GOOGLE_CLOUD_PROJECT,
    OTEL_EXPORTER_GCP_TRACE_PROJECT_ID,
    OTEL_EXPORTER_GCP_TRACE_RESOURCE_REGEX,
)
from opentelemetry.exporter.cloud_trace.resource_mapping import (
    MonitoredResource,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    SimpleSpanProcessor,
    SpanExportResult,
)
from opentelemetry.trace import SpanContext


def _make_span(name, span_id, resource=None):
    return ReadableSpan(
        name=name,
        context=SpanContext(trace_id=1, span_id=span_id, is_remote=False),
        resource=resource or Resource({}),
        start_time=1_000_000_001,
        end_time=2_000_000_002,
    )


class TestValidation(unittest.TestCase):
    def setUp(self):
        self.client = mock.Mock(spec=TraceClient)

    def test_valid_params(self):
        exporter = CloudTraceSpanExporter(
            project_id="project-id", client=self.client
        )
        self.assertEqual(exporter.project_id, "project-id")

    @mock.patch.dict(environ, {}, clear=True)
    def test_invalid_no_project_id(self):
        with self.assertRaises(ValueError):
            CloudTraceSpanExporter(client=self.client)

    def test_invalid_no_client(self):
        with self.assertRaises(ValueError):
            CloudTraceSpanExporter(project_id="project-id")

    def test_invalid_resource_regex(self):
        with self.assertRaises(ValueError):
            CloudTraceSpanExporter(
                project_id="project-id",
                client=self.client,
                resource_regex="(unclosed",
            )

    @mock.patch.dict(
        environ,
        {
            OTEL_EXPORTER_GCP_TRACE_PROJECT_ID: "env-project",
            GOOGLE_CLOUD_PROJECT: "fallback-project",
        },
    )
    def test_project_id_from_env(self):
        exporter = CloudTraceSpanExporter(client=self.client)
        self.assertEqual(exporter.project_id, "env-project")

    @mock.patch.dict(
        environ, {GOOGLE_CLOUD_PROJECT: "fallback-project"}, clear=True
    )
    def test_project_id_from_google_cloud_project(self):
        exporter = CloudTraceSpanExporter(client=self.client)
        self.assertEqual(exporter.project_id, "fallback-project")

    @mock.patch.dict(
        environ, {OTEL_EXPORTER_GCP_TRACE_PROJECT_ID: "env-project"}
    )
    def test_explicit_project_id_wins(self):
        exporter = CloudTraceSpanExporter(
            project_id="arg-project", client=self.client
        )
        self.assertEqual(exporter.project_id, "arg-project")

    @mock.patch.dict(
        environ, {OTEL_EXPORTER_GCP_TRACE_RESOURCE_REGEX: r"^custom\."}
    )
    def test_resource_regex_from_env(self):
        exporter = CloudTraceSpanExporter(
            project_id="project-id", client=self.client
        )
        resource = Resource({"custom.foo": "bar", "other": "baz"})

        exporter.export([_make_span("span", 1, resource)])

        spans = self.client.batch_write_spans.call_args.kwargs["spans"]
        attribute_map = spans[0]["attributes"]["attributeMap"]
        self.assertIn("custom.foo", attribute_map)
        self.assertNotIn("other", attribute_map)


class TestExport(unittest.TestCase):
    def setUp(self):
        self.client = mock.Mock(spec=TraceClient)
        self.exporter = CloudTraceSpanExporter(
            project_id="project-id", client=self.client
        )

    def test_export(self):
        result = self.exporter.export(
            [_make_span("first", 1), _make_span("second", 2)]
        )

        self.assertEqual(result, SpanExportResult.SUCCESS)
        self.client.batch_write_spans.assert_called_once()
        kwargs = self.client.batch_write_spans.call_args.kwargs
        self.assertEqual(kwargs["name"], "projects/project-id")
        self.assertEqual(
            [span["displayName"]["value"] for span in kwargs["spans"]],
            ["first", "second"],
        )
        self.assertEqual(
            kwargs["spans"][0]["name"],
            "projects/project-id/traces/00000000000000000000000000000001"
            "/spans/0000000000000001",
        )
        self.assertEqual(
            kwargs["spans"][0]["startTime"], {"seconds": 1, "nanos": 1}
        )

    def test_export_empty_batch(self):
        self.assertEqual(self.exporter.export([]), SpanExportResult.SUCCESS)
        self.client.batch_write_spans.assert_not_called()

    def test_export_client_failure(self):
        self.client.batch_write_spans.side_effect = RuntimeError("unavailable")

        with self.assertLogs(
            "opentelemetry.exporter.cloud_trace", level="ERROR"
        ) as logs:
            result = self.exporter.export([_make_span("span", 1)])

        self.assertEqual(result, SpanExportResult.FAILURE)
        self.assertIn("unavailable", logs.output[0])

    def test_export_resource_mapper_failure(self):
        mapper = mock.Mock(side_effect=RuntimeError("no metadata"))
        exporter = CloudTraceSpanExporter(
            project_id="project-id", client=self.client, resource_mapper=mapper
        )

        with self.assertLogs(
            "opentelemetry.exporter.cloud_trace", level="ERROR"
        ):
            result = exporter.export([_make_span("span", 1)])

        self.assertEqual(result, SpanExportResult.FAILURE)
        self.client.batch_write_spans.assert_not_called()

    def test_custom_resource_mapper(self):
        mapper = mock.Mock(
            return_value=MonitoredResource("generic_node", {"node_id": "n1"})
        )
        exporter = CloudTraceSpanExporter(
            project_id="project-id", client=self.client, resource_mapper=mapper
        )

        exporter.export([_make_span("span", 1)])

        spans = self.client.batch_write_spans.call_args.kwargs["spans"]
        attribute_map = spans[0]["attributes"]["attributeMap"]
        self.assertEqual(
            attribute_map["g.co/r/generic_node/node_id"],
            {"stringValue": {"value": "n1"}},
        )

    def test_export_after_shutdown(self):
        self.exporter.shutdown()

        with self.assertLogs(
            "opentelemetry.exporter.cloud_trace", level="WARNING"
        ):
            result = self.exporter.export([_make_span("span", 1)])

        self.assertEqual(result, SpanExportResult.FAILURE)
        self.client.batch_write_spans.assert_not_called()

    def test_force_flush(self):
        self.assertTrue(self.exporter.force_flush())

    def test_with_tracer_provider(self):
        provider = TracerProvider(
            resource=Resource(
                {
                    "cloud.provider": "gcp",
                    "host.id": "instance-1",
                    "cloud.availability_zone": "us-west1-a",
                }
            )
        )
        provider.add_span_processor(SimpleSpanProcessor(self.exporter))
        tracer = provider.get_tracer(__name__)

        with tracer.start_as_current_span("parent"):
            with tracer.start_as_current_span(
                "child", attributes={"http.method": "GET"}
            ):
                pass

        self.assertEqual(self.client.batch_write_spans.call_count, 2)
        child, parent = (
            call.kwargs["spans"][0]
            for call in self.client.batch_write_spans.call_args_list
        )
        self.assertEqual(child["parentSpanId"], parent["spanId"])
        self.assertNotIn("parentSpanId", parent)
        self.assertEqual(
            child["attributes"]["attributeMap"]["/http/method"],
            {"stringValue": {"value": "GET"}},
        )
        self.assertEqual(
            child["attributes"]["attributeMap"][
                "g.co/r/gce_instance/instance_id"
            ],
            {"stringValue": {"value": "instance-1"}},
        )
        self.assertEqual(child["sameProcessAsParentSpan"], {"value": True})
