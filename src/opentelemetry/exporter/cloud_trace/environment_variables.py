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

OTEL_EXPORTER_GCP_TRACE_PROJECT_ID = "OTEL_EXPORTER_GCP_TRACE_PROJECT_ID"
"""
.. envvar:: OTEL_EXPORTER_GCP_TRACE_PROJECT_ID

Google Cloud project the spans are written to. Used when no ``project_id``
is passed to :class:`CloudTraceSpanExporter`. Falls back to
``GOOGLE_CLOUD_PROJECT``.
"""

OTEL_EXPORTER_GCP_TRACE_RESOURCE_REGEX = (
    "OTEL_EXPORTER_GCP_TRACE_RESOURCE_REGEX"
)
"""
.. envvar:: OTEL_EXPORTER_GCP_TRACE_RESOURCE_REGEX

Regular expression matched against resource attribute keys. Matching
resource attributes are copied onto every exported span. Unset by default,
meaning no resource attributes are copied.
"""

GOOGLE_CLOUD_PROJECT = "GOOGLE_CLOUD_PROJECT"
