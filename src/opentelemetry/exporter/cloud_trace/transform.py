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
Conversion of finished OpenTelemetry spans into Cloud Trace v2 span records.

Usage
-----

.. code:: python

    from opentelemetry.exporter.cloud_trace.transform import (
        get_readable_span_transformer,
    )

    transform = get_readable_span_transformer("my-project", r"^service\\.")
    record = transform(readable_span)

The conversion never fails because of attribute content: values that Cloud
Trace cannot represent are dropped and counted in
``droppedAttributesCount``.
"""

import logging
import math
import re
from typing import Mapping, Optional, Pattern, Tuple, Union

from opentelemetry.exporter.cloud_trace._types import (
    AttributeMap,
    Attributes,
    AttributeValue,
    Code,
    Link,
    LinkType,
    Span,
    SpanKind,
    Status,
    TimeEvent,
    Timestamp,
    TruncatableString,
)
from opentelemetry.exporter.cloud_trace.resource_mapping import (
    GLOBAL,
    ResourceMapper,
    get_monitored_resource,
)
from opentelemetry.exporter.cloud_trace.version import __version__
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import Event, ReadableSpan
from opentelemetry.sdk.version import __version__ as sdk_version
from opentelemetry.semconv.trace import SpanAttributes
from opentelemetry.trace import Link as OTelLink
from opentelemetry.trace import SpanKind as OTelSpanKind
from opentelemetry.trace import format_span_id, format_trace_id
from opentelemetry.trace.status import StatusCode
from opentelemetry.util import types

logger = logging.getLogger(__name__)

AGENT_LABEL_KEY = "g.co/agent"
AGENT_LABEL_VALUE = (
    f"opentelemetry-python {sdk_version}; "
    f"google-cloud-trace-exporter {__version__}"
)

HTTP_ATTRIBUTE_MAPPING = {
    SpanAttributes.HTTP_METHOD: "/http/method",
    SpanAttributes.HTTP_URL: "/http/url",
    SpanAttributes.HTTP_HOST: "/http/host",
    SpanAttributes.HTTP_SCHEME: "/http/client_protocol",
    SpanAttributes.HTTP_STATUS_CODE: "/http/status_code",
    SpanAttributes.HTTP_USER_AGENT: "/http/user_agent",
    SpanAttributes.HTTP_REQUEST_CONTENT_LENGTH: "/http/request/size",
    SpanAttributes.HTTP_RESPONSE_CONTENT_LENGTH: "/http/response/size",
    SpanAttributes.HTTP_ROUTE: "/http/route",
}

_KIND_MAPPING = {
    OTelSpanKind.INTERNAL: SpanKind.INTERNAL,
    OTelSpanKind.SERVER: SpanKind.SERVER,
    OTelSpanKind.CLIENT: SpanKind.CLIENT,
    OTelSpanKind.PRODUCER: SpanKind.PRODUCER,
    OTelSpanKind.CONSUMER: SpanKind.CONSUMER,
}

_RESOURCE_LABEL_PREFIX = "g.co/r/"
_NANOS_PER_SECOND = 10**9


class CloudTraceTransformer:
    """Converts :class:`ReadableSpan` objects into Cloud Trace span records.

    The configuration is fixed at construction, so one transformer can be
    shared by every export call.

    Args:
        project_id: project the spans belong to.
        resource_filter: resource attributes whose key matches this pattern
            are copied onto each span.
        resource_mapper: maps resource attributes and the project id onto a
            monitored resource, defaults to
            :func:`~.resource_mapping.get_monitored_resource`.
    """

    __slots__ = ("_project_id", "_resource_filter", "_resource_mapper")

    def __init__(
        self,
        project_id: str,
        resource_filter: Optional[Pattern] = None,
        resource_mapper: ResourceMapper = get_monitored_resource,
    ):
        self._project_id = project_id
        self._resource_filter = resource_filter
        self._resource_mapper = resource_mapper

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def resource_filter(self) -> Optional[Pattern]:
        return self._resource_filter

    def transform(self, span: ReadableSpan) -> Span:
        span_context = span.get_span_context()
        trace_id = format_trace_id(span_context.trace_id)
        span_id = format_span_id(span_context.span_id)

        attributes = _merge_attributes(
            _transform_attributes(
                {**(span.attributes or {}), AGENT_LABEL_KEY: AGENT_LABEL_VALUE}
            ),
            _transform_resource_to_attributes(
                span.resource,
                self._project_id,
                self._resource_filter,
                self._resource_mapper,
            ),
        )

        out: Span = {
            "name": (
                f"projects/{self._project_id}/traces/{trace_id}"
                f"/spans/{span_id}"
            ),
            "spanId": span_id,
            "displayName": _to_truncatable_string(span.name),
            "startTime": _transform_time(span.start_time),
            "endTime": _transform_time(span.end_time),
            "spanKind": _transform_kind(span.kind),
            "sameProcessAsParentSpan": {"value": not span_context.is_remote},
            "attributes": attributes,
            "links": {"link": [_transform_link(link) for link in span.links]},
            "timeEvents": {
                "timeEvent": [_transform_event(event) for event in span.events]
            },
        }

        status = _transform_status(span.status)
        if status is not None:
            out["status"] = status

        if span.parent is not None:
            out["parentSpanId"] = format_span_id(span.parent.span_id)

        return out

    __call__ = transform


def get_readable_span_transformer(
    project_id: str,
    resource_filter: Union[Pattern, str, None] = None,
) -> CloudTraceTransformer:
    """Returns a transformer bound to ``project_id`` and ``resource_filter``.

    ``resource_filter`` may be given as a pattern string, it is compiled
    here.
    """
    if isinstance(resource_filter, str):
        resource_filter = re.compile(resource_filter)
    return CloudTraceTransformer(project_id, resource_filter)


def _transform_status(status) -> Optional[Status]:
    if status.status_code is StatusCode.UNSET:
        return None
    if status.status_code is StatusCode.OK:
        return {"code": Code.OK}
    if status.status_code is not StatusCode.ERROR:
        logger.debug(
            "Unknown status code %s, exporting as UNKNOWN", status.status_code
        )
    out: Status = {"code": Code.UNKNOWN}
    if status.description is not None:
        out["message"] = status.description
    return out


def _transform_kind(kind) -> SpanKind:
    try:
        return _KIND_MAPPING[kind]
    except (KeyError, TypeError):
        logger.debug(
            "Unknown span kind %s, exporting as SPAN_KIND_UNSPECIFIED", kind
        )
        return SpanKind.SPAN_KIND_UNSPECIFIED


def _transform_time(time: Union[int, Tuple[int, int]]) -> Timestamp:
    """Accepts nanoseconds since the epoch or a ``(seconds, nanos)`` pair."""
    if isinstance(time, tuple):
        seconds, nanos = time
    else:
        seconds, nanos = divmod(time, _NANOS_PER_SECOND)
    return {"seconds": seconds, "nanos": nanos}


def _to_truncatable_string(value: str) -> TruncatableString:
    return {"value": value}


def _transform_link(link: OTelLink) -> Link:
    return {
        "attributes": _transform_attributes(link.attributes or {}),
        "spanId": format_span_id(link.context.span_id),
        "traceId": format_trace_id(link.context.trace_id),
        "type": LinkType.UNSPECIFIED,
    }


def _transform_event(event: Event) -> TimeEvent:
    return {
        "time": _transform_time(event.timestamp),
        "annotation": {
            "description": _to_truncatable_string(event.name),
            "attributes": _transform_attributes(event.attributes or {}),
        },
    }


def _transform_attributes(attributes: types.Attributes) -> Attributes:
    return _attributes_to_cloud_trace_attributes(
        _transform_attribute_names(attributes)
    )


def _transform_attribute_names(
    attributes: Mapping[str, object],
) -> Mapping[str, object]:
    # a renamed key overwrites an earlier value stored under the new name
    out = {}
    for key, value in attributes.items():
        out[HTTP_ATTRIBUTE_MAPPING.get(key, key)] = value
    return out


def _attributes_to_cloud_trace_attributes(
    attributes: Mapping[str, object],
) -> Attributes:
    attribute_map = _transform_attribute_values(attributes)
    return {
        "attributeMap": attribute_map,
        "droppedAttributesCount": len(attributes) - len(attribute_map),
    }


def _transform_attribute_values(
    attributes: Mapping[str, object],
) -> AttributeMap:
    out: AttributeMap = {}
    for key, value in attributes.items():
        attribute_value = _value_to_attribute_value(value)
        if attribute_value is not None:
            out[key] = attribute_value
    return out


def _value_to_attribute_value(value: object) -> Optional[AttributeValue]:
    # bool first, it is a subclass of int
    if isinstance(value, bool):
        return {"boolValue": value}
    if isinstance(value, (int, float)):
        return {"intValue": _round_to_int_string(value)}
    if isinstance(value, str):
        return {"stringValue": _to_truncatable_string(value)}
    return None


def _round_to_int_string(value: Union[int, float]) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    # half up, so -2.5 becomes -2 and 2.5 becomes 3; value - floor(value)
    # is exact where value + 0.5 is not
    rounded = math.floor(value)
    if value - rounded >= 0.5:
        rounded += 1
    return str(rounded)


def _merge_attributes(*attribute_list: Attributes) -> Attributes:
    attributes_out: Attributes = {
        "attributeMap": {},
        "droppedAttributesCount": 0,
    }
    for attributes in attribute_list:
        attributes_out["attributeMap"].update(attributes["attributeMap"])
        attributes_out["droppedAttributesCount"] += attributes[
            "droppedAttributesCount"
        ]
    return attributes_out


def _transform_resource_to_attributes(
    resource: Optional[Resource],
    project_id: str,
    resource_filter: Optional[Pattern] = None,
    resource_mapper: ResourceMapper = get_monitored_resource,
) -> Attributes:
    resource_attributes = resource.attributes if resource is not None else {}
    monitored_resource = resource_mapper(resource_attributes, project_id)
    attributes = {}

    if resource_filter is not None:
        for key, value in resource_attributes.items():
            if resource_filter.search(key):
                attributes[key] = value

    # global is the default, it needs no labels
    if monitored_resource.type != GLOBAL:
        for label_key, label_value in monitored_resource.labels.items():
            key = (
                f"{_RESOURCE_LABEL_PREFIX}"
                f"{monitored_resource.type}/{label_key}"
            )
            attributes[key] = label_value
    return _attributes_to_cloud_trace_attributes(attributes)
