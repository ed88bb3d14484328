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

"""Shapes of the Cloud Trace v2 records built by the exporter.

Records are plain dicts keyed with the API's field names so they can be
handed to a JSON or protobuf encoder as they are.
"""

from enum import IntEnum
from typing import Dict, List, TypedDict


class Code(IntEnum):
    """``google.rpc.Code``"""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


class SpanKind(IntEnum):
    SPAN_KIND_UNSPECIFIED = 0
    INTERNAL = 1
    SERVER = 2
    CLIENT = 3
    PRODUCER = 4
    CONSUMER = 5


class LinkType(IntEnum):
    UNSPECIFIED = 0
    CHILD_LINKED_SPAN = 1
    PARENT_LINKED_SPAN = 2


class TruncatableString(TypedDict):
    value: str


class Timestamp(TypedDict):
    seconds: int
    nanos: int


class AttributeValue(TypedDict, total=False):
    # exactly one of these is set
    stringValue: TruncatableString
    intValue: str
    boolValue: bool


AttributeMap = Dict[str, AttributeValue]


class Attributes(TypedDict):
    attributeMap: AttributeMap
    droppedAttributesCount: int


class _StatusRequired(TypedDict):
    code: int


class Status(_StatusRequired, total=False):
    message: str


class Link(TypedDict):
    attributes: Attributes
    spanId: str
    traceId: str
    type: LinkType


class Links(TypedDict):
    link: List[Link]


class Annotation(TypedDict):
    description: TruncatableString
    attributes: Attributes


class TimeEvent(TypedDict):
    time: Timestamp
    annotation: Annotation


class TimeEvents(TypedDict):
    timeEvent: List[TimeEvent]


class BoolValue(TypedDict):
    value: bool


class _SpanRequired(TypedDict):
    name: str
    spanId: str
    displayName: TruncatableString
    startTime: Timestamp
    endTime: Timestamp
    spanKind: SpanKind
    sameProcessAsParentSpan: BoolValue
    attributes: Attributes
    links: Links
    timeEvents: TimeEvents


class Span(_SpanRequired, total=False):
    parentSpanId: str
    status: Status
