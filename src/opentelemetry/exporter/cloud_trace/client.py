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

from __future__ import annotations

import abc
from typing import Sequence

from opentelemetry.exporter.cloud_trace._types import Span


class TraceClient(abc.ABC):
    """Sends span records to Cloud Trace.

    Implementations own the transport, authentication and retries, and
    raise when the spans could not be written.
    """

    @abc.abstractmethod
    def batch_write_spans(self, *, name: str, spans: Sequence[Span]) -> None:
        pass
