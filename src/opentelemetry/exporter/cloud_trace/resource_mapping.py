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
Maps OpenTelemetry resource attributes onto a Google Cloud monitored
resource (a ``type`` plus string ``labels``).

The exporter uses the result to tag spans with ``g.co/r/<type>/<label>``
attributes. Any callable with the signature of
:func:`get_monitored_resource` can be passed to the exporter instead.
"""

from typing import Callable, Dict, Mapping, NamedTuple, Tuple

from opentelemetry.semconv.resource import (
    CloudProviderValues,
    ResourceAttributes,
)
from opentelemetry.util.types import AttributeValue

GLOBAL = "global"
GCE_INSTANCE = "gce_instance"
K8S_CLUSTER = "k8s_cluster"
K8S_NODE = "k8s_node"
K8S_POD = "k8s_pod"
K8S_CONTAINER = "k8s_container"
AWS_EC2_INSTANCE = "aws_ec2_instance"

_AWS_REGION_PREFIX = "aws:"


class MonitoredResource(NamedTuple):
    type: str
    labels: Dict[str, str]


ResourceMapper = Callable[
    [Mapping[str, AttributeValue], str], MonitoredResource
]

# monitored resource type -> ((label, resource attribute), ...)
_LABEL_SOURCES: Dict[str, Tuple[Tuple[str, str], ...]] = {
    GCE_INSTANCE: (
        ("instance_id", ResourceAttributes.HOST_ID),
        ("zone", ResourceAttributes.CLOUD_AVAILABILITY_ZONE),
    ),
    K8S_CLUSTER: (
        ("location", ResourceAttributes.CLOUD_AVAILABILITY_ZONE),
        ("cluster_name", ResourceAttributes.K8S_CLUSTER_NAME),
    ),
    K8S_NODE: (
        ("location", ResourceAttributes.CLOUD_AVAILABILITY_ZONE),
        ("cluster_name", ResourceAttributes.K8S_CLUSTER_NAME),
        ("node_name", ResourceAttributes.K8S_NODE_NAME),
    ),
    K8S_POD: (
        ("location", ResourceAttributes.CLOUD_AVAILABILITY_ZONE),
        ("cluster_name", ResourceAttributes.K8S_CLUSTER_NAME),
        ("namespace_name", ResourceAttributes.K8S_NAMESPACE_NAME),
        ("pod_name", ResourceAttributes.K8S_POD_NAME),
    ),
    K8S_CONTAINER: (
        ("location", ResourceAttributes.CLOUD_AVAILABILITY_ZONE),
        ("cluster_name", ResourceAttributes.K8S_CLUSTER_NAME),
        ("namespace_name", ResourceAttributes.K8S_NAMESPACE_NAME),
        ("pod_name", ResourceAttributes.K8S_POD_NAME),
        ("container_name", ResourceAttributes.K8S_CONTAINER_NAME),
    ),
    AWS_EC2_INSTANCE: (
        ("instance_id", ResourceAttributes.HOST_ID),
        ("aws_account", ResourceAttributes.CLOUD_ACCOUNT_ID),
    ),
}


def _get_k8s_type(attributes: Mapping[str, AttributeValue]) -> str:
    if ResourceAttributes.K8S_CONTAINER_NAME in attributes:
        return K8S_CONTAINER
    if ResourceAttributes.K8S_POD_NAME in attributes:
        return K8S_POD
    if ResourceAttributes.K8S_NODE_NAME in attributes:
        return K8S_NODE
    return K8S_CLUSTER


def _get_resource_type(attributes: Mapping[str, AttributeValue]) -> str:
    cloud_provider = attributes.get(ResourceAttributes.CLOUD_PROVIDER)
    if cloud_provider == CloudProviderValues.GCP.value:
        if ResourceAttributes.K8S_CLUSTER_NAME in attributes:
            return _get_k8s_type(attributes)
        if ResourceAttributes.HOST_ID in attributes:
            return GCE_INSTANCE
    elif cloud_provider == CloudProviderValues.AWS.value:
        if ResourceAttributes.HOST_ID in attributes:
            return AWS_EC2_INSTANCE
    return GLOBAL


def _to_label_value(value: AttributeValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def get_monitored_resource(
    attributes: Mapping[str, AttributeValue], project_id: str
) -> MonitoredResource:
    """Picks the monitored resource type described by ``attributes``.

    Resources that are not recognised map to ``global``. Attributes the
    chosen type needs but the resource lacks become empty label values.
    """
    resource_type = _get_resource_type(attributes)
    labels = {"project_id": project_id}
    for label, attribute in _LABEL_SOURCES.get(resource_type, ()):
        labels[label] = _to_label_value(attributes.get(attribute, ""))
    if resource_type == AWS_EC2_INSTANCE:
        labels["region"] = _AWS_REGION_PREFIX + _to_label_value(
            attributes.get(ResourceAttributes.CLOUD_REGION, "")
        )
    return MonitoredResource(resource_type, labels)
