"""Builder for the namespace isolating an AppStack's dependents."""

from typing import Any

from appstack_operator.config import OperatorConfig
from appstack_operator.constants import CORE_V1
from appstack_operator.entities import AppStack
from appstack_operator.materializers.common import metadata


def build_namespace(
    record: AppStack, config: OperatorConfig
) -> dict[str, Any]:
    return {
        "apiVersion": CORE_V1,
        "kind": "Namespace",
        "metadata": metadata(
            record,
            record.namespace,
            labels={"owned_by": record.name},
            annotations={"owned_by": record.name},
        ),
    }
