"""Wire shape of ServiceEvent payloads.

Payload shape: {"type": <event type>, **event fields}. The routing target
is transport metadata and never sent.
"""

from typing import Any

from majiang.logic.events import ServiceEvent


def service_event_payload(event: ServiceEvent) -> dict[str, Any]:
    return event.data.model_dump(mode="json")
