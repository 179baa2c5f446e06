from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GetDashboardQuery:
    tenant_id: str
    flow_type: str = "pendencia-periodica"

@dataclass(frozen=True)
class ListNotificationLogsQuery:
    tenant_id: str
    limit: int = 50
    flow_type: str | None = None

@dataclass(frozen=True)
class ListTemplatesQuery:
    tenant_id: str
    channel: str | None = None

@dataclass(frozen=True)
class GetDefaultTemplateQuery:
    tenant_id: str
    channel: str
