"""Diagnostics response models.

Serialized with camelCase keys, which is what the frontend reads.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DatabaseStatus(CamelModel):
    status: str
    name: str


class MemoryUsage(CamelModel):
    rss: int = Field(description="Resident set size in bytes")
    vms: int = Field(description="Virtual memory size in bytes")
    percent: float


class CorsInfo(CamelModel):
    enabled: bool = True
    allowed_origins: list[str]


class HealthReport(CamelModel):
    status: str = "OK"
    message: str = "server is running"
    database: DatabaseStatus
    environment: str
    timestamp: str
    uptime: float
    memory: MemoryUsage
    cors: CorsInfo


class EndpointDirectory(CamelModel):
    reservations: str = "/api/reservations"
    tables: str = "/api/tables"
    notifications: str = "/api/notifications"
    health: str = "/health"


class CorsTestReport(CamelModel):
    message: str = "CORS is working"
    allowed_origins: list[str]
    current_origin: str
    timestamp: str
    endpoints: EndpointDirectory = Field(default_factory=EndpointDirectory)


class ApiDirectory(CamelModel):
    reservations: str = "/api/reservations"
    tables: str = "/api/tables"
    notifications: str = "/api/notifications"


class Documentation(CamelModel):
    health: str = "/health"
    cors_test: str = "/cors-test"
    api: ApiDirectory = Field(default_factory=ApiDirectory)


class Deployment(CamelModel):
    frontend: str
    backend: str


class ServiceDescriptor(CamelModel):
    message: str
    version: str
    status: str = "active"
    documentation: Documentation = Field(default_factory=Documentation)
    deployment: Deployment


class NotFoundReport(CamelModel):
    message: str
    path: str
    available_endpoints: dict[str, str]
