from pydantic import BaseModel, ConfigDict, Field
from typing import List


class ServiceDiscoveryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    modules_v1: str = Field(alias="modules.v1")


class ModuleVersion(BaseModel):
    version: str


class ModuleVersions(BaseModel):
    versions: List[ModuleVersion]


class ModuleVersionsResponse(BaseModel):
    modules: List[ModuleVersions]

    @classmethod
    def from_versions(cls, versions: List[str]) -> 'ModuleVersionsResponse':
        return cls(modules=[ModuleVersions(versions=[ModuleVersion(version=v) for v in versions])])
