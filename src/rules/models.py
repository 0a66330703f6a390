from pydantic import BaseModel, ConfigDict, Field


class _RulesModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ProjectRules(_RulesModel):
    slug: str
    rules_version: str


class RateLimitWindow(_RulesModel):
    window_seconds: int = Field(gt=0)
    max_requests: int = Field(ge=0)


class RateLimitRules(_RulesModel):
    enabled: bool = True
    mutations: RateLimitWindow


class UploadRule(_RulesModel):
    max_upload_bytes: int = Field(gt=0)
    allowlist_mime_types: list[str]
    allowlist_extensions: list[str]


class UploadsRules(_RulesModel):
    icon: UploadRule
    original_icon: UploadRule


class DatabaseRules(_RulesModel):
    busy_timeout_seconds: float = Field(default=5.0, gt=0)


class OpsRules(_RulesModel):
    data_dir_required: bool = True
    required_env: list[str] = Field(default_factory=list)


class Rules(_RulesModel):
    project: ProjectRules
    rate_limit: RateLimitRules
    uploads: UploadsRules
    database: DatabaseRules = Field(default_factory=DatabaseRules)
    ops: OpsRules = Field(default_factory=OpsRules)
