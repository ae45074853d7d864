"""
Warp Gate - API Data Models
Pydantic models for webhook payloads and service responses.

Webhook payloads are sent by Bamboo and Jira, which include many fields we
do not read; extra fields are allowed and missing ones are reported by the
workflow preconditions rather than by request validation.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookPayload(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class DeploymentRequest(WebhookPayload):
    """Bamboo build/deployment notification for prelive and yolo."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"planResultKey": "WL-BFT9-14", "issueKey": "CQS-21"}}
    )

    plan_result_key: Optional[str] = Field(None, alias="planResultKey", description="Bamboo plan result key")
    issue_key: Optional[str] = Field(None, alias="issueKey", description="Jira issue key")


class ValidationRequest(WebhookPayload):
    """Bamboo deployment-finished notification."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "issueKey": "CQS-21",
                "resultsUrl": "https://bamboo.example.com/deploy/viewDeploymentResult.action?deploymentResultId=67797436",
                "transitionCode": "deployedToPrelive",
            }
        }
    )

    issue_key: Optional[str] = Field(None, alias="issueKey", description="Jira issue key, defaults to the URL one")
    results_url: Optional[str] = Field(None, alias="resultsUrl", description="Bamboo deployment result URL")
    transition_code: Optional[str] = Field(
        None, alias="transitionCode", description="Stage code to run on success"
    )


class JiraProject(WebhookPayload):
    key: Optional[str] = None


class JiraIssueFields(WebhookPayload):
    project: Optional[JiraProject] = None
    labels: list = Field(default_factory=list)


class JiraIssue(WebhookPayload):
    key: Optional[str] = None
    fields: Optional[JiraIssueFields] = None


class JiraWebhook(WebhookPayload):
    """Jira issue event; only the issue part is read."""

    issue: Optional[JiraIssue] = None

    @property
    def issue_key(self) -> Optional[str]:
        return self.issue.key if self.issue else None

    @property
    def project_key(self) -> Optional[str]:
        if self.issue and self.issue.fields and self.issue.fields.project:
            return self.issue.fields.project.key
        return None


class OkResponse(BaseModel):
    status: Literal["ok"] = "ok"


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    code: int = Field(400, description="HTTP status code")
    message: str = Field(description="Why the request was rejected")


class StatusResponse(BaseModel):
    """Loaded properties and configuration, with secrets masked."""

    status: Literal["ok"] = "ok"
    properties: Dict[str, Any]
    config: Dict[str, Any]


class HealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"] = Field(description="Overall service health")
    engine_ready: bool = Field(description="Whether the workflow engine is initialised")
    uptime_seconds: float = Field(description="Service uptime in seconds")
    pending_tasks: int = Field(0, description="Background workflows not yet finished")
