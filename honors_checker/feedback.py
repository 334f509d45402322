"""
Feedback relay: turns a feedback form submission into a GitHub issue.

Settings come from the environment (or .env):
GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPO, GITHUB_API_URL, FEEDBACK_TIMEOUT.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

SUBJECT_MAX_LENGTH = 100
FEEDBACK_TYPE_TO_LABEL = {
    "bug": "bug",
    "feature": "enhancement",
    "general": "question",
}
DEFAULT_LABEL = "question"
FEEDBACK_LABEL = "user-feedback"
USER_AGENT = "APC-Honors-Checker-Feedback-Bot"


class FeedbackSettings(BaseSettings):
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_OWNER: str = "jpcsapc"
    GITHUB_REPO: str = "APC-Honors-Checker"
    GITHUB_API_URL: str = "https://api.github.com"
    FEEDBACK_TIMEOUT: float = 10.0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class FeedbackError(Exception):
    pass


@dataclass
class FeedbackRequest:
    feedback_type: str
    subject: str
    message: str
    contact_info: Optional[str] = None
    consent: bool = False
    user_context: Dict[str, str] = field(default_factory=dict)


def validate_feedback(req: FeedbackRequest) -> None:
    if not req.feedback_type or not (req.subject or "").strip() or not (req.message or "").strip():
        raise FeedbackError("Missing required fields")
    if req.contact_info and not req.consent:
        raise FeedbackError("Consent required when providing contact information")


def build_issue(req: FeedbackRequest) -> dict:
    subject = req.subject.strip()[:SUBJECT_MAX_LENGTH]
    message = req.message.strip()
    ctx = req.user_context

    lines = [
        message,
        "",
        "---",
        "",
        "### System Information",
        f"- **Browser:** {ctx.get('browser', 'unknown')}",
        f"- **OS:** {ctx.get('os', 'unknown')}",
        f"- **Screen Resolution:** {ctx.get('screenResolution', 'unknown')}",
        f"- **Page URL:** {ctx.get('currentUrl', 'unknown')}",
        f"- **Timestamp:** {ctx.get('timestamp', 'unknown')}",
        "",
    ]
    if req.contact_info:
        lines += ["### Contact Information", req.contact_info.strip(), ""]
    lines += ["---", "*This issue was automatically created via the feedback form.*"]

    label = FEEDBACK_TYPE_TO_LABEL.get(req.feedback_type, DEFAULT_LABEL)
    return {
        "title": f"[Feedback] {subject}",
        "body": "\n".join(lines),
        "labels": [label, FEEDBACK_LABEL],
    }


def submit_feedback(
    req: FeedbackRequest,
    settings: Optional[FeedbackSettings] = None,
    client: Optional[httpx.Client] = None,
) -> dict:
    """
    Validate and file the feedback as an issue.

    GitHub error details are logged but never returned to the caller.
    """
    validate_feedback(req)
    settings = settings or FeedbackSettings()

    if not settings.GITHUB_TOKEN:
        logger.error("GITHUB_TOKEN not configured")
        raise FeedbackError("Server configuration error: GitHub token not set")

    url = f"{settings.GITHUB_API_URL.rstrip('/')}/repos/{settings.GITHUB_OWNER}/{settings.GITHUB_REPO}/issues"
    headers = {
        "Authorization": f"Bearer {settings.GITHUB_TOKEN}",
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": USER_AGENT,
    }
    payload = build_issue(req)

    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=settings.FEEDBACK_TIMEOUT)
    try:
        r = client.post(url, json=payload, headers=headers)
    except httpx.HTTPError as e:
        logger.error("Feedback submission failed: %s", e)
        raise FeedbackError("An unexpected error occurred while processing your feedback") from e
    finally:
        if owns_client:
            client.close()

    if r.is_error:
        logger.error("GitHub API error %s: %s", r.status_code, r.text[:500])
        raise FeedbackError("Failed to create issue in tracking system")

    issue = r.json()
    return {
        "success": True,
        "issueNumber": issue.get("number"),
        "issueUrl": issue.get("html_url"),
        "message": "Feedback submitted successfully",
    }
