"""
Crisis Notification Message

Content of an outbound crisis e-mail or SMS.

SECURITY: Notifications leave the platform. They carry only the
first 8 characters of the student id, never names or message
text; staff open the dashboard for details.
"""

from dataclasses import dataclass
from html import escape
from typing import Optional
from uuid import UUID

from unmute.domain.enums.risk_stage import RiskLevel, Stage


@dataclass(frozen=True)
class CrisisNotification:
    """
    A crisis notification for staff.

    Attributes:
        risk_level: Student's current risk level
        stage: Student's current crisis stage
        student_user_id: Student concerned
        action: Response action taken, if any
        details: Free-text details written by staff
        alert_id: Related alert event or response log id
    """

    risk_level: Optional[RiskLevel] = None
    stage: Optional[Stage] = None
    student_user_id: Optional[UUID] = None
    action: Optional[str] = None
    details: Optional[str] = None
    alert_id: Optional[UUID] = None

    @property
    def student_reference(self) -> Optional[str]:
        if self.student_user_id is None:
            return None
        return f"{str(self.student_user_id)[:8]}..."

    @property
    def action_text(self) -> Optional[str]:
        return self.action.replace("-", " ").replace("_", " ") if self.action else None

    def email_subject(self) -> str:
        subject = "URGENT: Crisis Alert"
        if self.risk_level is not None:
            subject += f" - {self.risk_level.label.upper()} Risk"
        return subject

    def email_html(self) -> str:
        rows = []
        if self.risk_level is not None:
            rows.append(f"<p><strong>Risk Level:</strong> {self.risk_level.label.upper()}</p>")
        if self.stage is not None:
            rows.append(f"<p><strong>Crisis Stage:</strong> {self.stage.label}</p>")
        if self.student_reference:
            rows.append(f"<p><strong>Student ID:</strong> {self.student_reference}</p>")
        if self.action_text:
            rows.append(f"<p><strong>Action Taken:</strong> {escape(self.action_text)}</p>")
        if self.details:
            rows.append(f"<p><strong>Details:</strong> {escape(self.details)}</p>")

        return (
            '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
            "<h1>Crisis Alert</h1>"
            "<h2>Immediate Attention Required</h2>"
            + "".join(rows)
            + "<hr />"
            "<p>This is an automated alert from UNMUTE. Please log in to the dashboard "
            "to review and take appropriate action.</p>"
            "</div>"
        )

    def sms_body(self) -> str:
        lines = ["UNMUTE CRISIS ALERT"]
        if self.risk_level is not None:
            lines.append(f"Risk: {self.risk_level.label.upper()}")
        if self.stage is not None:
            lines.append(f"Stage: {self.stage.label}")
        if self.action_text:
            lines.append(f"Action: {self.action_text}")
        lines.append("Check dashboard immediately.")
        return "\n".join(lines)
