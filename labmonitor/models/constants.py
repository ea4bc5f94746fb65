"""
String constants for the status-like columns.

Columns store plain strings; these classes name the allowed values.
"""


class TaskStatus:
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"

    ALL = [PENDING, IN_PROGRESS, COMPLETED, BLOCKED]


class TaskPriority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    ALL = [LOW, MEDIUM, HIGH, URGENT]


class ActivityKind:
    STATUS = "status"
    PROGRESS = "progress"
    COMMENT = "comment"

    ALL = [STATUS, PROGRESS, COMMENT]


class ReviewAction:
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"

    ALL = [SUBMIT, APPROVE, REJECT]


class ScheduleStatus:
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL = [DRAFT, SUBMITTED, APPROVED, REJECTED]


class AlertType:
    TASK_OVERDUE = "task_overdue"
    STUDENT_INACTIVE = "student_inactive"
    PROJECT_RISK = "project_risk"
    VELOCITY_DROP = "velocity_drop"
    TASK_BLOCKED = "task_blocked"

    ALL = [TASK_OVERDUE, STUDENT_INACTIVE, PROJECT_RISK, VELOCITY_DROP, TASK_BLOCKED]


class AlertSeverity:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    ALL = [LOW, MEDIUM, HIGH, CRITICAL]
