"""Seed the database with sample templates, task patterns, roles and members."""
from __future__ import annotations

import pathlib
import sys
from dataclasses import dataclass, field

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.app import create_app
from backend.app.extensions import db
from backend.app.models.enums import StepType, TaskPriority
from backend.app.models.member import Member, Role
from backend.app.models.template import TaskPattern, WorkflowStep, WorkflowTemplate


@dataclass(frozen=True)
class SamplePattern:
    name: str
    description: str
    step_order: int
    default_assignee_role: str
    priority: TaskPriority = TaskPriority.MEDIUM


@dataclass(frozen=True)
class SampleTemplate:
    name: str
    description: str
    steps: list[WorkflowStep]
    patterns: list[SamplePattern] = field(default_factory=list)


SAMPLE_TEMPLATES = [
    SampleTemplate(
        name="Leave Request",
        description="Paid and special leave request workflow",
        steps=[
            WorkflowStep(1, "Submit request", StepType.TASK),
            WorkflowStep(2, "Manager approval", StepType.APPROVAL, ("manager",)),
            WorkflowStep(3, "HR review", StepType.APPROVAL, ("hr",)),
            WorkflowStep(4, "Done", StepType.AUTO),
        ],
        patterns=[
            SamplePattern("Fill in request form", "Complete the leave request form", 1, "applicant"),
            SamplePattern(
                "Prepare handover notes",
                "Write handover notes for the time away",
                1,
                "applicant",
                TaskPriority.HIGH,
            ),
        ],
    ),
    SampleTemplate(
        name="Purchase Request",
        description="Equipment and supplies purchase workflow",
        steps=[
            WorkflowStep(1, "Collect quotes", StepType.TASK),
            WorkflowStep(2, "Manager approval", StepType.APPROVAL, ("manager",)),
            WorkflowStep(3, "Place order", StepType.TASK),
            WorkflowStep(4, "Receive goods", StepType.TASK),
        ],
        patterns=[
            SamplePattern("Request quotes", "Ask at least two vendors for a quote", 1, "requester"),
            SamplePattern("Submit order", "Send the purchase order", 3, "purchasing", TaskPriority.HIGH),
            SamplePattern("Check delivery", "Inspect the delivered goods", 4, "requester"),
        ],
    ),
]

SAMPLE_ROLES = {
    "admin": {"member": True, "lead": True, "requester": True, "approver": True, "admin": True},
    "manager": {"member": True, "lead": True, "requester": True, "approver": True},
    "member": {"member": True, "requester": True},
}

SAMPLE_MEMBERS = [
    ("Alex Kim", "alex@example.com", "manager"),
    ("Sam Lee", "sam@example.com", "member"),
    ("Jordan Park", "jordan@example.com", "admin"),
]


def _ensure_template(sample: SampleTemplate) -> tuple[bool, bool]:
    """Create or update a template and its patterns from the sample definition."""

    created = False
    updated = False

    template = WorkflowTemplate.query.filter_by(name=sample.name).first()
    if template is None:
        template = WorkflowTemplate(name=sample.name, description=sample.description)
        template.steps = sample.steps
        db.session.add(template)
        db.session.flush()
        created = True
    elif template.steps != sorted(sample.steps, key=lambda step: step.order):
        template.steps = sample.steps
        template.description = sample.description
        updated = True

    existing = {pattern.name for pattern in template.patterns}
    for pattern in sample.patterns:
        if pattern.name in existing:
            continue
        db.session.add(
            TaskPattern(
                template_id=template.id,
                name=pattern.name,
                description=pattern.description,
                step_order=pattern.step_order,
                default_assignee_role=pattern.default_assignee_role,
                priority=pattern.priority.value,
            )
        )
        updated = updated or not created
    return created, updated


def _ensure_roles() -> int:
    created = 0
    for name, permissions in SAMPLE_ROLES.items():
        if Role.query.filter_by(name=name).first() is not None:
            continue
        role = Role(name=name)
        role.permissions = permissions
        db.session.add(role)
        created += 1
    return created


def _ensure_members() -> int:
    created = 0
    for name, email, role in SAMPLE_MEMBERS:
        if Member.query.filter_by(email=email).first() is not None:
            continue
        db.session.add(Member(name=name, email=email, role=role))
        created += 1
    return created


def main() -> None:
    app = create_app()
    with app.app_context():
        created_templates = 0
        updated_templates = 0
        for sample in SAMPLE_TEMPLATES:
            created, updated = _ensure_template(sample)
            created_templates += int(created)
            updated_templates += int(updated)

        created_roles = _ensure_roles()
        created_members = _ensure_members()
        db.session.commit()

        print(
            "Seed completed",
            f"templates created={created_templates}",
            f"templates updated={updated_templates}",
            f"roles created={created_roles}",
            f"members created={created_members}",
        )


if __name__ == "__main__":
    main()
