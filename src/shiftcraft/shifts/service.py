from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty, require_non_negative, require_period
from ..core.constants import DEFAULT_MAX_ASSIGNMENTS
from ..core.enums import Action, AssignmentStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.lifecycles import ASSIGNMENT_LIFECYCLE, SHIFT_INSTANCE_LIFECYCLE
from ..database.transaction import TransactionManager
from ..locations.model import Location
from ..locations.repository import LocationRepository
from ..users.repository import UserRepository
from ..users.role_model import Role
from ..users.role_repository import RoleRepository
from ..users.skill_model import Skill
from ..users.skill_repository import SkillRepository
from .model import Assignment, ShiftInstance, ShiftTemplate
from .repository import AssignmentRepository, ShiftInstanceRepository, ShiftTemplateRepository

logger = logging.getLogger(__name__)


class ShiftService:
    """Use case: shift templates, dated instances and user assignments.

    Every command checks its preconditions against committed state and then
    applies a status-conditional update, so a concurrent writer that moved the
    row first surfaces as ``InvalidStateError`` instead of a silent overwrite.
    """

    def __init__(
        self,
        templates: ShiftTemplateRepository,
        instances: ShiftInstanceRepository,
        assignments: AssignmentRepository,
        locations: LocationRepository,
        roles: RoleRepository,
        skills: SkillRepository,
        users: UserRepository,
        transactions: TransactionManager,
        clock: Callable[[], datetime] = now_local,
    ):
        self._templates = templates
        self._instances = instances
        self._assignments = assignments
        self._locations = locations
        self._roles = roles
        self._skills = skills
        self._users = users
        self._tx = transactions
        self._clock = clock

    # -------- Lookups --------
    def _require_template(self, template_id: int) -> ShiftTemplate:
        template = self._templates.get_by_id(int(template_id))
        if not template:
            raise NotFoundError(f"Shift template not found with id: {template_id}")
        return template

    def _require_instance(self, instance_id: int, *, for_update: bool = False) -> ShiftInstance:
        instance = self._instances.get_by_id(int(instance_id), for_update=for_update)
        if not instance:
            raise NotFoundError(f"Shift instance not found with id: {instance_id}")
        return instance

    def _require_assignment(self, assignment_id: int) -> Assignment:
        assignment = self._assignments.get_by_id(int(assignment_id))
        if not assignment:
            raise NotFoundError(f"Assignment not found with id: {assignment_id}")
        return assignment

    def _require_skills(self, skill_ids: Iterable[int]) -> list[int]:
        ids = []
        for skill_id in skill_ids:
            if not self._skills.get_by_id(int(skill_id)):
                raise NotFoundError(f"Skill not found with id: {skill_id}")
            ids.append(int(skill_id))
        return ids

    # -------- Templates --------
    def create_template(
        self,
        name: str,
        location_id: int,
        role_id: int,
        start_time: time,
        end_time: time,
        break_minutes: int = 0,
        *,
        description: Optional[str] = None,
        max_assignments: int = DEFAULT_MAX_ASSIGNMENTS,
        required_skill_ids: Iterable[int] = (),
    ) -> ShiftTemplate:
        name = require_non_empty(name, "Template name")
        break_minutes = require_non_negative(break_minutes, "Break minutes")
        if int(max_assignments) < 1:
            raise ValidationError("Max assignments must be at least 1")

        with self._tx.transaction():
            if not self._locations.get_by_id(int(location_id)):
                raise NotFoundError(f"Location not found with id: {location_id}")
            if not self._roles.get_by_id(int(role_id)):
                raise NotFoundError(f"Role not found with id: {role_id}")
            skill_ids = self._require_skills(required_skill_ids)

            template_id = self._templates.create_template(
                name=name,
                location_id=int(location_id),
                role_id=int(role_id),
                start_time=start_time,
                end_time=end_time,
                break_minutes=break_minutes,
                description=(description or "").strip() or None,
                max_assignments=int(max_assignments),
            )
            if skill_ids:
                self._templates.set_required_skills(template_id, skill_ids)

        logger.info("Created shift template %s (%s)", template_id, name)
        return self._require_template(template_id)

    def update_template(self, template_id: int, name: str, description: Optional[str] = None) -> ShiftTemplate:
        name = require_non_empty(name, "Template name")
        with self._tx.transaction():
            self._require_template(template_id)
            self._templates.update_details(int(template_id), name=name, description=(description or "").strip() or None)
        return self._require_template(template_id)

    def deactivate_template(self, template_id: int) -> ShiftTemplate:
        """Hide a template from active listings. Existing and new instances are unaffected."""
        with self._tx.transaction():
            self._require_template(template_id)
            self._templates.set_active(int(template_id), is_active=False)
        logger.info("Deactivated shift template %s", template_id)
        return self._require_template(template_id)

    def set_required_skills(self, template_id: int, skill_ids: Iterable[int]) -> ShiftTemplate:
        with self._tx.transaction():
            self._require_template(template_id)
            ids = self._require_skills(skill_ids)
            self._templates.set_required_skills(int(template_id), ids)
        return self._require_template(template_id)

    # -------- Instances --------
    def create_instance(self, template_id: int, shift_date: date) -> ShiftInstance:
        with self._tx.transaction():
            self._require_template(template_id)
            if self._instances.get_by_template_and_date(int(template_id), shift_date):
                logger.warning("Duplicate shift instance for template %s on %s", template_id, shift_date)
                raise ConflictError("Shift instance already exists for this date")
            instance_id = self._instances.create_instance(template_id=int(template_id), shift_date=shift_date)

        logger.info("Created shift instance %s for template %s on %s", instance_id, template_id, shift_date)
        return self._require_instance(instance_id)

    def publish(self, instance_id: int, publisher_id: int) -> ShiftInstance:
        with self._tx.transaction():
            instance = self._require_instance(instance_id, for_update=True)
            SHIFT_INSTANCE_LIFECYCLE.next_state(instance.status, Action.PUBLISH)
            ok = self._instances.mark_published(
                instance.instance_id,
                published_by=int(publisher_id),
                published_at=self._clock(),
                expected_status=instance.status,
            )
            if not ok:
                current = self._require_instance(instance_id)
                raise SHIFT_INSTANCE_LIFECYCLE.error(current.status, Action.PUBLISH)

        logger.info("Published shift instance %s by user %s", instance_id, publisher_id)
        return self._require_instance(instance_id)

    def cancel_instance(self, instance_id: int, reason: Optional[str] = None) -> ShiftInstance:
        with self._tx.transaction():
            instance = self._require_instance(instance_id, for_update=True)
            SHIFT_INSTANCE_LIFECYCLE.next_state(instance.status, Action.CANCEL)
            ok = self._instances.mark_cancelled(
                instance.instance_id,
                notes=(reason or "").strip() or None,
                expected_statuses=SHIFT_INSTANCE_LIFECYCLE.sources_for(Action.CANCEL),
            )
            if not ok:
                current = self._require_instance(instance_id)
                raise SHIFT_INSTANCE_LIFECYCLE.error(current.status, Action.CANCEL)

        logger.info("Cancelled shift instance %s", instance_id)
        return self._require_instance(instance_id)

    # -------- Assignments --------
    def assign(self, instance_id: int, user_id: int, assigner_id: int) -> Assignment:
        with self._tx.transaction():
            # Row lock serialises concurrent assigns and publishes on the instance.
            instance = self._require_instance(instance_id, for_update=True)
            if not self._users.get_by_id(int(user_id)):
                raise NotFoundError(f"User not found with id: {user_id}")
            SHIFT_INSTANCE_LIFECYCLE.next_state(instance.status, Action.ASSIGN)

            already = any(
                a.user_id == int(user_id) and a.status == AssignmentStatus.ACTIVE
                for a in self._assignments.list_for_instance(instance.instance_id)
            )
            if already:
                raise ConflictError("User is already assigned to this shift")

            assignment_id = self._assignments.create_assignment(
                shift_instance_id=instance.instance_id,
                user_id=int(user_id),
                assigned_by=int(assigner_id),
                assigned_at=self._clock(),
            )

        logger.info("Assigned user %s to shift instance %s", user_id, instance_id)
        return self._require_assignment(assignment_id)

    def _move_assignment(self, assignment_id: int, action: Action, notes: Optional[str] = None) -> Assignment:
        with self._tx.transaction():
            assignment = self._require_assignment(assignment_id)
            new_status = ASSIGNMENT_LIFECYCLE.next_state(assignment.status, action)
            ok = self._assignments.change_status(
                assignment.assignment_id,
                status=new_status,
                expected_status=assignment.status,
                updated_at=self._clock(),
                notes=notes,
            )
            if not ok:
                current = self._require_assignment(assignment_id)
                raise ASSIGNMENT_LIFECYCLE.error(current.status, action)

        logger.info("Assignment %s moved to %s", assignment_id, new_status.value)
        return self._require_assignment(assignment_id)

    def cancel_assignment(self, assignment_id: int, reason: str) -> Assignment:
        reason = require_non_empty(reason, "Cancellation reason")
        return self._move_assignment(assignment_id, Action.CANCEL, reason)

    def complete_assignment(self, assignment_id: int) -> Assignment:
        return self._move_assignment(assignment_id, Action.COMPLETE)

    # -------- Reads --------
    def get_template(self, template_id: int) -> Optional[ShiftTemplate]:
        return self._templates.get_by_id(int(template_id))

    def get_instance(self, instance_id: int) -> Optional[ShiftInstance]:
        return self._instances.get_by_id(int(instance_id))

    def list_templates_by_location(self, location_id: int) -> Sequence[ShiftTemplate]:
        return self._templates.list_active_by_location(int(location_id))

    def list_active_templates(self) -> Sequence[ShiftTemplate]:
        return self._templates.list_active()

    def list_all_templates(self) -> Sequence[ShiftTemplate]:
        return self._templates.list_all()

    def list_instances(self, start: date, end: date) -> Sequence[ShiftInstance]:
        require_period(start, end, "Start date must be before end date")
        return self._instances.list_between(start, end)

    def list_published_instances(self, start: date, end: date) -> Sequence[ShiftInstance]:
        require_period(start, end, "Start date must be before end date")
        return self._instances.list_published_between(start, end)

    def list_user_assignments(self, user_id: int, start: date, end: date) -> Sequence[Assignment]:
        require_period(start, end, "Start date must be before end date")
        return self._assignments.list_for_user_between(int(user_id), start, end)

    def list_assignments_for_instance(self, instance_id: int) -> Sequence[Assignment]:
        return self._assignments.list_for_instance(int(instance_id))

    def list_required_skills(self, template_id: int) -> Sequence[Skill]:
        self._require_template(template_id)
        return self._skills.list_for_template(int(template_id))

    def list_locations(self) -> Sequence[Location]:
        return self._locations.list_all()

    def list_roles(self) -> Sequence[Role]:
        return self._roles.list_all()
