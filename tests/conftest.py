from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, time
from typing import Optional

import pytest

from shiftcraft.core.enums import (
    AssignmentStatus,
    LeaveStatus,
    ShiftStatus,
    SkillLevel,
    UserStatus,
)
from shiftcraft.core.exceptions import ConflictError
from shiftcraft.leave.model import LeaveRequest
from shiftcraft.leave.service import LeaveService
from shiftcraft.locations.model import Location
from shiftcraft.schedules.service import ScheduleService
from shiftcraft.shifts.model import Assignment, ShiftInstance, ShiftTemplate
from shiftcraft.shifts.service import ShiftService
from shiftcraft.timesheets.model import Timesheet, TimesheetEntry
from shiftcraft.timesheets.service import TimesheetService
from shiftcraft.users.model import User, UserSkill
from shiftcraft.users.role_model import Role
from shiftcraft.users.service import RoleService, UserService
from shiftcraft.users.skill_model import Skill

NOW = datetime(2024, 6, 1, 9, 0, 0)


class InMemoryTable:
    """Base for fakes: only attributes in ``_state`` are rolled back."""

    _state: tuple[str, ...] = ("rows", "next_id")

    def __init__(self):
        self.rows: dict = {}
        self.next_id = 1

    def _new_id(self) -> int:
        new_id = self.next_id
        self.next_id += 1
        return new_id

    def snapshot(self) -> dict:
        return copy.deepcopy({name: getattr(self, name) for name in self._state})

    def restore(self, snap: dict) -> None:
        for name, value in snap.items():
            setattr(self, name, value)


class FakeTransactions:
    def __init__(self, *tables: InMemoryTable):
        self._tables = tables
        self._depth = 0
        self.committed = 0
        self.rolled_back = 0

    @contextmanager
    def transaction(self):
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snaps = [t.snapshot() for t in self._tables]
        self._depth = 1
        try:
            yield
        except Exception:
            for table, snap in zip(self._tables, snaps):
                table.restore(snap)
            self.rolled_back += 1
            raise
        else:
            self.committed += 1
        finally:
            self._depth = 0


class InMemoryRoles(InMemoryTable):
    def __init__(self):
        super().__init__()
        self.users: Optional[InMemoryUsers] = None
        self.templates: Optional[InMemoryTemplates] = None

    def add(self, name: str) -> Role:
        role = Role(role_id=self._new_id(), name=name)
        self.rows[role.role_id] = role
        return role

    def get_by_id(self, role_id):
        return self.rows.get(int(role_id))

    def get_by_name(self, name):
        return next((r for r in self.rows.values() if r.name == name), None)

    def list_all(self):
        return sorted(self.rows.values(), key=lambda r: r.name)

    def is_referenced_by_templates(self, role_id):
        return any(t.role_id == int(role_id) for t in self.templates.rows.values())

    def delete_by_id(self, role_id):
        for user in list(self.users.rows.values()):
            if int(role_id) in user.role_ids:
                self.users.rows[user.user_id] = replace(user, role_ids=user.role_ids - {int(role_id)})
        return self.rows.pop(int(role_id), None) is not None


class InMemorySkills(InMemoryTable):
    def __init__(self):
        super().__init__()
        self.templates: Optional[InMemoryTemplates] = None

    def add(self, name: str) -> Skill:
        skill = Skill(skill_id=self._new_id(), name=name)
        self.rows[skill.skill_id] = skill
        return skill

    def get_by_id(self, skill_id):
        return self.rows.get(int(skill_id))

    def get_by_name(self, name):
        return next((s for s in self.rows.values() if s.name == name), None)

    def list_all(self):
        return list(self.rows.values())

    def list_for_template(self, template_id):
        template = self.templates.rows.get(int(template_id))
        return sorted((self.rows[s] for s in template.required_skill_ids), key=lambda s: s.name)


class InMemoryLocations(InMemoryTable):
    def add(self, name: str) -> Location:
        loc = Location(location_id=self._new_id(), name=name)
        self.rows[loc.location_id] = loc
        return loc

    def get_by_id(self, location_id):
        return self.rows.get(int(location_id))

    def list_all(self):
        return sorted(self.rows.values(), key=lambda loc: loc.name)


class InMemoryUsers(InMemoryTable):
    _state = ("rows", "next_id", "skills", "next_skill_id")

    def __init__(self, roles: InMemoryRoles):
        super().__init__()
        self.roles = roles
        self.skills: dict[int, UserSkill] = {}
        self.next_skill_id = 1
        self.dependent_user_ids: set[int] = set()

    def get_by_id(self, user_id):
        return self.rows.get(int(user_id))

    def get_by_email(self, email):
        return next((u for u in self.rows.values() if u.email == email), None)

    def list_all(self):
        return sorted(self.rows.values(), key=lambda u: (u.last_name, u.first_name))

    def list_by_role_name(self, role_name):
        role = self.roles.get_by_name(role_name)
        if not role:
            return []
        return [u for u in self.rows.values() if role.role_id in u.role_ids]

    def list_by_status(self, status):
        return [u for u in self.rows.values() if u.status == status]

    def list_by_skill(self, skill_id):
        owners = {s.user_id for s in self.skills.values() if s.skill_id == int(skill_id)}
        return [u for u in self.rows.values() if u.user_id in owners]

    def create_user(self, *, email, password_hash, first_name, last_name, status=UserStatus.ACTIVE):
        if self.get_by_email(email):
            raise ConflictError(f"User with email {email} already exists")
        user = User(
            user_id=self._new_id(),
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            status=status,
            created_at=NOW,
        )
        self.rows[user.user_id] = user
        return user.user_id

    def add_role(self, user_id, role_id):
        user = self.rows[int(user_id)]
        if int(role_id) in user.role_ids:
            return False
        self.rows[user.user_id] = replace(user, role_ids=user.role_ids | {int(role_id)})
        return True

    def set_status(self, user_id, *, status):
        user = self.rows.get(int(user_id))
        if not user:
            return False
        self.rows[user.user_id] = replace(user, status=status, updated_at=NOW)
        return True

    def list_skills(self, user_id):
        return sorted((s for s in self.skills.values() if s.user_id == int(user_id)), key=lambda s: s.skill_id)

    def add_skill(self, *, user_id, skill_id, level=SkillLevel.BEGINNER):
        if any(s.user_id == int(user_id) and s.skill_id == int(skill_id) for s in self.skills.values()):
            raise ConflictError("User already has this skill")
        us = UserSkill(user_skill_id=self.next_skill_id, user_id=int(user_id), skill_id=int(skill_id), level=level)
        self.next_skill_id += 1
        self.skills[us.user_skill_id] = us
        return us.user_skill_id

    def has_dependents(self, user_id):
        return int(user_id) in self.dependent_user_ids

    def delete_by_id(self, user_id):
        self.skills = {k: s for k, s in self.skills.items() if s.user_id != int(user_id)}
        return self.rows.pop(int(user_id), None) is not None


class InMemoryTemplates(InMemoryTable):
    def get_by_id(self, template_id):
        return self.rows.get(int(template_id))

    def list_all(self):
        return sorted(self.rows.values(), key=lambda t: (t.start_time, t.template_id))

    def list_active(self):
        return [t for t in self.list_all() if t.is_active]

    def list_active_by_location(self, location_id):
        return [t for t in self.list_active() if t.location_id == int(location_id)]

    def create_template(
        self, *, name, location_id, role_id, start_time, end_time, break_minutes, description, max_assignments
    ):
        template = ShiftTemplate(
            template_id=self._new_id(),
            name=name,
            location_id=location_id,
            role_id=role_id,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            description=description,
            max_assignments=max_assignments,
        )
        self.rows[template.template_id] = template
        return template.template_id

    def update_details(self, template_id, *, name, description):
        t = self.rows[int(template_id)]
        self.rows[t.template_id] = replace(t, name=name, description=description)
        return True

    def set_active(self, template_id, *, is_active):
        t = self.rows[int(template_id)]
        self.rows[t.template_id] = replace(t, is_active=is_active)
        return True

    def set_required_skills(self, template_id, skill_ids):
        t = self.rows[int(template_id)]
        self.rows[t.template_id] = replace(t, required_skill_ids=frozenset(int(s) for s in skill_ids))


class InMemoryInstances(InMemoryTable):
    def get_by_id(self, instance_id, *, for_update=False):
        return self.rows.get(int(instance_id))

    def get_by_template_and_date(self, template_id, shift_date):
        return next(
            (i for i in self.rows.values() if i.template_id == int(template_id) and i.shift_date == shift_date),
            None,
        )

    def list_between(self, start, end):
        return sorted(
            (i for i in self.rows.values() if start <= i.shift_date <= end),
            key=lambda i: (i.shift_date, i.instance_id),
        )

    def list_published_between(self, start, end):
        return [i for i in self.list_between(start, end) if i.status == ShiftStatus.PUBLISHED]

    def create_instance(self, *, template_id, shift_date):
        if self.get_by_template_and_date(template_id, shift_date):
            raise ConflictError("Shift instance already exists for this date")
        instance = ShiftInstance(instance_id=self._new_id(), template_id=int(template_id), shift_date=shift_date)
        self.rows[instance.instance_id] = instance
        return instance.instance_id

    def mark_published(self, instance_id, *, published_by, published_at, expected_status):
        i = self.rows.get(int(instance_id))
        if not i or i.status != expected_status:
            return False
        self.rows[i.instance_id] = replace(
            i, status=ShiftStatus.PUBLISHED, published_by=published_by, published_at=published_at
        )
        return True

    def mark_cancelled(self, instance_id, *, notes, expected_statuses):
        i = self.rows.get(int(instance_id))
        if not i or i.status not in set(expected_statuses):
            return False
        self.rows[i.instance_id] = replace(i, status=ShiftStatus.CANCELLED, notes=notes or i.notes)
        return True


class InMemoryAssignments(InMemoryTable):
    def __init__(self, instances: InMemoryInstances):
        super().__init__()
        self.instances = instances

    def get_by_id(self, assignment_id):
        return self.rows.get(int(assignment_id))

    def _sorted(self, items):
        return sorted(items, key=lambda a: (a.shift_date, a.assignment_id))

    def list_for_instance(self, instance_id):
        return self._sorted(a for a in self.rows.values() if a.shift_instance_id == int(instance_id))

    def list_for_user_between(self, user_id, start, end):
        return self._sorted(
            a for a in self.rows.values() if a.user_id == int(user_id) and start <= a.shift_date <= end
        )

    def list_for_user_on(self, user_id, day):
        return self.list_for_user_between(user_id, day, day)

    def list_active_between(self, start, end):
        return self._sorted(
            a for a in self.rows.values() if a.status == AssignmentStatus.ACTIVE and start <= a.shift_date <= end
        )

    def create_assignment(self, *, shift_instance_id, user_id, assigned_by, assigned_at):
        if any(
            a.user_id == int(user_id)
            and a.shift_instance_id == int(shift_instance_id)
            and a.status == AssignmentStatus.ACTIVE
            for a in self.rows.values()
        ):
            raise ConflictError("User is already assigned to this shift")
        instance = self.instances.rows[int(shift_instance_id)]
        a = Assignment(
            assignment_id=self._new_id(),
            shift_instance_id=instance.instance_id,
            user_id=int(user_id),
            shift_date=instance.shift_date,
            assigned_by=int(assigned_by),
            assigned_at=assigned_at,
        )
        self.rows[a.assignment_id] = a
        return a.assignment_id

    def change_status(self, assignment_id, *, status, expected_status, updated_at, notes=None):
        a = self.rows.get(int(assignment_id))
        if not a or a.status != expected_status:
            return False
        self.rows[a.assignment_id] = replace(a, status=status, updated_at=updated_at, notes=notes or a.notes)
        return True


class InMemoryLeave(InMemoryTable):
    def get_by_id(self, request_id):
        return self.rows.get(int(request_id))

    def find_overlapping(self, user_id, start, end, *, statuses, for_update=False):
        wanted = set(statuses)
        return sorted(
            (
                r
                for r in self.rows.values()
                if r.user_id == int(user_id) and r.status in wanted and r.start_date <= end and r.end_date >= start
            ),
            key=lambda r: (r.start_date, r.request_id),
        )

    def list_by_status(self, status):
        return sorted(
            (r for r in self.rows.values() if r.status == status),
            key=lambda r: (r.requested_at, r.request_id),
        )

    def list_for_user(self, user_id):
        return [r for r in self.rows.values() if r.user_id == int(user_id)]

    def list_in_period(self, start, end, *, status):
        return [r for r in self.rows.values() if r.status == status and r.start_date <= end and r.end_date >= start]

    def create_request(self, *, user_id, start_date, end_date, leave_type, reason, requested_at):
        req = LeaveRequest(
            request_id=self._new_id(),
            user_id=int(user_id),
            start_date=start_date,
            end_date=end_date,
            leave_type=leave_type,
            status=LeaveStatus.PENDING,
            requested_at=requested_at,
            reason=reason,
        )
        self.rows[req.request_id] = req
        return req.request_id

    def decide(self, request_id, *, status, expected_status, reviewed_by, reviewed_at, review_notes=None):
        r = self.rows.get(int(request_id))
        if not r or r.status != expected_status:
            return False
        self.rows[r.request_id] = replace(
            r, status=status, reviewed_by=reviewed_by, reviewed_at=reviewed_at, review_notes=review_notes
        )
        return True


class InMemoryTimesheets(InMemoryTable):
    _state = ("rows", "next_id", "entries", "next_entry_id")

    def __init__(self):
        super().__init__()
        self.entries: dict[int, TimesheetEntry] = {}
        self.next_entry_id = 1

    def _assemble(self, sheet: Optional[Timesheet]) -> Optional[Timesheet]:
        if not sheet:
            return None
        entries = sorted(
            (e for e in self.entries.values() if e.timesheet_id == sheet.timesheet_id),
            key=lambda e: (e.work_date, e.start_time, e.entry_id),
        )
        return replace(sheet, entries=tuple(entries))

    def get_by_id(self, timesheet_id, *, for_update=False):
        return self._assemble(self.rows.get(int(timesheet_id)))

    def get_for_period(self, user_id, period_start, period_end):
        return self._assemble(
            next(
                (
                    s
                    for s in self.rows.values()
                    if s.user_id == int(user_id) and s.period_start == period_start and s.period_end == period_end
                ),
                None,
            )
        )

    def list_for_user(self, user_id):
        return [self._assemble(s) for s in self.rows.values() if s.user_id == int(user_id)]

    def list_by_status(self, status):
        return [self._assemble(s) for s in self.rows.values() if s.status == status]

    def create_timesheet(self, *, user_id, period_start, period_end, generated_at):
        if self.get_for_period(user_id, period_start, period_end):
            raise ConflictError("Timesheet already exists for this period")
        sheet = Timesheet(
            timesheet_id=self._new_id(),
            user_id=int(user_id),
            period_start=period_start,
            period_end=period_end,
            generated_at=generated_at,
        )
        self.rows[sheet.timesheet_id] = sheet
        return sheet.timesheet_id

    def get_entry(self, entry_id):
        return self.entries.get(int(entry_id))

    def add_entry(
        self,
        *,
        timesheet_id,
        work_date,
        start_time,
        end_time,
        break_minutes,
        hours,
        entry_type,
        assignment_id=None,
        description=None,
    ):
        entry = TimesheetEntry(
            entry_id=self.next_entry_id,
            timesheet_id=int(timesheet_id),
            work_date=work_date,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            hours=hours,
            entry_type=entry_type,
            assignment_id=assignment_id,
            description=description,
        )
        self.next_entry_id += 1
        self.entries[entry.entry_id] = entry
        return entry.entry_id

    def update_entry(self, entry_id, *, start_time, end_time, break_minutes, hours):
        e = self.entries[int(entry_id)]
        self.entries[e.entry_id] = replace(
            e, start_time=start_time, end_time=end_time, break_minutes=break_minutes, hours=hours
        )
        return True

    def set_totals(self, timesheet_id, *, total_hours, regular_hours, overtime_hours):
        s = self.rows[int(timesheet_id)]
        self.rows[s.timesheet_id] = replace(
            s, total_hours=total_hours, regular_hours=regular_hours, overtime_hours=overtime_hours
        )

    def change_status(
        self, timesheet_id, *, status, expected_status, approved_by=None, approved_at=None, review_notes=None
    ):
        s = self.rows.get(int(timesheet_id))
        if not s or s.status != expected_status:
            return False
        self.rows[s.timesheet_id] = replace(
            s,
            status=status,
            approved_by=approved_by if approved_by is not None else s.approved_by,
            approved_at=approved_at if approved_at is not None else s.approved_at,
            review_notes=review_notes if review_notes is not None else s.review_notes,
        )
        return True


class World:
    """Fakes plus services wired the way ``build_container`` wires them."""

    def __init__(self, now: datetime = NOW):
        self.now = now
        self.roles = InMemoryRoles()
        self.skills = InMemorySkills()
        self.locations = InMemoryLocations()
        self.users = InMemoryUsers(self.roles)
        self.templates = InMemoryTemplates()
        self.instances = InMemoryInstances()
        self.assignments = InMemoryAssignments(self.instances)
        self.leave = InMemoryLeave()
        self.timesheets = InMemoryTimesheets()
        self.roles.users = self.users
        self.roles.templates = self.templates
        self.skills.templates = self.templates

        self.tx = FakeTransactions(
            self.roles,
            self.skills,
            self.locations,
            self.users,
            self.templates,
            self.instances,
            self.assignments,
            self.leave,
            self.timesheets,
        )
        self.user_service = UserService(self.users, self.roles, self.skills, self.tx)
        self.role_service = RoleService(self.roles, self.tx)
        self.shift_service = ShiftService(
            self.templates,
            self.instances,
            self.assignments,
            self.locations,
            self.roles,
            self.skills,
            self.users,
            self.tx,
            clock=self._clock,
        )
        self.leave_service = LeaveService(self.leave, self.users, self.tx, clock=self._clock)
        self.schedule_service = ScheduleService(self.instances, self.assignments, self.leave, self.users)
        self.timesheet_service = TimesheetService(
            self.timesheets,
            self.assignments,
            self.instances,
            self.templates,
            self.users,
            self.tx,
            clock=self._clock,
        )

    def _clock(self) -> datetime:
        return self.now

    # -------- Seeding --------
    def add_user(self, first_name: str = "Ann", last_name: str = "Lee", *, roles: tuple[str, ...] = ()) -> User:
        user_id = self.users.create_user(
            email=f"{first_name}.{last_name}.{self.users.next_id}@example.com".lower(),
            password_hash="x",
            first_name=first_name,
            last_name=last_name,
        )
        for name in roles:
            role = self.roles.get_by_name(name) or self.roles.add(name)
            self.users.add_role(user_id, role.role_id)
        return self.users.get_by_id(user_id)

    def add_template(
        self,
        name: str = "Day",
        start: time = time(9, 0),
        end: time = time(17, 0),
        break_minutes: int = 30,
    ) -> ShiftTemplate:
        location = self.locations.add("Main")
        role = self.roles.get_by_name("STAFF") or self.roles.add("STAFF")
        return self.shift_service.create_template(name, location.location_id, role.role_id, start, end, break_minutes)

    def assign_on(self, user: User, template: ShiftTemplate, day: date) -> Assignment:
        instance = self.instances.get_by_template_and_date(template.template_id, day)
        if not instance:
            instance = self.shift_service.create_instance(template.template_id, day)
        return self.shift_service.assign(instance.instance_id, user.user_id, assigner_id=user.user_id)


@pytest.fixture
def world() -> World:
    return World()
