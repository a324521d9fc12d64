from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from .common.logging_utils import configure_logging
from .config import load_settings
from .core.constants import STAFF_ROLE_NAME, STANDARD_WEEK_HOURS
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig, DatabaseConnection
from .leave.mysql_leave_repository import MySQLLeaveRepository
from .leave.service import LeaveService
from .locations.mysql_location_repository import MySQLLocationRepository
from .schedules.service import ScheduleService
from .shifts.mysql_assignment_repository import MySQLAssignmentRepository
from .shifts.mysql_shift_repository import MySQLShiftInstanceRepository, MySQLShiftTemplateRepository
from .shifts.service import ShiftService
from .timesheets.calculator.standard_calculator import StandardHoursCalculator
from .timesheets.mysql_timesheet_repository import MySQLTimesheetRepository
from .timesheets.service import TimesheetService
from .users.mysql_role_repository import MySQLRoleRepository
from .users.mysql_skill_repository import MySQLSkillRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import RoleService, UserService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    roles_repo: MySQLRoleRepository
    skills_repo: MySQLSkillRepository
    locations_repo: MySQLLocationRepository
    templates_repo: MySQLShiftTemplateRepository
    instances_repo: MySQLShiftInstanceRepository
    assignments_repo: MySQLAssignmentRepository
    leave_repo: MySQLLeaveRepository
    timesheets_repo: MySQLTimesheetRepository

    user_service: UserService
    role_service: RoleService
    shift_service: ShiftService
    leave_service: LeaveService
    schedule_service: ScheduleService
    timesheet_service: TimesheetService


def build_container(
    *,
    db_config: dict,
    standard_week_hours: Decimal = STANDARD_WEEK_HOURS,
    staff_role_name: str = STAFF_ROLE_NAME,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    users_repo = MySQLUserRepository(conn)
    roles_repo = MySQLRoleRepository(conn)
    skills_repo = MySQLSkillRepository(conn)
    locations_repo = MySQLLocationRepository(conn)
    templates_repo = MySQLShiftTemplateRepository(conn)
    instances_repo = MySQLShiftInstanceRepository(conn)
    assignments_repo = MySQLAssignmentRepository(conn)
    leave_repo = MySQLLeaveRepository(conn)
    timesheets_repo = MySQLTimesheetRepository(conn)

    user_service = UserService(users_repo, roles_repo, skills_repo, conn)
    role_service = RoleService(roles_repo, conn)
    shift_service = ShiftService(
        templates_repo,
        instances_repo,
        assignments_repo,
        locations_repo,
        roles_repo,
        skills_repo,
        users_repo,
        conn,
    )
    leave_service = LeaveService(leave_repo, users_repo, conn)
    schedule_service = ScheduleService(
        instances_repo,
        assignments_repo,
        leave_repo,
        users_repo,
        staff_role_name=staff_role_name,
    )
    timesheet_service = TimesheetService(
        timesheets_repo,
        assignments_repo,
        instances_repo,
        templates_repo,
        users_repo,
        conn,
        calculator=StandardHoursCalculator(Decimal(standard_week_hours)),
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        roles_repo=roles_repo,
        skills_repo=skills_repo,
        locations_repo=locations_repo,
        templates_repo=templates_repo,
        instances_repo=instances_repo,
        assignments_repo=assignments_repo,
        leave_repo=leave_repo,
        timesheets_repo=timesheets_repo,
        user_service=user_service,
        role_service=role_service,
        shift_service=shift_service,
        leave_service=leave_service,
        schedule_service=schedule_service,
        timesheet_service=timesheet_service,
    )


def create_container() -> Container:
    """Build the container from the APP_ENV-selected settings module."""
    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = getattr(settings, "DB_CONFIG")

    logger.debug(
        "settings=%s db=%s@%s:%s/%s",
        settings.__name__,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))

    return build_container(
        db_config=db_config,
        standard_week_hours=Decimal(str(getattr(settings, "STANDARD_WEEK_HOURS", STANDARD_WEEK_HOURS))),
        staff_role_name=str(getattr(settings, "STAFF_ROLE_NAME", STAFF_ROLE_NAME)),
    )
