"""
Visibility rules for listing Applications and Exchange Programs.

Which applications a caller sees depends on two things: their role and
whether they belong to an organization. Each combination maps to one
predicate in APPLICATION_RULES; filtering keeps input order.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Tuple

from .entities import Application, ExchangeProgram
from .enums import Role, Status

# Sentinel role category for every role that is not Administrator/Organization
OTHER = "other"


@dataclass(frozen=True)
class CallerIdentity:
    """Resolved user/role/organization context for the current request"""

    user_id: int
    role_id: int
    organization_id: int = 0  # 0 = no organization affiliation

    @property
    def is_affiliated(self) -> bool:
        return self.organization_id != 0


def is_administrator(caller: CallerIdentity) -> bool:
    return caller.role_id == Role.ADMINISTRATOR


def is_organization_owner(program_owner_org_id: int, caller_org_id: int) -> bool:
    """True when the program belongs to the caller's (non-zero) organization"""
    return caller_org_id != 0 and program_owner_org_id == caller_org_id


def role_category(role_id: int):
    if role_id == Role.ADMINISTRATOR:
        return Role.ADMINISTRATOR
    if role_id == Role.ORGANIZATION:
        return Role.ORGANIZATION
    return OTHER


ApplicationPredicate = Callable[[Application], bool]
PredicateFactory = Callable[[CallerIdentity, List[ExchangeProgram]], ApplicationPredicate]


def _everything(caller: CallerIdentity, programs: List[ExchangeProgram]) -> ApplicationPredicate:
    return lambda application: True


def _own_not_deleted(caller: CallerIdentity, programs: List[ExchangeProgram]) -> ApplicationPredicate:
    return lambda application: (
        application.student_id == caller.user_id
        and application.status_id != Status.DELETED
    )


def _organization_programs(caller: CallerIdentity, programs: List[ExchangeProgram]) -> ApplicationPredicate:
    owned_program_ids = {
        program.id.value
        for program in programs
        if is_organization_owner(program.organization_id, caller.organization_id)
    }
    return lambda application: application.program_id in owned_program_ids


# (role category, affiliated) -> predicate factory
APPLICATION_RULES: Dict[Tuple[object, bool], PredicateFactory] = {
    (Role.ADMINISTRATOR, True): _everything,
    (Role.ORGANIZATION, True): _organization_programs,
    (OTHER, True): _own_not_deleted,
    (Role.ADMINISTRATOR, False): _everything,
    (Role.ORGANIZATION, False): _everything,
    (OTHER, False): _own_not_deleted,
}


def filter_applications(
    caller: CallerIdentity,
    applications: Iterable[Application],
    programs: Iterable[ExchangeProgram],
) -> List[Application]:
    """
    Reduce applications to those the caller may see.

    Args:
        caller: Resolved caller identity
        applications: Every candidate application, in display order
        programs: Exchange programs used to resolve organization ownership

    Returns:
        Visible applications, same relative order as the input
    """
    factory = APPLICATION_RULES[(role_category(caller.role_id), caller.is_affiliated)]
    predicate = factory(caller, list(programs))
    return [application for application in applications if predicate(application)]


def has_pending_application(caller: CallerIdentity, applications: Iterable[Application]) -> bool:
    return any(
        application.student_id == caller.user_id and application.status_id == Status.PENDING
        for application in applications
    )


def filter_exchange_programs(
    caller: CallerIdentity,
    programs: Iterable[ExchangeProgram],
    caller_applications: Iterable[Application],
) -> List[ExchangeProgram]:
    """
    Reduce exchange programs to those the caller may see.

    A caller with a Pending application sees nothing. Affiliated
    non-administrators only see their organization's programs. Deleted
    programs are always dropped.
    """
    if has_pending_application(caller, caller_applications):
        return []

    visible = list(programs)
    if caller.is_affiliated and not is_administrator(caller):
        visible = [
            program for program in visible
            if is_organization_owner(program.organization_id, caller.organization_id)
        ]

    return [program for program in visible if program.status_id != Status.DELETED]
