# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Actors and capabilities.

An Actor is the authenticated caller handed to every core operation. Roles
map to a fixed capability set, and each operation checks its capability
once via ``Actor.require``.
"""

from dataclasses import dataclass
from enum import Enum

from academic_results.domains.results.errors import ForbiddenError


class Role(str, Enum):
    """Roles recognised by the result lifecycle."""

    STUDENT = "student"
    LECTURER = "lecturer"
    HOD = "hod"
    ADMIN = "admin"


class Capability(str, Enum):
    """Operations an actor may be allowed to perform."""

    ENTER_SCORES = "enter_scores"
    DELETE_RESULTS = "delete_results"
    APPROVE_AS_HOD = "approve_as_hod"
    APPROVE_AS_ADMIN = "approve_as_admin"
    PUBLISH_RESULTS = "publish_results"
    VIEW_ALL_RESULTS = "view_all_results"
    VIEW_OWN_RESULTS = "view_own_results"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.STUDENT: frozenset({Capability.VIEW_OWN_RESULTS}),
    Role.LECTURER: frozenset({
        Capability.ENTER_SCORES,
        Capability.VIEW_ALL_RESULTS,
    }),
    Role.HOD: frozenset({
        Capability.APPROVE_AS_HOD,
        Capability.VIEW_ALL_RESULTS,
    }),
    Role.ADMIN: frozenset({
        Capability.ENTER_SCORES,
        Capability.DELETE_RESULTS,
        Capability.APPROVE_AS_ADMIN,
        Capability.PUBLISH_RESULTS,
        Capability.VIEW_ALL_RESULTS,
    }),
}


@dataclass(frozen=True)
class Actor:
    """Authenticated caller of a result operation.

    Attributes:
        id: User identifier.
        role: The caller's role.
    """

    id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        """Check if actor is an admin."""
        return self.role is Role.ADMIN

    @property
    def is_student(self) -> bool:
        """Check if actor is a student."""
        return self.role is Role.STUDENT

    def can(self, capability: Capability) -> bool:
        """Check whether the actor's role grants a capability."""
        return capability in ROLE_CAPABILITIES[self.role]

    def require(self, capability: Capability) -> None:
        """Ensure the actor holds a capability.

        Raises:
            ForbiddenError: If the role does not grant it.
        """
        if not self.can(capability):
            raise ForbiddenError(
                f"Role '{self.role.value}' is not allowed to {capability.value.replace('_', ' ')}"
            )

    def require_self_or_staff(self, student_id: str, message: str) -> None:
        """Students may only act on their own records; staff on any.

        Raises:
            ForbiddenError: If a student targets another student.
        """
        if self.is_student and self.id != student_id:
            raise ForbiddenError(message)
