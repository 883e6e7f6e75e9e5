"""Scope resolution: which records an operator's profile can see."""

from liftmosque_admin.application.dtos.scope import UNRESTRICTED, ScopePredicate
from liftmosque_admin.domain.entities.profile import MosqueAdminProfile, Profile


def resolve_scope(profile: Profile | None) -> ScopePredicate:
    """Return the scope predicate for profile.

    A mosque_admin is restricted to its mosque; a global_admin (or no profile
    at all) is unrestricted. Whether an absent profile may sign in is decided
    earlier by the session's missing-profile policy.
    """
    if isinstance(profile, MosqueAdminProfile):
        return ScopePredicate(mosque_id=profile.mosque_id)
    return UNRESTRICTED
