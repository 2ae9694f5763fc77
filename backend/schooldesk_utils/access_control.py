from schooldesk.models import School, SchoolClass
from schooldesk.errors import NotFoundError

ELEVATED_ROLES = {"superuser"}


def get_allowed_school_ids(user, requested_ids=None):
    """
    Returns a list of allowed school_ids based on the user's role and requested school_ids.
    - Superusers can access all or any requested schools.
    - Everyone else is restricted to their assigned school.
    - Raises PermissionError for invalid access.
    """
    if not user:
        raise ValueError("No user provided")

    role_name = user.role.name if user.role else ""

    # Normalize requested_ids to a list
    if isinstance(requested_ids, (int, str)):
        requested_ids = [requested_ids]
    elif requested_ids is None:
        requested_ids = []

    if role_name in ELEVATED_ROLES:
        # Full access to all schools if none explicitly requested
        return [int(i) for i in requested_ids] or [school.id for school in School.query.all()]

    if not user.school_id:
        return []

    if any(int(school_id) != user.school_id for school_id in requested_ids):
        raise PermissionError("Access denied to one or more requested schools")

    return [user.school_id]


def get_school_class(class_id, school_id):
    """The class with ``class_id`` if it belongs to ``school_id``."""
    school_class = SchoolClass.query.filter_by(id=class_id, school_id=school_id).first()
    if not school_class:
        raise NotFoundError(f"Class {class_id} not found")
    return school_class
