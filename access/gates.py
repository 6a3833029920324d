"""
Access predicates and the results they produce.

A gate is called with the request's ``AccessContext`` and answers with one of:

- ``Unrestricted``: the operation applies to every row
- ``RestrictedTo(where)``: the operation applies only to rows matching ``where``
- ``Denied``: the operation is rejected outright

Declarations may also use plain ``True``/``False``; ``as_access_result``
turns those into the tagged results.
"""
from django.db.models import Q


class AccessContext:
    """The authenticated actor behind a request, or None."""

    def __init__(self, actor=None, skip_access_control=False):
        self.actor = actor
        self.skip_access_control = skip_access_control

    @classmethod
    def for_user(cls, user):
        if user is None or not user.is_authenticated:
            return cls(actor=None)
        return cls(actor=user)

    @classmethod
    def system(cls):
        return cls(actor=None, skip_access_control=True)

    @property
    def is_authenticated(self):
        return self.actor is not None

    def __repr__(self):
        if self.skip_access_control:
            return "<AccessContext system>"
        return f"<AccessContext actor={self.actor!r}>"


class AccessResult:
    allows_any = True

    def apply(self, queryset):
        raise NotImplementedError


class Unrestricted(AccessResult):

    def apply(self, queryset):
        return queryset

    def __eq__(self, other):
        return isinstance(other, Unrestricted)

    def __hash__(self):
        return hash(Unrestricted)

    def __repr__(self):
        return "Unrestricted()"


class RestrictedTo(AccessResult):

    def __init__(self, where: Q):
        self.where = where

    def apply(self, queryset):
        return queryset.filter(self.where)

    def __eq__(self, other):
        return isinstance(other, RestrictedTo) and self.where == other.where

    def __hash__(self):
        return hash(("RestrictedTo", str(self.where)))

    def __repr__(self):
        return f"RestrictedTo({self.where!r})"


class Denied(AccessResult):
    allows_any = False

    def apply(self, queryset):
        return queryset.none()

    def __eq__(self, other):
        return isinstance(other, Denied)

    def __hash__(self):
        return hash(Denied)

    def __repr__(self):
        return "Denied()"


UNRESTRICTED = Unrestricted()
DENIED = Denied()


def as_access_result(value) -> AccessResult:
    if isinstance(value, AccessResult):
        return value
    if value is True:
        return UNRESTRICTED
    if value is False or value is None:
        return DENIED
    raise TypeError(f"A gate must return a bool or an AccessResult, got {value!r}")


def evaluate(gate, context: AccessContext) -> AccessResult:
    if context.skip_access_control:
        return UNRESTRICTED
    if callable(gate):
        return as_access_result(gate(context))
    return as_access_result(gate)


def actor_is_admin(context: AccessContext) -> bool:
    actor = context.actor
    return bool(actor and getattr(actor, "is_admin", False))


def allow_all(context: AccessContext) -> AccessResult:
    return UNRESTRICTED


def user_is_admin(context: AccessContext) -> AccessResult:
    return UNRESTRICTED if actor_is_admin(context) else DENIED


def user_owns_item(context: AccessContext) -> AccessResult:
    if context.actor is None:
        return DENIED
    # Only the row whose identifier equals the actor's
    return RestrictedTo(Q(pk=context.actor.pk))


def user_is_admin_or_owner(context: AccessContext) -> AccessResult:
    # Admins are unconditional, everyone else is narrowed to their own row
    if actor_is_admin(context):
        return UNRESTRICTED
    return user_owns_item(context)
