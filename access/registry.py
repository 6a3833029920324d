from django.core.exceptions import ImproperlyConfigured

from access.gates import UNRESTRICTED

OPERATIONS = ("read", "create", "update", "delete")


class ListConfig:
    """
    Declaration of one list: its model, the gate for each operation and the
    field-level gates that override them.

    ``access`` maps an operation to a gate (a predicate from ``access.gates``
    or a plain bool). Operations left out are unrestricted.

    ``field_access`` maps a field name to ``{operation: gate}``. Field gates
    are all-or-nothing: anything but an unrestricted answer rejects the whole
    operation.

    ``secret_fields`` are write-only and stored through ``set_password``;
    ``read_only_fields`` cannot be written through list operations at all.

    ``clean`` is an optional ``clean(instance, relations)`` hook raising
    ``ValidationError`` for rules that span relationships.
    """

    def __init__(self, key, model, access=None, field_access=None, secret_fields=(),
                 read_only_fields=(), search_field="name", clean=None):
        access = access or {}
        unknown = set(access) - set(OPERATIONS)
        if unknown:
            raise ImproperlyConfigured(f"Unknown operations for list {key}: {', '.join(sorted(unknown))}")

        self.key = key
        self.model = model
        self.access = {operation: access.get(operation, UNRESTRICTED) for operation in OPERATIONS}
        self.field_access = field_access or {}
        self.secret_fields = tuple(secret_fields)
        self.read_only_fields = tuple(read_only_fields)
        self.search_field = search_field
        self.clean = clean

    def __repr__(self):
        return f"<ListConfig {self.key}>"

    def gate(self, operation):
        return self.access[operation]

    def field_gates(self, operation, field_names):
        for name in field_names:
            gate = self.field_access.get(name, {}).get(operation)
            if gate is not None:
                yield name, gate

    @property
    def writable_fields(self):
        fields = {}
        for field in self.model._meta.get_fields():
            if field.auto_created or not field.concrete and not field.many_to_many:
                continue
            if field.primary_key or not field.editable or field.name in self.read_only_fields:
                continue
            fields[field.name] = field
        return fields


class ListRegistry:

    def __init__(self):
        self._lists = {}

    def register(self, config: ListConfig):
        if config.key in self._lists:
            raise ImproperlyConfigured(f"List {config.key} is already registered")
        self._lists[config.key] = config
        return config

    def get(self, key) -> ListConfig:
        try:
            return self._lists[key]
        except KeyError:
            raise ImproperlyConfigured(f"No list registered as {key}") from None

    def for_model(self, model) -> ListConfig:
        for config in self._lists.values():
            if config.model is model or model._meta.concrete_model is config.model:
                return config
        raise ImproperlyConfigured(f"No list registered for model {model.__name__}")

    def __contains__(self, key):
        return key in self._lists

    def __iter__(self):
        return iter(self._lists.values())

    def __len__(self):
        return len(self._lists)
