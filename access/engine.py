"""
Runs list operations on behalf of one actor.

Every operation evaluates the list's gate first. ``Denied`` rejects the
operation, ``RestrictedTo`` narrows the rows it may touch, ``Unrestricted``
lets it through. Input is fully validated before anything is written, and
writes (row plus relationship links) happen in a single transaction.
"""
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import transaction

from access.exceptions import AccessDeniedError
from access.gates import AccessContext, Unrestricted, evaluate
from access.registry import ListRegistry

import logging

logger = logging.getLogger("quiz_api")


class ListSession:

    def __init__(self, registry: ListRegistry, context: AccessContext):
        self.registry = registry
        self.context = context

    def __repr__(self):
        return f"<ListSession {self.context!r}>"

    # Gates

    def gate(self, key, operation):
        config = self.registry.get(key)
        return evaluate(config.gate(operation), self.context)

    def permits(self, key, operation, obj=None) -> bool:
        result = self.gate(key, operation)
        if not result.allows_any:
            return False
        if obj is None or obj.pk is None or isinstance(result, Unrestricted):
            return True
        return result.apply(type(obj)._default_manager.filter(pk=obj.pk)).exists()

    def permits_field(self, key, operation, field_name) -> bool:
        config = self.registry.get(key)
        for _, gate in config.field_gates(operation, [field_name]):
            return isinstance(evaluate(gate, self.context), Unrestricted)
        return True

    def restrict(self, key, queryset, operation="read"):
        return self.gate(key, operation).apply(queryset)

    # Reads

    def read(self, key, search=None, first=None, skip=None, order_by=None):
        config = self.registry.get(key)
        result = self._require(config, "read")
        queryset = self._search(config, result.apply(config.model._default_manager.all()), search)

        if order_by:
            queryset = queryset.order_by(*order_by)

        if (skip is not None and skip < 0) or (first is not None and first < 0):
            raise ValidationError("first and skip must not be negative.")
        if skip:
            queryset = queryset[skip:]
        if first is not None:
            queryset = queryset[:first]
        return queryset

    def count(self, key, search=None) -> int:
        config = self.registry.get(key)
        result = self._require(config, "read")
        return self._search(config, result.apply(config.model._default_manager.all()), search).count()

    def get(self, key, pk):
        config = self.registry.get(key)
        result = self._require(config, "read")
        return self._target(config, result, pk)

    # Writes

    def create(self, key, data):
        config = self.registry.get(key)
        result = self._require(config, "create")
        if not isinstance(result, Unrestricted):
            # A filter cannot match a row that does not exist yet
            self._deny(config, "create")
        self._check_field_gates(config, "create", data)

        instance = config.model()
        relations, errors = self._assign(config, instance, data)
        relations = self._validate(config, instance, relations, errors, creating=True)

        with transaction.atomic():
            instance.save()
            self._link(instance, relations)

        logger.info(f"{self.context!r} created {config.key} {instance.pk}")
        return instance

    def update(self, key, pk, data):
        config = self.registry.get(key)
        result = self._require(config, "update")
        self._check_field_gates(config, "update", data)

        instance = self._target(config, result, pk)
        relations, errors = self._assign(config, instance, data)
        relations = self._validate(config, instance, relations, errors, creating=False)

        with transaction.atomic():
            instance.save()
            self._link(instance, relations)

        logger.info(f"{self.context!r} updated {config.key} {instance.pk}")
        return instance

    def delete(self, key, pk):
        config = self.registry.get(key)
        result = self._require(config, "delete")
        instance = self._target(config, result, pk)

        deleted_pk = instance.pk
        with transaction.atomic():
            instance.delete()
        # Django clears the pk on delete, callers still need to know which row went
        instance.pk = deleted_pk

        logger.info(f"{self.context!r} deleted {config.key} {deleted_pk}")
        return instance

    # Helpers

    def _deny(self, config, operation):
        logger.warning(f"{self.context!r} denied {operation} on {config.key}")
        raise AccessDeniedError()

    def _require(self, config, operation):
        result = evaluate(config.gate(operation), self.context)
        if not result.allows_any:
            self._deny(config, operation)
        return result

    def _check_field_gates(self, config, operation, data):
        for name, gate in config.field_gates(operation, data):
            if not isinstance(evaluate(gate, self.context), Unrestricted):
                logger.warning(f"{self.context!r} denied {operation} of field {name} on {config.key}")
                raise AccessDeniedError()

    def _target(self, config, result, pk):
        queryset = result.apply(config.model._default_manager.all())
        try:
            return queryset.get(pk=pk)
        except (config.model.DoesNotExist, ValidationError, ValueError, TypeError):
            # Missing, filtered out and malformed ids all look alike
            self._deny(config, "lookup")

    def _search(self, config, queryset, search):
        if search and config.search_field:
            queryset = queryset.filter(**{f"{config.search_field}__icontains": search})
        return queryset

    def _assign(self, config, instance, data):
        fields = config.writable_fields

        unknown = sorted(set(data) - set(fields))
        if unknown:
            raise ValidationError({name: ["Unknown field."] for name in unknown})

        relations = {}
        errors = {}
        for name, value in data.items():
            field = fields[name]

            if field.many_to_many:
                relations[name] = list(value or [])
            elif name in config.secret_fields:
                if value:
                    try:
                        validate_password(value, instance)
                    except ValidationError as e:
                        errors[name] = e.messages
                    instance.set_password(value)
                else:
                    setattr(instance, field.attname, "")
            else:
                if value is None and not field.null and field.blank and field.empty_strings_allowed:
                    value = ""
                setattr(instance, field.attname, value)

        return relations, errors

    def _validate(self, config, instance, relations, errors, creating):
        try:
            instance.full_clean()
        except ValidationError as e:
            for name, messages in e.message_dict.items():
                errors.setdefault(name, []).extend(messages)

        resolved = {}
        for field in instance._meta.many_to_many:
            if field.name in relations:
                ids = relations[field.name]
            elif creating:
                ids = []
            else:
                continue

            if not ids:
                if not field.blank:
                    errors.setdefault(field.name, []).append(str(field.error_messages["blank"]))
                    continue
                resolved[field.name] = []
                continue

            try:
                resolved[field.name] = self._existing_pks(field, ids)
            except ValidationError as e:
                errors.setdefault(field.name, []).extend(e.messages)

        if not errors and config.clean is not None:
            try:
                config.clean(instance, resolved)
            except ValidationError as e:
                errors.update(e.message_dict if hasattr(e, "error_dict") else {"__all__": e.messages})

        if errors:
            logger.info(f"{self.context!r} sent invalid {config.key}: {errors}")
            raise ValidationError(errors)

        return resolved

    def _existing_pks(self, field, ids):
        model = field.related_model
        pks = []
        for value in ids:
            try:
                pk = model._meta.pk.to_python(value)
            except ValidationError:
                raise ValidationError(f"{value} is not a valid {model._meta.verbose_name} id.") from None
            if pk not in pks:
                pks.append(pk)

        existing = set(model._default_manager.filter(pk__in=pks).values_list("pk", flat=True))
        missing = [str(pk) for pk in pks if pk not in existing]
        if missing:
            raise ValidationError(f"No {model._meta.verbose_name} found with id {', '.join(missing)}.")
        return pks

    def _link(self, instance, relations):
        for name, pks in relations.items():
            getattr(instance, name).set(pks)
