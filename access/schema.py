"""
Building blocks for exposing registered lists over GraphQL.

Resolvers reach data only through ``info.context.lists`` (the request's
ListSession), and engine errors are turned into GraphQL errors carrying an
``extensions.code``.
"""
from functools import wraps

import graphene
from django.core.exceptions import ValidationError
from graphene_django import DjangoObjectType
from graphql import GraphQLError

from access.exceptions import AccessDeniedError
from access.middleware import get_list_session

import logging

logger = logging.getLogger("quiz_api")


def validation_messages(error: ValidationError) -> dict:
    if hasattr(error, "error_dict"):
        return error.message_dict
    return {"__all__": error.messages}


def translate_errors(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AccessDeniedError as e:
            raise GraphQLError(str(e), extensions={"code": "ACCESS_DENIED"}) from e
        except ValidationError as e:
            fields = validation_messages(e)
            summary = "; ".join(f"{name}: {' '.join(messages)}" for name, messages in fields.items())
            raise GraphQLError(
                f"Invalid input. {summary}",
                extensions={"code": "VALIDATION_ERROR", "fields": fields},
            ) from e
    return wrapper


class ListObjectType(DjangoObjectType):
    """Object type whose nested relation lists honour the related list's read gate."""

    class Meta:
        abstract = True

    @classmethod
    def get_queryset(cls, queryset, info):
        lists = get_list_session(info.context)
        key = lists.registry.for_model(cls._meta.model).key
        return lists.restrict(key, queryset)


class ListMeta(graphene.ObjectType):
    count = graphene.Int()


def all_items_field(type_, key):
    @translate_errors
    def resolver(root, info, search=None, first=None, skip=None):
        return get_list_session(info.context).read(key, search=search, first=first, skip=skip)

    return graphene.Field(
        graphene.List(graphene.NonNull(type_)),
        search=graphene.String(),
        first=graphene.Int(),
        skip=graphene.Int(),
        resolver=resolver,
    )


def item_field(type_, key):
    @translate_errors
    def resolver(root, info, id):
        return get_list_session(info.context).get(key, id)

    return graphene.Field(type_, id=graphene.ID(required=True), resolver=resolver)


def meta_field(name, key):
    @translate_errors
    def resolver(root, info, search=None):
        return ListMeta(count=get_list_session(info.context).count(key, search=search))

    return graphene.Field(ListMeta, search=graphene.String(), name=name, resolver=resolver)


class CreateItem(graphene.Mutation):
    """Subclasses set ``list_key``, ``Output`` and ``Arguments.data``."""
    list_key = None

    class Meta:
        abstract = True

    @classmethod
    @translate_errors
    def mutate(cls, root, info, data):
        return get_list_session(info.context).create(cls.list_key, dict(data))


class UpdateItem(graphene.Mutation):
    """Subclasses set ``list_key``, ``Output`` and ``Arguments.id``/``Arguments.data``."""
    list_key = None

    class Meta:
        abstract = True

    @classmethod
    @translate_errors
    def mutate(cls, root, info, id, data=None):
        return get_list_session(info.context).update(cls.list_key, id, dict(data or {}))


class DeleteItem(graphene.Mutation):
    list_key = None

    class Meta:
        abstract = True

    @classmethod
    @translate_errors
    def mutate(cls, root, info, id):
        return get_list_session(info.context).delete(cls.list_key, id)
