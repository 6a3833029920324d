import graphene
from django.contrib.auth import authenticate, get_user_model, login, logout, update_session_auth_hash
from graphql import GraphQLError

from access.middleware import refresh_list_session
from access.schema import (
    CreateItem, DeleteItem, ListObjectType, UpdateItem, all_items_field, item_field, meta_field,
)

import logging

logger = logging.getLogger("quiz_api")

AUTHENTICATION_FAILED_MESSAGE = "Authentication failed."


class UserType(ListObjectType):
    password_is_set = graphene.Boolean()

    class Meta:
        model = get_user_model()
        name = "User"
        fields = ("id", "name", "email", "is_admin")

    def resolve_password_is_set(self, info):
        return bool(self.password) and self.has_usable_password()


class UserCreateInput(graphene.InputObjectType):
    name = graphene.String()
    email = graphene.String()
    is_admin = graphene.Boolean()
    password = graphene.String()


class UserUpdateInput(graphene.InputObjectType):
    name = graphene.String()
    email = graphene.String()
    is_admin = graphene.Boolean()
    password = graphene.String()


class CreateUser(CreateItem):
    list_key = "User"
    Output = UserType

    class Arguments:
        data = UserCreateInput(required=True)


class UpdateUser(UpdateItem):
    list_key = "User"
    Output = UserType

    class Arguments:
        id = graphene.ID(required=True)
        data = UserUpdateInput()

    @classmethod
    def mutate(cls, root, info, id, data=None):
        user = super().mutate(root, info, id, data)

        request = info.context
        # Changing your own password keeps you signed in
        if data and "password" in data and request.user.is_authenticated and request.user.pk == user.pk:
            update_session_auth_hash(request, user)
        return user


class DeleteUser(DeleteItem):
    list_key = "User"
    Output = UserType

    class Arguments:
        id = graphene.ID(required=True)


class AuthenticateUserWithPassword(graphene.Mutation):
    token = graphene.String()
    item = graphene.Field(UserType)

    class Arguments:
        email = graphene.String(required=True)
        password = graphene.String(required=True)

    @classmethod
    def mutate(cls, root, info, email, password):
        request = info.context
        user = authenticate(request, username=email, password=password)

        if user is None:
            raise GraphQLError(AUTHENTICATION_FAILED_MESSAGE, extensions={"code": "AUTHENTICATION_FAILURE"})

        login(request, user)
        refresh_list_session(request)
        logger.info(f"user {user.pk} signed in")

        return cls(token=request.session.session_key, item=user)


class UnauthenticateUser(graphene.Mutation):
    success = graphene.Boolean()

    @classmethod
    def mutate(cls, root, info):
        request = info.context
        was_authenticated = request.user.is_authenticated

        logout(request)
        refresh_list_session(request)

        return cls(success=was_authenticated)


class Query(graphene.ObjectType):
    all_users = all_items_field(UserType, "User")
    user = item_field(UserType, "User")
    all_users_meta = meta_field("_allUsersMeta", "User")
    authenticated_user = graphene.Field(UserType)

    def resolve_authenticated_user(root, info):
        user = info.context.user
        return user if user.is_authenticated else None


class Mutation(graphene.ObjectType):
    create_user = CreateUser.Field()
    update_user = UpdateUser.Field()
    delete_user = DeleteUser.Field()
    authenticate_user_with_password = AuthenticateUserWithPassword.Field()
    unauthenticate_user = UnauthenticateUser.Field()
