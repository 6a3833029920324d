import graphene

import accounts.schema
import quiz.schema


class Query(accounts.schema.Query, quiz.schema.Query, graphene.ObjectType):
    pass


class Mutation(accounts.schema.Mutation, quiz.schema.Mutation, graphene.ObjectType):
    pass


schema = graphene.Schema(query=Query, mutation=Mutation)
