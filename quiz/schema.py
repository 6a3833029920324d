import graphene

from access.schema import (
    CreateItem, DeleteItem, ListObjectType, UpdateItem, all_items_field, item_field, meta_field,
)
from quiz.models import Answer, Feedback, Question, Quiz


class AnswerType(ListObjectType):
    class Meta:
        model = Answer
        name = "Answer"
        fields = ("id", "name", "description")


class QuestionType(ListObjectType):
    class Meta:
        model = Question
        name = "Question"
        fields = ("id", "name", "image", "description", "answers", "correct")


class FeedbackType(ListObjectType):
    class Meta:
        model = Feedback
        name = "Feedback"
        fields = ("id", "name", "image", "description", "category")
        # Categories travel as the plain strings stored in the database
        convert_choices_to_enum = False


class QuizType(ListObjectType):
    class Meta:
        model = Quiz
        name = "Quiz"
        fields = ("id", "name", "image", "description", "category", "questions", "feedback")
        convert_choices_to_enum = False


class AnswerInput(graphene.InputObjectType):
    name = graphene.String()
    description = graphene.String()


class QuestionInput(graphene.InputObjectType):
    name = graphene.String()
    image = graphene.String()
    description = graphene.String()
    answers = graphene.List(graphene.NonNull(graphene.ID))
    correct = graphene.ID()


class FeedbackInput(graphene.InputObjectType):
    name = graphene.String()
    image = graphene.String()
    description = graphene.String()
    category = graphene.String()


class QuizInput(graphene.InputObjectType):
    name = graphene.String()
    image = graphene.String()
    description = graphene.String()
    category = graphene.String()
    questions = graphene.List(graphene.NonNull(graphene.ID))
    feedback = graphene.List(graphene.NonNull(graphene.ID))


class CreateAnswer(CreateItem):
    list_key = "Answer"
    Output = AnswerType

    class Arguments:
        data = AnswerInput(required=True)


class UpdateAnswer(UpdateItem):
    list_key = "Answer"
    Output = AnswerType

    class Arguments:
        id = graphene.ID(required=True)
        data = AnswerInput()


class DeleteAnswer(DeleteItem):
    list_key = "Answer"
    Output = AnswerType

    class Arguments:
        id = graphene.ID(required=True)


class CreateQuestion(CreateItem):
    list_key = "Question"
    Output = QuestionType

    class Arguments:
        data = QuestionInput(required=True)


class UpdateQuestion(UpdateItem):
    list_key = "Question"
    Output = QuestionType

    class Arguments:
        id = graphene.ID(required=True)
        data = QuestionInput()


class DeleteQuestion(DeleteItem):
    list_key = "Question"
    Output = QuestionType

    class Arguments:
        id = graphene.ID(required=True)


class CreateFeedback(CreateItem):
    list_key = "Feedback"
    Output = FeedbackType

    class Arguments:
        data = FeedbackInput(required=True)


class UpdateFeedback(UpdateItem):
    list_key = "Feedback"
    Output = FeedbackType

    class Arguments:
        id = graphene.ID(required=True)
        data = FeedbackInput()


class DeleteFeedback(DeleteItem):
    list_key = "Feedback"
    Output = FeedbackType

    class Arguments:
        id = graphene.ID(required=True)


class CreateQuiz(CreateItem):
    list_key = "Quiz"
    Output = QuizType

    class Arguments:
        data = QuizInput(required=True)


class UpdateQuiz(UpdateItem):
    list_key = "Quiz"
    Output = QuizType

    class Arguments:
        id = graphene.ID(required=True)
        data = QuizInput()


class DeleteQuiz(DeleteItem):
    list_key = "Quiz"
    Output = QuizType

    class Arguments:
        id = graphene.ID(required=True)


class Query(graphene.ObjectType):
    all_answers = all_items_field(AnswerType, "Answer")
    answer = item_field(AnswerType, "Answer")
    all_answers_meta = meta_field("_allAnswersMeta", "Answer")

    all_questions = all_items_field(QuestionType, "Question")
    question = item_field(QuestionType, "Question")
    all_questions_meta = meta_field("_allQuestionsMeta", "Question")

    all_feedbacks = all_items_field(FeedbackType, "Feedback")
    feedback = item_field(FeedbackType, "Feedback")
    all_feedbacks_meta = meta_field("_allFeedbacksMeta", "Feedback")

    all_quizzes = all_items_field(QuizType, "Quiz")
    quiz = item_field(QuizType, "Quiz")
    all_quizzes_meta = meta_field("_allQuizzesMeta", "Quiz")


class Mutation(graphene.ObjectType):
    create_answer = CreateAnswer.Field()
    update_answer = UpdateAnswer.Field()
    delete_answer = DeleteAnswer.Field()

    create_question = CreateQuestion.Field()
    update_question = UpdateQuestion.Field()
    delete_question = DeleteQuestion.Field()

    create_feedback = CreateFeedback.Field()
    update_feedback = UpdateFeedback.Field()
    delete_feedback = DeleteFeedback.Field()

    create_quiz = CreateQuiz.Field()
    update_quiz = UpdateQuiz.Field()
    delete_quiz = DeleteQuiz.Field()
