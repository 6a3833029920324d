from access.gates import allow_all, user_is_admin, user_is_admin_or_owner
from access.registry import ListConfig
from quiz.models import Answer, Feedback, Question, Quiz
from quiz.validators import validate_correct_answer

CONTENT_ACCESS = {
    "read": allow_all,
    "update": user_is_admin_or_owner,
    "create": user_is_admin,
    "delete": user_is_admin,
}


def clean_question(question, relations):
    if "answers" in relations:
        answer_ids = relations["answers"]
    elif not question._state.adding:
        answer_ids = question.answers.values_list("pk", flat=True)
    else:
        answer_ids = []
    validate_correct_answer(question.correct_id, answer_ids)


def register(registry):
    registry.register(ListConfig("Answer", Answer, access=CONTENT_ACCESS))
    registry.register(ListConfig("Question", Question, access=CONTENT_ACCESS, clean=clean_question))
    registry.register(ListConfig("Feedback", Feedback, access=CONTENT_ACCESS))
    registry.register(ListConfig("Quiz", Quiz, access=CONTENT_ACCESS))
